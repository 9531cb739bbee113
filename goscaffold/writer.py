# File: goscaffold/writer.py
"""
goscaffold - File Writer / Conflict Guard
==========================================
Decides, per target path, whether a file may be created, skipped, backed up
and overwritten, or must abort, and performs the write atomically.

State machine per target path::

    Absent                    → Created
    Present + user-owned      → Skipped ("user-owned"), whatever the policy
    Present + ABORT           → FileConflictError (bytes untouched)
    Present + SKIP            → Skipped ("exists")
    Present + BACKUP_THEN_... → backup copy, then atomic overwrite

A backup lands in ``<backup_dir>/<relative path>.<timestamp>.bak``.  If
either the copy or the write fails, the original file is left intact, any
half-made backup is removed and ``WriteError`` is raised.

In dry-run mode the guard evaluates the same state machine and returns the
outcome it *would* produce without touching the filesystem.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional

from goscaffold.errors import FileConflictError, WriteError
from goscaffold.models import OverwritePolicy
from goscaffold.utils import atomic_write, ensure_directory, read_text, sha256_hex

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("goscaffold.writer")

# A file containing this marker is owned by the user and never regenerated.
USER_OWNED_MARKER: str = "goscaffold:user-owned"


# ---------------------------------------------------------------------------
# Outcome records
# ---------------------------------------------------------------------------


class WriteAction(str, Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    OVERWRITTEN = "overwritten"


@dataclass(frozen=True, slots=True)
class WriteOutcome:
    """What the guard did (or would do, in dry-run mode) for one path."""

    path: str
    action: WriteAction
    backup_path: Optional[str] = None
    reason: str = ""
    bytes_written: int = 0
    checksum: str = ""
    dry_run: bool = False

    def __repr__(self) -> str:
        return f"<WriteOutcome {self.action.value} {self.path}>"


# ---------------------------------------------------------------------------
# ConflictGuard
# ---------------------------------------------------------------------------


class ConflictGuard:
    """
    Gatekeeper for every file the pipeline writes under a project root.

    Usage::

        guard = ConflictGuard(Path("./myapp"))
        outcome = guard.write(
            "internal/domain/order.go",
            content,
            OverwritePolicy.BACKUP_THEN_OVERWRITE,
        )
    """

    def __init__(
        self,
        project_root: Path,
        *,
        backup_dir: str = ".goscaffold-backup",
        dry_run: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.project_root: Path = Path(project_root)
        self.backup_root: Path = self.project_root / backup_dir
        self.dry_run: bool = dry_run
        self._clock: Callable[[], datetime] = clock or datetime.now

    # -----------------------------------------------------------------
    # Path helpers
    # -----------------------------------------------------------------

    def resolve(self, relative_path: str) -> Path:
        """Absolute path for *relative_path*; refuses to leave the root."""
        rel: PurePosixPath = PurePosixPath(relative_path)
        if rel.is_absolute() or ".." in rel.parts:
            raise WriteError(relative_path, "path escapes the project root")
        return self.project_root.joinpath(*rel.parts)

    def exists(self, relative_path: str) -> bool:
        return self.resolve(relative_path).is_file()

    def _backup_target(self, relative_path: str) -> Path:
        stamp: str = self._clock().strftime("%Y%m%dT%H%M%S%f")
        rel: PurePosixPath = PurePosixPath(relative_path)
        base: Path = self.backup_root.joinpath(*rel.parts)
        candidate: Path = base.with_name(f"{base.name}.{stamp}.bak")
        counter: int = 1
        while candidate.exists():
            candidate = base.with_name(f"{base.name}.{stamp}.{counter}.bak")
            counter += 1
        return candidate

    def _relative(self, path: Path) -> str:
        return path.relative_to(self.project_root).as_posix()

    # -----------------------------------------------------------------
    # Public: write
    # -----------------------------------------------------------------

    def write(
        self,
        relative_path: str,
        content: str,
        policy: OverwritePolicy = OverwritePolicy.ABORT,
        *,
        honor_user_owned: bool = True,
    ) -> WriteOutcome:
        """
        Write *content* to *relative_path* according to *policy*.

        Args:
            relative_path: POSIX path relative to the project root.
            content: Full file text (UTF-8).
            policy: What to do when the file already exists.
            honor_user_owned: Skip files carrying ``USER_OWNED_MARKER``.
                Aggregator updates pass False: they only append.

        Raises:
            FileConflictError: File exists and policy is ABORT.
            WriteError: Backup or write failed; original left intact.
        """
        target: Path = self.resolve(relative_path)
        checksum: str = sha256_hex(content)

        if not target.exists():
            return self._create(relative_path, target, content, checksum)

        if not target.is_file():
            raise WriteError(relative_path, "target exists and is not a regular file")

        try:
            existing: str = read_text(target)
        except (OSError, UnicodeDecodeError) as exc:
            raise WriteError(relative_path, f"cannot read existing file: {exc}") from exc

        if honor_user_owned and USER_OWNED_MARKER in existing:
            logger.info("Skipping user-owned file %s.", relative_path)
            return WriteOutcome(
                relative_path, WriteAction.SKIPPED, reason="user-owned",
                dry_run=self.dry_run,
            )

        if policy is OverwritePolicy.ABORT:
            raise FileConflictError(relative_path)

        if policy is OverwritePolicy.SKIP:
            logger.info("Skipping existing file %s.", relative_path)
            return WriteOutcome(
                relative_path, WriteAction.SKIPPED, reason="exists",
                dry_run=self.dry_run,
            )

        return self._backup_then_overwrite(relative_path, target, content, checksum)

    # -----------------------------------------------------------------
    # Internal: state transitions
    # -----------------------------------------------------------------

    def _create(
        self,
        relative_path: str,
        target: Path,
        content: str,
        checksum: str,
    ) -> WriteOutcome:
        if self.dry_run:
            logger.info("[dry-run] Would create %s.", relative_path)
            return WriteOutcome(
                relative_path, WriteAction.CREATED, checksum=checksum, dry_run=True,
            )
        try:
            written: int = atomic_write(target, content)
        except OSError as exc:
            raise WriteError(relative_path, str(exc)) from exc

        logger.info("Created %s (%d bytes).", relative_path, written)
        return WriteOutcome(
            relative_path, WriteAction.CREATED,
            bytes_written=written, checksum=checksum,
        )

    def _backup_then_overwrite(
        self,
        relative_path: str,
        target: Path,
        content: str,
        checksum: str,
    ) -> WriteOutcome:
        backup: Path = self._backup_target(relative_path)

        if self.dry_run:
            logger.info("[dry-run] Would back up and overwrite %s.", relative_path)
            return WriteOutcome(
                relative_path, WriteAction.OVERWRITTEN,
                backup_path=self._relative(backup), checksum=checksum, dry_run=True,
            )

        try:
            ensure_directory(backup.parent)
            shutil.copy2(target, backup)
        except OSError as exc:
            backup.unlink(missing_ok=True)
            raise WriteError(relative_path, f"backup failed: {exc}") from exc

        try:
            written: int = atomic_write(target, content)
        except OSError as exc:
            backup.unlink(missing_ok=True)
            raise WriteError(relative_path, str(exc)) from exc

        logger.info(
            "Overwrote %s (%d bytes); backup at %s.",
            relative_path,
            written,
            self._relative(backup),
        )
        return WriteOutcome(
            relative_path, WriteAction.OVERWRITTEN,
            backup_path=self._relative(backup),
            bytes_written=written, checksum=checksum,
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ConflictGuard",
    "USER_OWNED_MARKER",
    "WriteAction",
    "WriteOutcome",
]

logger.debug("goscaffold.writer loaded — %d public symbols.", len(__all__))
