# File: goscaffold/utils.py
"""
goscaffold - Utility Functions & Helpers
=========================================
File I/O and timing helpers shared by the writer, the integrator and the
orchestrator.

- ``atomic_write`` writes through a temporary file in the target directory
  followed by ``os.replace``, so a reader never sees a half-written file.
  The temporary file descriptor is owned by a ``with`` block and released on
  every exit path.
- ``Timer`` times pipeline steps for the ``GenerationReport``.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
import stat
import tempfile
import time
from pathlib import Path
from typing import List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("goscaffold.utils")

_GO_MODULE_RE: re.Pattern[str] = re.compile(r"^\s*module\s+(\S+)\s*$", re.MULTILINE)


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def read_text(path: Path) -> str:
    """Read a UTF-8 text file."""
    return path.read_text(encoding="utf-8")


def _file_mode(path: Path) -> int:
    """Permission bits for *path*: kept when it exists, umask-derived otherwise."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask: int = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def atomic_write(path: Path, content: str) -> int:
    """
    Write *content* to *path* atomically.

    The data goes to a temporary sibling file which is fsync'ed and then
    renamed over the target.  The target keeps its permission bits; a new
    file gets the ones ``open()`` would give it under the current umask.
    On any failure the temporary file is removed and the exception
    propagates; the previous target content is untouched.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)
    encoded: bytes = content.encode("utf-8")
    mode: int = _file_mode(path)

    fd: int
    tmp_path: str
    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(encoded)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, str(path))
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def read_go_module(project_root: Path) -> Optional[str]:
    """Return the module path declared in ``go.mod``, if there is one."""
    go_mod: Path = project_root / "go.mod"
    if not go_mod.is_file():
        return None
    try:
        source: str = read_text(go_mod)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read %s: %s", go_mod, exc)
        return None
    match = _GO_MODULE_RE.search(source)
    return match.group(1) if match else None


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string. O(n)."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string. O(n)."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling generation steps.

    Usage:
        with Timer("render domain") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Timer",
    "atomic_write",
    "count_lines",
    "ensure_directory",
    "read_go_module",
    "read_text",
    "sha256_hex",
]

logger.debug("goscaffold.utils loaded — %d public symbols.", len(__all__))
