"""
tests/test_writer.py
Unit tests for goscaffold.writer.ConflictGuard: the overwrite-policy state
machine, backups, user-owned files and dry-run mode.
"""

from __future__ import annotations

import os
import pathlib
import stat
from datetime import datetime

import pytest

from goscaffold import writer
from goscaffold.errors import FileConflictError, WriteError
from goscaffold.models import OverwritePolicy
from goscaffold.writer import USER_OWNED_MARKER, ConflictGuard, WriteAction

REL_PATH: str = "internal/domain/product.go"


def _fixed_clock() -> datetime:
    return datetime(2024, 1, 2, 3, 4, 5, 678900)


@pytest.fixture()
def existing(go_project: pathlib.Path) -> pathlib.Path:
    target = go_project / "internal" / "domain" / "product.go"
    target.parent.mkdir(parents=True)
    target.write_text("package domain // original\n", encoding="utf-8")
    return target


class TestCreate:
    def test_creates_missing_file_and_directories(
        self, guard: ConflictGuard, go_project: pathlib.Path
    ) -> None:
        outcome = guard.write(REL_PATH, "package domain\n")
        assert outcome.action is WriteAction.CREATED
        assert outcome.bytes_written == len("package domain\n")
        assert outcome.checksum
        assert (go_project / REL_PATH).read_text(encoding="utf-8") == "package domain\n"

    def test_no_temp_files_left(self, guard: ConflictGuard, go_project: pathlib.Path) -> None:
        guard.write(REL_PATH, "package domain\n")
        leftovers = [p.name for p in (go_project / "internal" / "domain").iterdir()]
        assert leftovers == ["product.go"]

    @pytest.mark.parametrize("bad", ["../outside.go", "/etc/passwd"])
    def test_refuses_paths_outside_root(self, guard: ConflictGuard, bad: str) -> None:
        with pytest.raises(WriteError):
            guard.write(bad, "x")


class TestExistingFile:
    def test_abort_leaves_bytes_untouched(
        self, guard: ConflictGuard, existing: pathlib.Path
    ) -> None:
        with pytest.raises(FileConflictError) as exc_info:
            guard.write(REL_PATH, "new content", OverwritePolicy.ABORT)
        assert exc_info.value.path == REL_PATH
        assert existing.read_text(encoding="utf-8") == "package domain // original\n"

    def test_skip(self, guard: ConflictGuard, existing: pathlib.Path) -> None:
        outcome = guard.write(REL_PATH, "new content", OverwritePolicy.SKIP)
        assert outcome.action is WriteAction.SKIPPED
        assert outcome.reason == "exists"
        assert existing.read_text(encoding="utf-8") == "package domain // original\n"

    def test_backup_then_overwrite(
        self, go_project: pathlib.Path, existing: pathlib.Path
    ) -> None:
        guard = ConflictGuard(go_project, clock=_fixed_clock)
        outcome = guard.write(REL_PATH, "new content", OverwritePolicy.BACKUP_THEN_OVERWRITE)

        assert outcome.action is WriteAction.OVERWRITTEN
        assert outcome.backup_path == (
            ".goscaffold-backup/internal/domain/product.go.20240102T030405678900.bak"
        )
        assert existing.read_text(encoding="utf-8") == "new content"
        backup = go_project / outcome.backup_path
        assert backup.read_text(encoding="utf-8") == "package domain // original\n"

    def test_backup_names_never_collide(
        self, go_project: pathlib.Path, existing: pathlib.Path
    ) -> None:
        guard = ConflictGuard(go_project, clock=_fixed_clock)
        first = guard.write(REL_PATH, "v2", OverwritePolicy.BACKUP_THEN_OVERWRITE)
        second = guard.write(REL_PATH, "v3", OverwritePolicy.BACKUP_THEN_OVERWRITE)
        assert first.backup_path != second.backup_path
        assert (go_project / second.backup_path).read_text(encoding="utf-8") == "v2"

    @pytest.mark.parametrize("policy", list(OverwritePolicy))
    def test_user_owned_is_always_kept(
        self, guard: ConflictGuard, existing: pathlib.Path, policy: OverwritePolicy
    ) -> None:
        existing.write_text(f"// {USER_OWNED_MARKER}\npackage domain\n", encoding="utf-8")
        outcome = guard.write(REL_PATH, "new content", policy)
        assert outcome.action is WriteAction.SKIPPED
        assert outcome.reason == "user-owned"
        assert "new content" not in existing.read_text(encoding="utf-8")

    def test_user_owned_can_be_ignored(
        self, guard: ConflictGuard, existing: pathlib.Path
    ) -> None:
        existing.write_text(f"// {USER_OWNED_MARKER}\n", encoding="utf-8")
        outcome = guard.write(
            REL_PATH, "new content", OverwritePolicy.BACKUP_THEN_OVERWRITE,
            honor_user_owned=False,
        )
        assert outcome.action is WriteAction.OVERWRITTEN

    def test_directory_target_is_write_error(
        self, guard: ConflictGuard, go_project: pathlib.Path
    ) -> None:
        (go_project / "internal" / "domain" / "product.go").mkdir(parents=True)
        with pytest.raises(WriteError):
            guard.write(REL_PATH, "x", OverwritePolicy.BACKUP_THEN_OVERWRITE)

    def test_failed_overwrite_restores_state(
        self,
        go_project: pathlib.Path,
        existing: pathlib.Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def _disk_full(path: pathlib.Path, content: str) -> int:
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(writer, "atomic_write", _disk_full)
        guard = ConflictGuard(go_project, clock=_fixed_clock)
        original = existing.read_bytes()

        with pytest.raises(WriteError) as exc_info:
            guard.write(REL_PATH, "new content", OverwritePolicy.BACKUP_THEN_OVERWRITE)

        assert exc_info.value.path == REL_PATH
        assert existing.read_bytes() == original
        backup = go_project / ".goscaffold-backup/internal/domain/product.go.20240102T030405678900.bak"
        assert not backup.exists()


class TestFileModes:
    @pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
    def test_overwrite_keeps_mode(
        self, go_project: pathlib.Path, existing: pathlib.Path
    ) -> None:
        existing.chmod(0o640)
        ConflictGuard(go_project).write(
            REL_PATH, "new content", OverwritePolicy.BACKUP_THEN_OVERWRITE,
        )
        assert stat.S_IMODE(existing.stat().st_mode) == 0o640

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
    def test_new_file_follows_umask(self, guard: ConflictGuard, go_project: pathlib.Path) -> None:
        old = os.umask(0o022)
        try:
            guard.write(REL_PATH, "package domain\n")
        finally:
            os.umask(old)
        target = go_project / REL_PATH
        assert stat.S_IMODE(target.stat().st_mode) == 0o644


class TestDryRun:
    def test_create_is_reported_not_written(self, go_project: pathlib.Path) -> None:
        guard = ConflictGuard(go_project, dry_run=True)
        outcome = guard.write(REL_PATH, "package domain\n")
        assert outcome.action is WriteAction.CREATED
        assert outcome.dry_run
        assert not (go_project / REL_PATH).exists()

    def test_overwrite_is_reported_not_written(
        self, go_project: pathlib.Path, existing: pathlib.Path
    ) -> None:
        guard = ConflictGuard(go_project, dry_run=True)
        outcome = guard.write(REL_PATH, "new", OverwritePolicy.BACKUP_THEN_OVERWRITE)
        assert outcome.action is WriteAction.OVERWRITTEN
        assert outcome.backup_path is not None
        assert existing.read_text(encoding="utf-8") == "package domain // original\n"
        assert not (go_project / ".goscaffold-backup").exists()

    def test_abort_still_raises(self, go_project: pathlib.Path, existing: pathlib.Path) -> None:
        guard = ConflictGuard(go_project, dry_run=True)
        with pytest.raises(FileConflictError):
            guard.write(REL_PATH, "new")
