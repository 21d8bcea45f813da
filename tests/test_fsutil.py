import os
import stat
from pathlib import Path

import pytest

from git_wt.fsutil import FsError, copy_dir, copy_file_simple, move_contents, restore_backup


def test_copy_dir_preserves_tree_modes_and_symlinks(tmp_path: Path) -> None:
    src = tmp_path / "src"
    (src / "pkg" / "nested").mkdir(parents=True)
    (src / "pkg" / "nested" / "a.txt").write_text("a", encoding="utf-8")
    script = src / "run.sh"
    script.write_text("#!/bin/sh\n", encoding="utf-8")
    script.chmod(0o755)
    os.symlink("pkg/nested/a.txt", src / "link")
    (src / ".git").mkdir()
    (src / ".git" / "HEAD").write_text("ref", encoding="utf-8")

    dst = tmp_path / "dst"
    copy_dir(src, dst, [".git"])

    assert (dst / "pkg" / "nested" / "a.txt").read_text(encoding="utf-8") == "a"
    assert stat.S_IMODE((dst / "run.sh").stat().st_mode) == 0o755
    assert (dst / "link").is_symlink()
    assert os.readlink(dst / "link") == "pkg/nested/a.txt"
    assert not (dst / ".git").exists()


def test_copy_dir_into_existing_destination(tmp_path: Path) -> None:
    src = tmp_path / "src"
    src.mkdir()
    (src / "f").write_text("new", encoding="utf-8")
    dst = tmp_path / "dst"
    dst.mkdir()
    (dst / "f").write_text("old", encoding="utf-8")
    (dst / "keep").write_text("k", encoding="utf-8")

    copy_dir(src, dst)

    assert (dst / "f").read_text(encoding="utf-8") == "new"
    assert (dst / "keep").exists()


def test_copy_dir_missing_source(tmp_path: Path) -> None:
    with pytest.raises(FsError):
        copy_dir(tmp_path / "missing", tmp_path / "dst")


def test_copy_file_simple_sets_mode(tmp_path: Path) -> None:
    src = tmp_path / "s"
    src.write_bytes(b"data")
    src.chmod(0o600)
    dst = tmp_path / "d"
    copy_file_simple(src, dst)
    assert dst.read_bytes() == b"data"
    assert stat.S_IMODE(dst.stat().st_mode) == 0o644


def test_move_contents_and_restore_backup(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    (root / ".git").mkdir()
    (root / "file").write_text("x", encoding="utf-8")
    backup = tmp_path / "backup"
    backup.mkdir()

    move_contents(root, backup)
    assert list(root.iterdir()) == []
    assert sorted(p.name for p in backup.iterdir()) == [".git", "file"]

    restore_backup(backup, root)
    assert sorted(p.name for p in root.iterdir()) == [".git", "file"]
    assert not backup.exists()


def test_restore_backup_missing_is_noop(tmp_path: Path) -> None:
    restore_backup(tmp_path / "nope", tmp_path)


def test_restore_backup_keeps_backup_on_failure(tmp_path: Path) -> None:
    backup = tmp_path / "backup"
    backup.mkdir()
    (backup / "dir").mkdir()
    (backup / "dir" / "f").write_text("x", encoding="utf-8")
    root = tmp_path / "root"
    root.mkdir()
    # A non-empty directory in the way makes the rename fail.
    (root / "dir").mkdir()
    (root / "dir" / "other").write_text("y", encoding="utf-8")

    restore_backup(backup, root)

    assert (backup / "dir" / "f").exists()
