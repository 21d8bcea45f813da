"""
fsutil.py

Responsibility: filesystem moves and copies used when restructuring a repository.

- Walk directories in sorted order so copies are deterministic.
- Preserve permissions and modification times; recreate symlinks as symlinks.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from git_wt import GitWtError

log = logging.getLogger(__name__)


class FsError(GitWtError):
    pass


def copy_dir(src: str | Path, dst: str | Path, excludes: list[str] | tuple[str, ...] = ()) -> None:
    """
    Recursively copy the contents of src into dst.

    Entries whose base name is in `excludes` are skipped (directories are not descended).
    """
    src_dir = Path(src)
    dst_dir = Path(dst)
    skip = set(excludes)

    if not src_dir.is_dir():
        raise FsError(f"Source directory not found: {src_dir}")

    dst_dir.mkdir(parents=True, exist_ok=True)
    shutil.copystat(src_dir, dst_dir)

    for root, dirs, filenames in os.walk(src_dir):
        root_path = Path(root)
        rel_root = root_path.relative_to(src_dir)

        # Prune in place so os.walk does not descend into excluded or symlinked dirs.
        dirs[:] = sorted(d for d in dirs if d not in skip)
        for d in list(dirs):
            src_path = root_path / d
            target = dst_dir / rel_root / d
            if src_path.is_symlink():
                dirs.remove(d)
                _copy_symlink(src_path, target)
                continue
            target.mkdir(parents=True, exist_ok=True)
            shutil.copystat(src_path, target)

        for name in sorted(filenames):
            if name in skip:
                continue
            src_path = root_path / name
            target = dst_dir / rel_root / name
            if src_path.is_symlink():
                _copy_symlink(src_path, target)
            else:
                shutil.copy2(src_path, target)


def _copy_symlink(src: Path, target: Path) -> None:
    if target.is_symlink() or target.exists():
        target.unlink()
    os.symlink(os.readlink(src), target)


def copy_file_simple(src: str | Path, dst: str | Path) -> None:
    """
    Copy file contents (not metadata) and set mode 0644.
    """
    data = Path(src).read_bytes()
    dst_path = Path(dst)
    dst_path.write_bytes(data)
    dst_path.chmod(0o644)


def move_contents(src: str | Path, dst: str | Path) -> None:
    """
    Rename every entry of src into dst (src itself is left in place, empty).
    """
    src_dir = Path(src)
    for entry in sorted(src_dir.iterdir()):
        os.rename(entry, Path(dst) / entry.name)


def restore_backup(backup: str | Path, repo_root: str | Path) -> None:
    """
    Move the backup's entries back into repo_root and delete the backup.

    Best-effort: a missing backup is not an error.
    """
    backup_dir = Path(backup)
    if not backup_dir.is_dir():
        return
    failed = 0
    for entry in sorted(backup_dir.iterdir()):
        try:
            os.rename(entry, Path(repo_root) / entry.name)
        except OSError as e:
            failed += 1
            log.warning("could not restore %s: %s", entry, e)
    if failed:
        log.warning("backup kept at %s (%d entries not restored)", backup_dir, failed)
        return
    shutil.rmtree(backup_dir, ignore_errors=True)
