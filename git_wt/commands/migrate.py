"""
migrate.py

Responsibility: `git wt migrate` [EXPERIMENTAL] - convert an ordinary clone into
the bare worktree layout in place.

Flow:
1) Inspect the repository (current/default branch, remote, dirty state, stashes)
2) Build the new layout in a sibling directory (`<repo>-new-<pid>`)
3) Copy the working tree, index and stash refs into the new current-branch worktree
4) Swap directory contents (original -> `<repo>-backup-<pid>`, new -> original)

Any failure or SIGINT/SIGTERM before the swap completes removes the new layout
and restores the backup.
"""

from __future__ import annotations

import argparse
import logging
import os
import shutil
import signal
import sys
from dataclasses import dataclass
from pathlib import Path

from git_wt import git, ui, worktree
from git_wt.commands import GITDIR_POINTER, CommandError, cleanup_local_branch_refs, configure_bare_repo
from git_wt.fsutil import copy_dir, copy_file_simple, move_contents, restore_backup

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepoState:
    root: Path
    current_branch: str
    default_branch: str
    remote_url: str
    has_changes: bool
    untracked: int
    stashes: int

    @property
    def name(self) -> str:
        return self.root.name

    @property
    def parent(self) -> Path:
        return self.root.parent


def has_uncommitted_changes(repo_root: str | Path) -> bool:
    return not git.succeeds("diff-index", "--quiet", "HEAD", "--", cwd=repo_root)


def _query_or_empty(*args: str, cwd: str | Path | None = None) -> str:
    try:
        return git.query(*args, cwd=cwd)
    except git.GitError:
        return ""


def inspect_repository() -> RepoState:
    if not git.succeeds("rev-parse", "--git-dir"):
        raise CommandError("not in a git repository")

    root = Path(git.query("rev-parse", "--show-toplevel")).resolve()

    current = _query_or_empty("branch", "--show-current")
    if not current:
        raise CommandError("Not on a branch (detached HEAD state). Please check out a branch first.")

    remote_url = _query_or_empty("remote", "get-url", "origin")

    default_branch = worktree.default_branch() if remote_url else ""
    if not default_branch:
        for candidate in ("main", "master"):
            if git.succeeds("rev-parse", "--verify", candidate):
                default_branch = candidate
                break

    try:
        untracked = len(git.query_lines("ls-files", "--others", "--exclude-standard"))
    except git.GitError:
        untracked = 0
    try:
        stashes = len(git.query_lines("stash", "list"))
    except git.GitError:
        stashes = 0

    return RepoState(
        root=root,
        current_branch=current,
        default_branch=default_branch,
        remote_url=remote_url,
        has_changes=has_uncommitted_changes(root),
        untracked=untracked,
        stashes=stashes,
    )


def _report(state: RepoState) -> None:
    if state.remote_url:
        ui.info(f"Remote URL: {state.remote_url}")
    else:
        ui.warn("No remote 'origin' found")

    ui.info(f"Migrating repository: {state.name}")
    ui.info(f"Current branch: {state.current_branch}")
    if state.default_branch:
        ui.info(f"Default branch: {state.default_branch}")
    ui.echo()

    if state.has_changes:
        ui.info("Detected uncommitted changes - will preserve them in the new worktree")
    if state.untracked:
        ui.info(f"Detected {state.untracked} untracked file(s) - will preserve them")
    if state.stashes:
        ui.info(f"Detected {state.stashes} stash(es) - will migrate them")
    ui.echo()


def _migrate_stashes(old_git_dir: Path, new_bare: Path) -> None:
    stash_ref = old_git_dir / "refs" / "stash"
    if stash_ref.exists():
        (new_bare / "refs").mkdir(parents=True, exist_ok=True)
        copy_file_simple(stash_ref, new_bare / "refs" / "stash")

    stash_log = old_git_dir / "logs" / "refs" / "stash"
    if stash_log.exists():
        (new_bare / "logs" / "refs").mkdir(parents=True, exist_ok=True)
        copy_file_simple(stash_log, new_bare / "logs" / "refs" / "stash")


def _worktree_add(new_structure: Path, branch: str) -> None:
    try:
        git.run("worktree", "add", branch, branch, cwd=new_structure)
    except git.GitError as e:
        log.warning("could not create worktree for %s: %s", branch, e)


def _worktree_index(worktree_dir: Path) -> Path | None:
    """
    Index file of the linked worktree at worktree_dir, as git resolves it.

    Admin dirs get a numeric suffix when two worktrees share a basename.
    """
    if not (worktree_dir / ".git").is_file():
        return None
    try:
        index = Path(git.query("rev-parse", "--git-path", "index", cwd=worktree_dir))
    except git.GitError as e:
        log.warning("could not locate index for %s: %s", worktree_dir, e)
        return None
    return index if index.is_absolute() else worktree_dir / index


def build_new_structure(state: RepoState, new_structure: Path) -> None:
    ui.info("Creating new repository structure...")
    new_structure.mkdir(parents=True)

    ui.info("Converting to bare repository...")
    new_bare = new_structure / ".bare"
    git.run("clone", "--bare", str(state.root), str(new_bare))
    (new_structure / ".git").write_text(GITDIR_POINTER, encoding="utf-8")

    ui.info("Configuring bare repository...")
    configure_bare_repo(str(new_structure))

    # The bare clone's origin is the original repository: fetching it gives a
    # remote-tracking ref for every local branch, which `worktree add` checks out.
    ui.info("Fetching all branches...")
    try:
        git.run("fetch", "--all", cwd=new_structure)
    except git.GitError:
        ui.warn("Could not fetch branches - continuing with local data")

    cleanup_local_branch_refs(str(new_structure))

    if state.stashes:
        ui.info(f"Migrating {state.stashes} stash(es)...")
        _migrate_stashes(state.root / ".git", new_bare)

    if state.default_branch and state.default_branch != state.current_branch:
        ui.info(f"Creating worktree for default branch: {state.default_branch}")
        _worktree_add(new_structure, state.default_branch)
        ui.info(f"Creating worktree for current branch: {state.current_branch}")
    else:
        ui.info(f"Creating worktree for {state.current_branch} (default branch)...")
    _worktree_add(new_structure, state.current_branch)

    if state.remote_url:
        ui.info("Restoring remote URL...")
        git.run("remote", "set-url", "origin", state.remote_url, cwd=new_structure)
    else:
        git.run("remote", "remove", "origin", cwd=new_structure)

    ui.info("Restoring working directory state...")
    dest = new_structure / state.current_branch
    copy_dir(state.root, dest, [".git"])

    old_index = state.root / ".git" / "index"
    new_index = _worktree_index(dest)
    if old_index.exists() and new_index is not None:
        copy_file_simple(old_index, new_index)

    ui.success("Working directory state restored (all files preserved)")


def _take_back(repo_root: Path, new_structure: Path) -> None:
    """
    Clear repo_root of new-layout entries so the backup can be restored into it.
    """
    for entry in sorted(repo_root.iterdir()):
        try:
            os.rename(entry, new_structure / entry.name)
        except OSError as e:
            log.warning("could not move %s back (%s); deleting it", entry, e)
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()


def swap_contents(repo_root: Path, new_structure: Path, backup: Path) -> None:
    """
    Replace repo_root's contents with new_structure's, keeping repo_root's inode.
    """
    backup.mkdir(parents=True, exist_ok=True)
    move_contents(repo_root, backup)
    try:
        move_contents(new_structure, repo_root)
    except OSError as e:
        # repo_root was emptied above, so everything in it came from new_structure.
        _take_back(repo_root, new_structure)
        raise CommandError(f"failed to move new structure: {e}") from e
    new_structure.rmdir()
    shutil.rmtree(backup, ignore_errors=True)


def repair_worktree_links(repo_root: Path, state: RepoState) -> None:
    """
    Re-point worktree admin files at their new location after the swap.
    """
    paths = [str(repo_root / b) for b in sorted({state.current_branch, state.default_branch}) if b]
    paths = [p for p in paths if Path(p).is_dir()]
    if not paths:
        return
    try:
        git.run_with_output("worktree", "repair", *paths, cwd=repo_root)
    except git.GitError as e:
        ui.warn(f"Could not repair worktree links: {e}")


def _print_summary(state: RepoState) -> None:
    root = state.root
    current = state.current_branch
    ui.echo()
    ui.success("Migration complete!")
    ui.echo("\n  Your repository structure is now:")
    ui.echo(f"    {root}/")
    ui.echo("    ├── .bare/              (git data)")
    ui.echo("    ├── .git                (pointer to .bare)")
    if state.default_branch and state.default_branch != current:
        ui.echo(f"    ├── {state.default_branch}/           (worktree - default branch)")
        ui.echo(f"    └── {current}/           (worktree - current branch)")
    else:
        ui.echo(f"    └── {current}/           (worktree - default branch)")
    ui.echo()

    if state.remote_url:
        ui.success(f"Remote URL preserved: {state.remote_url}")
    if state.stashes:
        ui.success(f"Migrated {state.stashes} stash(es)")
    if state.has_changes:
        ui.success(f"Preserved uncommitted changes in {current}/")
    if state.untracked:
        ui.success(f"Preserved {state.untracked} untracked file(s) in {current}/")

    ui.echo("\n  To create additional worktrees:")
    ui.echo(f"    cd {root}")
    ui.echo("    git wt add <branch-name> <branch-name>")
    ui.echo("\n  To view migrated stashes:")
    ui.echo(f"    cd {root}/{current}")
    ui.echo("    git stash list")
    ui.echo("\n  Navigate to your worktree:")
    ui.echo(f"    cd {root}/{current}")


def migrate_cmd(args: argparse.Namespace) -> int:
    state = inspect_repository()
    _report(state)

    if not ui.confirm(ui.yellow("This will restructure the repository. Continue? [y/N]:")):
        ui.echo("Migration cancelled.")
        return 0

    pid = os.getpid()
    new_structure = state.parent / f"{state.name}-new-{pid}"
    backup = state.parent / f"{state.name}-backup-{pid}"

    def cleanup() -> None:
        if new_structure.exists():
            shutil.rmtree(new_structure, ignore_errors=True)
        if backup.exists():
            restore_backup(backup, state.root)

    def on_signal(signum: int, frame: object) -> None:
        cleanup()
        sys.exit(1)

    previous = {sig: signal.signal(sig, on_signal) for sig in (signal.SIGINT, signal.SIGTERM)}
    success = False
    try:
        build_new_structure(state, new_structure)

        ui.echo()
        ui.info("Finalizing migration...")
        os.chdir(state.parent)
        swap_contents(state.root, new_structure, backup)
        ui.info("Cleaning up...")
        repair_worktree_links(state.root, state)
        success = True
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        if not success:
            cleanup()

    _print_summary(state)
    return 0


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser(
        "migrate",
        help="Migrate an existing repository to use worktrees [EXPERIMENTAL]",
        description="Convert the current repository into the .bare/ + worktree layout, preserving "
        "uncommitted changes, untracked files, the index and stashes.",
    )
    p.set_defaults(func=migrate_cmd)
