"""
worktree.py

Responsibility: model the worktrees of the current repository.

- Parse `git worktree list --porcelain` into `Entry` records (the `.bare` entry is dropped).
- Resolve user input (full path, workspace name, relative path) to a known worktree.
- Discover the bare root, the default remote and the default branch.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from git_wt import GitWtError, git

DETACHED = "(detached)"


class WorktreeError(GitWtError):
    pass


@dataclass(frozen=True)
class Entry:
    """A single worktree from `git worktree list --porcelain`."""

    path: str
    branch: str = ""
    head: str = ""  # short SHA (7 chars)


def _keep(path: str) -> bool:
    return bool(path) and ".bare" not in path


def parse_porcelain(output: str) -> list[Entry]:
    """
    Parse porcelain output into entries, excluding paths that contain ".bare".
    """
    if not output:
        return []

    entries: list[Entry] = []
    path = branch = head = ""

    for line in output.split("\n"):
        if line.startswith("worktree "):
            path = line[len("worktree ") :]
        elif line.startswith("HEAD "):
            head = line[len("HEAD ") :][:7]
        elif line.startswith("branch "):
            branch = line[len("branch ") :].removeprefix("refs/heads/")
        elif line == "detached":
            branch = DETACHED
        elif line == "":
            if _keep(path):
                entries.append(Entry(path=path, branch=branch, head=head))
            path = branch = head = ""

    # Last block may not be followed by a blank line.
    if _keep(path):
        entries.append(Entry(path=path, branch=branch, head=head))

    return entries


def list_worktrees() -> list[Entry]:
    return parse_porcelain(git.query("worktree", "list", "--porcelain"))


def find_by_branch(entries: list[Entry], branch: str) -> Entry | None:
    for e in entries:
        if e.branch == branch:
            return e
    return None


def resolve(entries: list[Entry], value: str) -> str:
    """
    Resolve a worktree identifier to the full worktree path.

    Tried in order: exact path, workspace name (basename), realpath.
    """
    for e in entries:
        if e.path == value:
            return e.path

    for e in entries:
        if os.path.basename(e.path) == value:
            return e.path

    if value and os.path.exists(value):
        real = os.path.abspath(os.path.realpath(value))
        for e in entries:
            if e.path == real:
                return real

    raise WorktreeError(f"'{value}' is not a valid worktree")


def validate(entries: list[Entry], value: str) -> None:
    """
    Raise a WorktreeError listing the available worktrees when `value` does not resolve.
    """
    try:
        resolve(entries, value)
    except WorktreeError:
        names = "\n  ".join(os.path.basename(e.path) for e in entries)
        raise WorktreeError(f"'{value}' is not a valid worktree. Available worktrees:\n  {names}") from None


def branch_for(entries: list[Entry], path: str) -> str:
    try:
        resolved = resolve(entries, path)
    except WorktreeError:
        resolved = path
    for e in entries:
        if e.path == resolved:
            return e.branch
    return ""


def bare_root() -> str:
    """
    Return the directory that holds `.bare/` (the git common dir with `/.bare` stripped).
    """
    try:
        common_dir = git.query("rev-parse", "--git-common-dir")
    except git.GitError as e:
        raise WorktreeError("not in a git repository") from e

    resolved = str(Path(common_dir).resolve())
    suffix = os.sep + ".bare"
    if resolved.endswith(suffix):
        resolved = resolved[: -len(suffix)]
    return resolved


def default_remote() -> str:
    """
    Pick the remote to treat as upstream.

    No remotes -> "". A single remote -> that remote. Several -> the current
    branch's configured remote, then "origin", then the first one listed.
    """
    try:
        remotes = git.query_lines("remote")
    except git.GitError:
        return ""
    if not remotes:
        return ""
    if len(remotes) == 1:
        return remotes[0]

    try:
        current = git.query("branch", "--show-current")
    except git.GitError:
        current = ""
    if current:
        try:
            configured = git.query("config", f"branch.{current}.remote")
        except git.GitError:
            configured = ""
        if configured in remotes:
            return configured

    if "origin" in remotes:
        return "origin"
    return remotes[0]


def default_branch(remote: str = "") -> str:
    """
    Return the remote's default branch, preferring the local symbolic ref over a network call.
    """
    remote = remote or "origin"
    prefix = f"refs/remotes/{remote}/"

    try:
        ref = git.query("symbolic-ref", f"{prefix}HEAD")
    except git.GitError:
        ref = ""
    if ref:
        return ref.removeprefix(prefix)

    try:
        out = git.query_combined("remote", "show", remote)
    except git.GitError:
        return ""
    for line in out.split("\n"):
        line = line.strip()
        if line.startswith("HEAD branch:"):
            branch = line[len("HEAD branch:") :].strip()
            return "" if branch == "(unknown)" else branch
    return ""
