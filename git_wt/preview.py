"""
preview.py

Responsibility: build the text shown in the picker's preview pane.

fzf runs the preview as a separate process, so the preview commands call back
into this program through the hidden `_preview` sub-command.
"""

from __future__ import annotations

import shlex
import sys

from git_wt import git, ui, worktree

CREATE_NEW = "__create_new__"

CREATE_NEW_TEXT = (
    "Create a new branch and worktree\n\n"
    "You will be prompted to enter:\n"
    "  - Branch name\n"
    "  - Worktree path (optional, defaults to branch name)"
)

_LOG_FORMAT = "--pretty=format:%C(auto)%cd %h%d %s"


def _recent_commits(ref: str, cwd: str | None = None) -> str:
    return git.query("log", "--oneline", "--graph", "--date=short", "--color=always", _LOG_FORMAT, ref, "-10", "--", cwd=cwd)


def _indent(text: str) -> str:
    return "".join(f"  {line}\n" for line in text.split("\n"))


def generate_worktree_preview(path: str, mode: str, entries: list[worktree.Entry] | None = None) -> str:
    """
    Render the preview for a worktree: path, branch, status and recent commits.

    In "destroy" mode the preview also lists what will be deleted.
    """
    out: list[str] = []

    if mode == "destroy":
        out.append(ui.bold(ui.red("DESTROY MODE")) + "\n\n")

    out.append(ui.bold(ui.accent("Worktree")) + "\n")
    out.append(f"  {ui.subtle('Path:')} {path}\n")

    if entries is None:
        try:
            entries = worktree.list_worktrees()
        except git.GitError:
            entries = []
    branch = worktree.branch_for(entries, path)
    if branch:
        out.append(f"  {ui.subtle('Branch:')} {branch}\n")

    if mode == "destroy":
        out.append("\n")
        out.append(ui.yellow("  - Remove worktree directory") + "\n")
        out.append(ui.yellow("  - Delete local branch") + "\n")
        out.append(ui.yellow(f"  - Delete remote branch (origin/{branch})") + "\n")

    out.append("\n" + ui.bold(ui.accent("Status")) + "\n")
    try:
        out.append(_indent(git.query("status", "--short", "--branch", cwd=path)))
    except git.GitError:
        out.append("  (unable to get status)\n")

    out.append("\n" + ui.bold(ui.accent("Recent Commits")) + "\n")
    if branch:
        try:
            out.append(_indent(_recent_commits(branch, cwd=path)))
        except git.GitError:
            out.append("  (unable to get log)\n")

    return "".join(out)


def generate_branch_preview(branch: str, remote: str = "origin") -> str:
    if branch == CREATE_NEW:
        return CREATE_NEW_TEXT
    try:
        log = _recent_commits(f"{remote}/{branch}")
    except git.GitError:
        log = ""
    return f"Branch: {branch}\n\nRecent commits:\n{log}"


def self_command() -> str:
    """
    Shell-quoted command line that re-invokes this program.
    """
    return shlex.join([sys.executable, "-m", "git_wt"])


def worktree_preview_command(mode: str) -> str:
    # fzf substitutes {1} with the first tab-delimited field (the worktree path).
    return f"{self_command()} _preview worktree {{1}} {shlex.quote(mode)}"


def branch_preview_command() -> str:
    return f"{self_command()} _preview branch {{1}}"
