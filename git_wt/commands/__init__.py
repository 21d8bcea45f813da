"""
commands package

One module per sub-command. Each module exposes `register(sub)`, which adds its
parser(s) to the CLI's sub-parser action and binds `func` via `set_defaults`.

Helpers shared by several commands live here.
"""

from __future__ import annotations

import logging
import os

from git_wt import GitWtError, git
from git_wt.picker import Item
from git_wt.worktree import DETACHED, Entry

log = logging.getLogger(__name__)

GITDIR_POINTER = "gitdir: ./.bare\n"


class CommandError(GitWtError):
    pass


def configure_bare_repo(cwd: str | None = None, *, relative_paths: bool = True) -> None:
    """
    Set the config keys a `.bare/` + `.git` layout needs.
    """
    git.run_with_output("config", "remote.origin.fetch", "+refs/heads/*:refs/remotes/origin/*", cwd=cwd)
    git.run_with_output("config", "core.logallrefupdates", "true", cwd=cwd)
    if relative_paths:
        git.run_with_output("config", "worktree.useRelativePaths", "true", cwd=cwd)


def cleanup_local_branch_refs(cwd: str | None = None) -> None:
    """
    Delete the local branch refs a bare clone copies from the remote.

    Worktrees create their own local branches; stale copies would shadow them.
    """
    try:
        refs = git.query_lines("for-each-ref", "--format=%(refname:short)", "refs/heads", cwd=cwd)
    except git.GitError:
        return
    for ref in refs:
        ref = ref.strip()
        if not ref:
            continue
        try:
            git.run_with_output("branch", "-D", ref, cwd=cwd)
        except git.GitError as e:
            log.debug("could not delete local branch %s: %s", ref, e)


def entries_to_picker_items(entries: list[Entry]) -> list[Item]:
    home = os.path.expanduser("~")
    items: list[Item] = []
    for e in entries:
        name = os.path.basename(e.path)
        if e.branch == DETACHED:
            label = f"{name} (detached HEAD)"
        elif e.branch:
            label = f"{name} [{e.branch}]"
        else:
            label = name

        display = e.path
        if home and home != "~" and display.startswith(home + os.sep):
            display = "~" + display[len(home) :]

        items.append(Item(label=label, value=e.path, desc=display))
    return items
