"""
update.py

Responsibility: `git wt update` - fetch everything and pull the default branch's worktree.
"""

from __future__ import annotations

import argparse
import sys

from git_wt import git, ui, worktree
from git_wt.commands import CommandError


def update_cmd(args: argparse.Namespace) -> int:
    ui.spin("Fetching from all remotes", lambda: git.run_with_output("fetch", "--all", "--prune", "--prune-tags"))

    remote = worktree.default_remote()
    branch = worktree.default_branch(remote)
    if not branch:
        raise CommandError("could not determine default branch from remote")

    entry = worktree.find_by_branch(worktree.list_worktrees(), branch)
    if entry is None:
        ui.echo("Available worktrees:", err=True)
        sys.stderr.flush()
        git.run("worktree", "list")
        raise CommandError(f"no worktree found for default branch '{branch}'")

    ui.echo(f"Updating {ui.accent(branch)} in {ui.muted(entry.path)}")
    git.run("pull", cwd=entry.path)
    return 0


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser(
        "update",
        aliases=["u"],
        help="Fetch and update the default branch worktree",
        description="Fetch all remotes (with prune) and pull the default branch (main/master) in its worktree.",
    )
    p.set_defaults(func=update_cmd)
