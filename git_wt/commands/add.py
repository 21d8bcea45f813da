"""
add.py

Responsibility: `git wt add` - create a worktree.

With no arguments an interactive picker offers every remote branch plus a
"Create new branch" entry. With arguments everything is passed through to
`git worktree add`; when `-b/-B` names a branch that exists on origin, upstream
tracking is configured afterwards.
"""

from __future__ import annotations

import argparse
import logging
import os

from git_wt import git, picker, ui, worktree
from git_wt.commands import CommandError
from git_wt.preview import CREATE_NEW, branch_preview_command

log = logging.getLogger(__name__)

DESCRIPTION = """\
Create a new worktree. With no arguments, opens an interactive picker to
select from remote branches or create a new branch. All git worktree add
flags are supported (-b, -B, -d, --lock, --quiet, etc).

Always fetches from origin before creating the worktree. When using -b/-B,
upstream tracking is set automatically if the branch exists on origin."""

EXAMPLES = """\
examples:
  git wt add                               # Interactive selection
  git wt add feature origin/feature        # From remote branch
  git wt add -b new-feature new-feature    # New branch
  git wt add --detach hotfix HEAD~5        # Detached HEAD worktree"""

# git worktree add options that take a separate value argument.
_VALUE_FLAGS = ("-b", "-B", "--reason")


def run_add(args: list[str]) -> int:
    root = worktree.bare_root()
    try:
        os.chdir(root)
    except OSError as e:
        raise CommandError(f"failed to change to bare root: {e}") from e

    ui.info("Fetching from origin...")
    git.run("fetch", "origin", "--prune")

    if not args:
        return _add_interactive()
    return _add_direct(args)


def _remote_branches() -> list[str]:
    prefix = "refs/remotes/origin/"
    try:
        lines = git.query_lines("for-each-ref", "--format=%(refname)", "refs/remotes/origin")
    except git.GitError as e:
        raise CommandError("failed to list remote branches") from e
    return [line.removeprefix(prefix) for line in lines if line.startswith(prefix) and line != prefix + "HEAD"]


def _add_interactive() -> int:
    items = [picker.Item(label="Create new branch", value=CREATE_NEW)]
    items.extend(picker.Item(label=b, value=b) for b in _remote_branches())

    result = picker.run(
        picker.PickerConfig(
            items=items,
            prompt="Select branch or create new: ",
            preview_command=branch_preview_command(),
        )
    )
    if result.canceled or not result.items:
        return 0

    selected = result.items[0]
    if selected.value == CREATE_NEW:
        return _create_new_branch()

    branch = selected.value
    ui.info(f"Creating worktree for '{branch}' from origin/{branch}...")
    git.run("worktree", "add", "-B", branch, branch, f"origin/{branch}")

    ui.echo(f"Setting upstream to origin/{branch}")
    git.run("branch", f"--set-upstream-to=origin/{branch}", branch)
    return 0


def _create_new_branch() -> int:
    branch = ui.prompt_input("Enter new branch name:")
    if not branch:
        raise CommandError("branch name cannot be empty")

    if not git.succeeds("check-ref-format", "--branch", branch):
        raise CommandError(f"invalid branch name '{branch}'")

    path = ui.prompt_input(f"Enter worktree path [default: {branch}]:") or branch

    ui.info(f"Creating new branch '{branch}' and worktree at '{path}'...")
    git.run("worktree", "add", "-b", branch, path)
    return 0


def split_add_args(args: list[str]) -> tuple[list[str], str]:
    """
    Return (git worktree add arguments, branch named by -b/-B or "").
    """
    git_args: list[str] = []
    branch = ""
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in _VALUE_FLAGS and i + 1 < len(args):
            if arg in ("-b", "-B"):
                branch = args[i + 1]
            git_args.extend([arg, args[i + 1]])
            i += 2
            continue
        git_args.append(arg)
        i += 1
    return git_args, branch


def _add_direct(args: list[str]) -> int:
    git_args, branch = split_add_args(args)
    git.run("worktree", "add", *git_args)

    if not branch:
        return 0

    if git.succeeds("rev-parse", "--verify", f"origin/{branch}"):
        ui.echo(f"Setting upstream to origin/{branch}")
        git.run("branch", f"--set-upstream-to=origin/{branch}", branch)
    else:
        ui.echo(
            f"\nBranch '{branch}' created locally.\n"
            f"To push and set upstream:\n"
            f"  git push -u origin {branch}"
        )
    return 0


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser(
        "add",
        help="Create a new worktree",
        description=DESCRIPTION,
        epilog=EXAMPLES,
        usage="git-wt add [options] [<path>] [<commit-ish>]",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("args", nargs=argparse.REMAINDER, help="Arguments passed to git worktree add")
    p.set_defaults(func=lambda ns: run_add(ns.args))
