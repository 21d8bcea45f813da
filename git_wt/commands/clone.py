"""
clone.py

Responsibility: `git wt clone` - clone a repository into the bare worktree layout.
"""

from __future__ import annotations

import argparse
import logging
import os
import shutil
from pathlib import Path

from git_wt import git, ui, worktree
from git_wt.commands import GITDIR_POINTER, CommandError, cleanup_local_branch_refs, configure_bare_repo

log = logging.getLogger(__name__)

EXAMPLES = """\
examples:
  git wt clone https://github.com/user/repo.git
  git wt clone git@github.com:user/repo.git my-repo

Creates .bare directory structure and initial worktree for default branch."""


def folder_name_for(repo_url: str) -> str:
    """`https://host/user/repo.git` -> `repo`."""
    base = repo_url.rstrip("/").replace(":", "/").rsplit("/", 1)[-1]
    return base.removesuffix(".git")


def clone_cmd(args: argparse.Namespace) -> int:
    repo_url: str = args.repository
    folder = args.folder or folder_name_for(repo_url)
    target = Path(folder)

    if target.is_dir():
        raise CommandError(f"directory '{folder}' already exists")

    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CommandError(f"failed to create directory '{folder}'") from e

    origin_cwd = os.getcwd()
    os.chdir(target)

    try:
        git.run("clone", "--bare", repo_url, ".bare")
    except git.GitError:
        ui.error("Failed to clone repository")
        os.chdir(origin_cwd)
        shutil.rmtree(target, ignore_errors=True)
        raise

    Path(".git").write_text(GITDIR_POINTER, encoding="utf-8")
    configure_bare_repo()

    try:
        git.run("fetch", "--all")
    except git.GitError:
        ui.warn("Failed to fetch all branches")

    cleanup_local_branch_refs()

    ui.info("Discovering default branch...")
    default_branch = worktree.default_branch()

    if not default_branch:
        ui.warn("Could not discover default branch from remote")
        ui.echo("Available branches:")
        try:
            git.run("branch", "-r")
        except git.GitError as e:
            log.debug("could not list remote branches: %s", e)
        default_branch = ui.prompt_input("Enter default branch name (or press Enter to skip):")

    if default_branch:
        ui.info(f"Creating initial worktree for '{default_branch}'...")
        try:
            git.run("worktree", "add", "-B", default_branch, default_branch, f"origin/{default_branch}")
        except git.GitError:
            ui.warn("Failed to create worktree for default branch")
    else:
        ui.echo("No worktree created. Use 'git wt add' to create worktrees.")

    ui.echo()
    ui.success("Repository cloned successfully")
    ui.echo("\n  Repository structure:")
    ui.echo(f"    {folder}/")
    ui.echo("    ├── .bare/              (git data)")
    ui.echo("    ├── .git                (pointer to .bare)")
    if default_branch:
        ui.echo(f"    └── {default_branch}/           (worktree)")
    ui.echo("\n  To create additional worktrees:")
    ui.echo(f"    cd {folder}")
    ui.echo("    git wt add")
    return 0


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser(
        "clone",
        help="Clone a repository with worktree structure",
        description="Clone a repository with worktree structure",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("repository", metavar="repository-url", help="Repository to clone")
    p.add_argument("folder", nargs="?", default=None, metavar="folder-name", help="Target directory")
    p.set_defaults(func=clone_cmd)
