"""
remove.py

Responsibility: `git wt remove` and `git wt destroy`.

Both remove worktrees and delete their local branches; `destroy` also deletes
the remote branch. They share parsing, target resolution, the dry-run plan and
the removal loop; they differ in prompts and in the remote deletion step.
"""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass

from git_wt import git, picker, ui, worktree
from git_wt.commands import CommandError, entries_to_picker_items
from git_wt.preview import worktree_preview_command

log = logging.getLogger(__name__)

REMOVE = "remove"
DESTROY = "destroy"

REMOVE_EXAMPLES = """\
examples:
  git wt remove                            # Interactive selection
  git wt remove feature-1 feature-2        # Remove multiple
  git wt remove --dry-run                  # Preview in interactive mode
  git wt remove -n feature-1 feature-2     # Preview specific worktrees

Remote branches are NOT deleted. Use 'destroy' for that."""

DESTROY_EXAMPLES = """\
examples:
  git wt destroy                           # Interactive selection
  git wt destroy feature-1 feature-2       # Destroy multiple
  git wt destroy -n feature-1 feature-2    # Preview specific worktrees"""


@dataclass(frozen=True)
class RemovalTarget:
    path: str
    branch: str


def parse_removal_args(args: list[str]) -> tuple[bool, list[str]]:
    """Return (dry_run, worktree arguments)."""
    dry_run = False
    names: list[str] = []
    for a in args:
        if a in ("--dry-run", "-n"):
            dry_run = True
        else:
            names.append(a)
    return dry_run, names


def run_remove_or_destroy(args: list[str], mode: str) -> int:
    dry_run, names = parse_removal_args(args)
    entries = worktree.list_worktrees()
    if not names:
        return _remove_interactive(entries, mode, dry_run)
    return _remove_non_interactive(entries, names, mode, dry_run)


def _remove_interactive(entries: list[worktree.Entry], mode: str, dry_run: bool) -> int:
    if not entries:
        ui.echo(f"No worktrees to {mode}")
        return 0

    if mode == DESTROY:
        prompt = "Select worktree(s) to DESTROY (TAB to select multiple): "
        header = "WARNING: This will delete LOCAL and REMOTE branches\nTAB: select/deselect | ENTER: confirm | ESC: cancel"
    else:
        prompt = f"Select worktree(s) to {mode} (TAB to select multiple): "
        header = "TAB: select/deselect | ENTER: confirm | ESC: cancel\nLocal branches will also be deleted (remote branches preserved)"

    result = picker.run(
        picker.PickerConfig(
            items=entries_to_picker_items(entries),
            multi=True,
            prompt=prompt,
            header=header,
            preview_command=worktree_preview_command(mode),
        )
    )
    if result.canceled or not result.items:
        return 0

    targets = [RemovalTarget(path=item.value, branch=worktree.branch_for(entries, item.value)) for item in result.items]

    ui.echo()
    if dry_run:
        verb = "DESTROY" if mode == DESTROY else "remove"
        ui.echo(f"[DRY RUN] Would {verb} {len(targets)} worktree(s):")
    elif mode == DESTROY:
        ui.echo(ui.red("WARNING: DESTRUCTIVE OPERATION") + "\n")
        ui.echo(f"About to DESTROY {len(targets)} worktree(s):")
    else:
        ui.info(f"About to remove {len(targets)} worktree(s):")

    for i, t in enumerate(targets, start=1):
        ui.echo(f"  [{i}] {t.path} (branch: {t.branch})")

    if mode == DESTROY:
        ui.echo(
            "\nThis will:\n"
            "  - Remove worktree directories\n"
            "  - Delete local branches\n"
            "  - Delete remote branches (origin/<branch>)\n"
        )
    else:
        ui.echo("\nNote: Remote branches will NOT be deleted\n")

    if dry_run:
        ui.echo("[DRY RUN] No changes made")
        return 0

    if mode == DESTROY:
        ui.echo("This action CANNOT be undone.\n")
        if len(targets) == 1:
            if not ui.prompt_dangerous("Type the branch name to confirm:", targets[0].branch):
                ui.echo("Cancelled (confirmation did not match branch name)")
                return 0
        elif not ui.prompt_dangerous("Type 'destroy' to confirm:", "destroy"):
            ui.echo("Cancelled (must type 'destroy' to confirm)")
            return 0
    elif not ui.confirm("Continue? [y/N]:"):
        ui.echo("Cancelled")
        return 0

    ui.echo()
    return execute_removal(targets, mode)


def resolve_targets(entries: list[worktree.Entry], names: list[str]) -> list[RemovalTarget]:
    """
    Validate every name before anything is removed.
    """
    targets: list[RemovalTarget] = []
    for name in names:
        worktree.validate(entries, name)
        path = worktree.resolve(entries, name)
        targets.append(RemovalTarget(path=path, branch=worktree.branch_for(entries, path)))
    return targets


def format_dry_run(targets: list[RemovalTarget], mode: str) -> str:
    lines: list[str] = []
    if mode == DESTROY:
        lines.append(f"[DRY RUN] Would DESTROY {len(targets)} worktree(s):")
        for t in targets:
            if t.branch:
                lines.append(f"  - {t.path} (branch: {t.branch})")
                lines.append("    - Remove worktree directory")
                lines.append(f"    - Delete local branch: {t.branch}")
                lines.append(f"    - Delete remote branch: origin/{t.branch}")
            else:
                lines.append(f"  - {t.path}")
    else:
        lines.append(f"[DRY RUN] Would remove {len(targets)} worktree(s):")
        for t in targets:
            lines.append(f"  - {t.path} (branch: {t.branch})" if t.branch else f"  - {t.path}")
    lines.append("")
    lines.append("[DRY RUN] No changes made")
    return "\n".join(lines)


def _remove_non_interactive(entries: list[worktree.Entry], names: list[str], mode: str, dry_run: bool) -> int:
    targets = resolve_targets(entries, names)

    if dry_run:
        ui.echo(format_dry_run(targets, mode))
        return 0

    if mode == DESTROY:
        first = targets[0]
        extra = f" and delete its remote branch [{first.branch}]" if first.branch else ""
        question = f"Are you sure you want to destroy '{os.path.basename(first.path)}' workspace{extra}?"
        if len(targets) > 1:
            question += f" (and {len(targets) - 1} more)"
        if not ui.confirm(ui.yellow(question) + " [y/N]:"):
            ui.echo("Cancelled")
            raise CommandError("cancelled")

    return execute_removal(targets, mode)


def execute_removal(targets: list[RemovalTarget], mode: str) -> int:
    succeeded = 0
    failed = 0
    many = len(targets) > 1

    for i, t in enumerate(targets, start=1):
        if many:
            verb = "Destroying" if mode == DESTROY else "Removing"
            ui.info(f"[{i}/{len(targets)}] {verb} {t.path}...")
        try:
            remove_single_worktree(t, mode, show_prefix=many)
        except git.GitError as e:
            log.debug("removal of %s failed: %s", t.path, e)
            failed += 1
        else:
            succeeded += 1

    if many:
        ui.echo()
        ui.echo(f"Summary: {ui.green(f'{succeeded} succeeded')}, {ui.red(f'{failed} failed')}")

    if failed:
        raise CommandError(f"{failed} removal(s) failed")
    return 0


def remove_single_worktree(target: RemovalTarget, mode: str, *, show_prefix: bool = False) -> None:
    prefix = "  " if show_prefix else ""
    action = "Destroyed" if mode == DESTROY else "Removed"

    try:
        git.run("worktree", "remove", "-f", target.path)
    except git.GitError:
        verb = "destroy" if mode == DESTROY else "remove"
        ui.echo(prefix + ui.red(f"Failed to {verb} worktree '{target.path}'"))
        raise

    if not target.branch or target.branch == worktree.DETACHED:
        ui.echo(prefix + ui.green(f"{action} worktree '{target.path}'"))
        return

    try:
        git.run("branch", "-D", target.branch)
    except git.GitError as e:
        log.warning("could not delete local branch %s: %s", target.branch, e)

    if mode == DESTROY:
        status = delete_remote_branch(target.branch)
        ui.echo(prefix + ui.green(f"{action} worktree '{target.path}' and deleted branch '{target.branch}' ({status})"))
    else:
        ui.echo(prefix + ui.green(f"{action} worktree '{target.path}' and deleted local branch '{target.branch}'"))


def delete_remote_branch(branch: str) -> str:
    if not git.succeeds("ls-remote", "--exit-code", "--heads", "origin", branch):
        return "no remote branch"
    try:
        git.run("push", "origin", "--delete", branch)
    except git.GitError:
        return "remote deletion failed"
    return "local and remote"


def register(sub: argparse._SubParsersAction) -> None:
    for name, aliases, short, epilog in (
        (REMOVE, ["rm"], "Remove worktree(s) and delete local branch(es)", REMOVE_EXAMPLES),
        (DESTROY, [], "Remove worktree(s) and delete LOCAL and REMOTE branch(es)", DESTROY_EXAMPLES),
    ):
        p = sub.add_parser(
            name,
            aliases=aliases,
            help=short,
            description=short + ". With no arguments, opens an interactive picker (TAB to select multiple).",
            epilog=epilog,
            usage=f"git-wt {name} [-n|--dry-run] [<worktree>...]",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        p.add_argument("args", nargs=argparse.REMAINDER, help="Worktree paths or names, and -n/--dry-run")
        p.set_defaults(func=lambda ns, mode=name: run_remove_or_destroy(ns.args, mode))
