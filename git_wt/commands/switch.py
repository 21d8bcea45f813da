"""
switch.py

Responsibility: `git wt switch` - pick a worktree and print its path.

Intended for shell integration: `cd $(git wt switch)`.
"""

from __future__ import annotations

import argparse

from git_wt import picker, ui, worktree
from git_wt.commands import entries_to_picker_items
from git_wt.preview import worktree_preview_command


def switch_cmd(args: argparse.Namespace) -> int:
    entries = worktree.list_worktrees()
    if not entries:
        ui.echo("No worktrees available")
        return 0

    result = picker.run(
        picker.PickerConfig(
            items=entries_to_picker_items(entries),
            prompt="Switch to worktree: ",
            preview_command=worktree_preview_command("switch"),
        )
    )
    if not result.canceled and result.items:
        # Bare path on stdout for `cd $(...)`.
        print(result.items[0].value)
    return 0


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser(
        "switch",
        help="Interactively switch to a different worktree",
        description=(
            "Interactively select a worktree with a fuzzy picker and print its path.\n"
            "Use with cd to change directories: cd $(git wt switch)"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.set_defaults(func=switch_cmd)
