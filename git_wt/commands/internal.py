"""
internal.py

Responsibility: hidden sub-commands used by tooling rather than people.

- `_preview worktree|branch`: fzf preview callbacks
- `completion bash|zsh|fish`: print a completion script
- `man <dir>`: write man pages

They are registered without `help`, which keeps them out of help output and
out of generated completions.
"""

from __future__ import annotations

import argparse
import sys

from git_wt import ui
from git_wt.completion import SHELLS, render_completion
from git_wt.manpage import write_man_pages
from git_wt.preview import generate_branch_preview, generate_worktree_preview


def preview_worktree_cmd(args: argparse.Namespace) -> int:
    sys.stdout.write(generate_worktree_preview(args.path, args.mode))
    return 0


def preview_branch_cmd(args: argparse.Namespace) -> int:
    sys.stdout.write(generate_branch_preview(args.name))
    return 0


def completion_cmd(args: argparse.Namespace) -> int:
    sys.stdout.write(render_completion(args.shell, args.root_parser))
    return 0


def man_cmd(args: argparse.Namespace) -> int:
    for path in write_man_pages(args.directory, args.root_parser):
        ui.echo(str(path))
    return 0


def register(sub: argparse._SubParsersAction, root: argparse.ArgumentParser) -> None:
    preview = sub.add_parser("_preview")
    preview_sub = preview.add_subparsers(dest="preview_kind", required=True)

    wt = preview_sub.add_parser("worktree")
    wt.add_argument("path")
    wt.add_argument("mode", nargs="?", default="remove")
    wt.set_defaults(func=preview_worktree_cmd)

    br = preview_sub.add_parser("branch")
    br.add_argument("name")
    br.set_defaults(func=preview_branch_cmd)

    comp = sub.add_parser("completion", description="Generate shell completion script")
    comp.add_argument("shell", choices=SHELLS)
    comp.set_defaults(func=completion_cmd, root_parser=root)

    man = sub.add_parser("man", description="Generate man pages")
    man.add_argument("directory")
    man.set_defaults(func=man_cmd, root_parser=root)
