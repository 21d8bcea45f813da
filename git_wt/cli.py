"""
cli.py

Responsibility: CLI entrypoint for git-wt.

Dispatch order for `git-wt <command> [args...]`:
1) No command: print help
2) Pass-through commands (list, lock, unlock, move, prune, repair): `git worktree <command> args...`
3) Raw-argument commands (add, remove/rm, destroy): their own argument handling,
   because they accept git's flags verbatim
4) Unknown commands: passed to `git worktree` as well
5) Everything else: argparse, then `args.func(args)`

Errors raised as `GitWtError` are printed as `Error: <message>` with exit status 1.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable

from rich.logging import RichHandler

from git_wt import GitWtError, __version__, git, ui
from git_wt.commands import add, clone, internal, migrate, remove, switch, update
from git_wt.commands import formula as formula_cmd
from git_wt.config import load_settings

log = logging.getLogger(__name__)

DESCRIPTION = """\
Git worktree management using the bare repository pattern.

Uses a .bare/ directory for git data with each branch in its own worktree
directory. Run 'git-wt <command> --help' for details on any command.

Native git worktree commands (list, lock, unlock, move, prune, repair) are
also supported as pass-throughs."""

PASSTHROUGH = {
    "list": "List all worktrees (git worktree list)",
    "lock": "Pass-through to git worktree lock",
    "unlock": "Pass-through to git worktree unlock",
    "move": "Pass-through to git worktree move",
    "prune": "Pass-through to git worktree prune",
    "repair": "Pass-through to git worktree repair",
}

RAW_COMMANDS: dict[str, Callable[[list[str]], int]] = {
    "add": add.run_add,
    "remove": lambda a: remove.run_remove_or_destroy(a, remove.REMOVE),
    "rm": lambda a: remove.run_remove_or_destroy(a, remove.REMOVE),
    "destroy": lambda a: remove.run_remove_or_destroy(a, remove.DESTROY),
}

_HELP_FLAGS = ("-h", "--help")


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else load_settings().log_level
    logger = logging.getLogger("git_wt")
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=ui.stderr, show_time=False, show_path=False, markup=False))
    logger.setLevel(level)
    logger.propagate = False


def _subparsers(parser: argparse.ArgumentParser) -> argparse._SubParsersAction:
    return next(a for a in parser._actions if isinstance(a, argparse._SubParsersAction))


def is_known_command(parser: argparse.ArgumentParser, name: str) -> bool:
    return name in _subparsers(parser).choices or name in ("help", *_HELP_FLAGS)


def help_cmd(args: argparse.Namespace) -> int:
    parser: argparse.ArgumentParser = args.root_parser
    if args.topic:
        choices = _subparsers(parser).choices
        if args.topic not in choices:
            raise GitWtError(f"unknown command '{args.topic}'")
        choices[args.topic].print_help()
    else:
        parser.print_help()
    return 0


def _passthrough(argv: list[str]) -> int:
    try:
        git.run("worktree", *argv)
    except git.GitError as e:
        # git has already reported the problem on stderr.
        log.debug("pass-through failed: %s", e)
        return e.returncode or 1
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="git-wt",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--version", action="version", version=f"git-wt {__version__}")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging on stderr")
    sub = p.add_subparsers(dest="command", metavar="<command>", title="commands")

    add.register(sub)
    clone.register(sub)
    remove.register(sub)
    switch.register(sub)
    update.register(sub)
    migrate.register(sub)

    for name, short in PASSTHROUGH.items():
        pt = sub.add_parser(name, help=short, description=short, add_help=True)
        pt.add_argument("args", nargs=argparse.REMAINDER, help=f"Arguments passed to git worktree {name}")
        pt.set_defaults(func=lambda ns, name=name: _passthrough([name, *ns.args]))

    h = sub.add_parser("help", help="Show help for git-wt or one of its commands")
    h.add_argument("topic", nargs="?", default=None, metavar="command")
    h.set_defaults(func=help_cmd, root_parser=p)

    internal.register(sub, p)
    formula_cmd.register(sub, p)
    return p


def _dispatch(parser: argparse.ArgumentParser, argv: list[str]) -> int:
    if not argv:
        parser.print_help()
        return 0

    command, rest = argv[0], argv[1:]
    wants_help = any(a in _HELP_FLAGS for a in rest)

    if command in PASSTHROUGH and not wants_help:
        return _passthrough(argv)
    if command in RAW_COMMANDS and not wants_help:
        return RAW_COMMANDS[command](rest)
    if not command.startswith("-") and not is_known_command(parser, command):
        return _passthrough(argv)

    args = parser.parse_args(argv)
    if getattr(args, "func", None) is None:
        parser.print_help()
        return 0
    return int(args.func(args))


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    verbose = False
    while argv and argv[0] in ("-v", "--verbose"):
        verbose = True
        argv.pop(0)
    _configure_logging(verbose)

    parser = _build_parser()
    try:
        return _dispatch(parser, argv)
    except GitWtError as e:
        ui.error(str(e))
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
