"""
completion.py

Responsibility: render shell completion scripts (bash, zsh, fish) for the CLI.

The command table is read from the argparse parser, so completions list exactly
the visible sub-commands (and their aliases) with their help text.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field

from jinja2 import Environment, PackageLoader, StrictUndefined

from git_wt import GitWtError

PROG = "git-wt"
SHELLS = ("bash", "zsh", "fish")

# Sub-commands whose positional arguments are worktree names.
WORKTREE_COMMANDS = ("remove", "rm", "destroy")


class CompletionError(GitWtError):
    pass


@dataclass(frozen=True)
class CommandInfo:
    name: str
    help: str
    aliases: tuple[str, ...] = ()
    parser: argparse.ArgumentParser | None = field(default=None, compare=False, repr=False)

    @property
    def names(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)


def _subparsers(parser: argparse.ArgumentParser) -> argparse._SubParsersAction:
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction):
            return action
    raise CompletionError("parser has no sub-commands")


def command_table(parser: argparse.ArgumentParser) -> list[CommandInfo]:
    """
    Visible sub-commands in registration order. Commands registered without `help` are hidden.
    """
    sub = _subparsers(parser)
    table: list[CommandInfo] = []
    for choice in sub._choices_actions:
        name = choice.dest
        target = sub.choices[name]
        aliases = tuple(alias for alias, p in sub.choices.items() if p is target and alias != name)
        table.append(CommandInfo(name=name, help=choice.help or "", aliases=aliases, parser=target))
    return table


def _zsh_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace(":", "\\:").replace("'", "'\\''")


def _fish_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("'", "\\'")


def _environment() -> Environment:
    env = Environment(
        loader=PackageLoader("git_wt", "templates"),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    env.filters["zsh_escape"] = _zsh_escape
    env.filters["fish_escape"] = _fish_escape
    return env


def render_completion(shell: str, parser: argparse.ArgumentParser) -> str:
    if shell not in SHELLS:
        raise CompletionError(f"unsupported shell '{shell}' (expected one of: {', '.join(SHELLS)})")
    template = _environment().get_template(f"completions/{shell}.j2")
    return template.render(
        prog=PROG,
        commands=command_table(parser),
        worktree_commands=WORKTREE_COMMANDS,
        shells=SHELLS,
    )
