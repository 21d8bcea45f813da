"""
manpage.py

Responsibility: write section-1 man pages for the CLI and each visible sub-command.
"""

from __future__ import annotations

import argparse
import datetime as dt
from pathlib import Path

from jinja2 import Environment, PackageLoader, StrictUndefined

from git_wt import __version__
from git_wt.completion import PROG, command_table


def roff_escape(text: str) -> str:
    """
    Escape backslashes and protect lines that roff would read as requests.
    """
    lines = []
    for line in text.replace("\\", "\\e").split("\n"):
        if line.startswith((".", "'")):
            line = "\\&" + line
        lines.append(line)
    return "\n".join(lines)


def _environment() -> Environment:
    env = Environment(
        loader=PackageLoader("git_wt", "templates"),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    env.filters["roff"] = roff_escape
    return env


def _page(parser: argparse.ArgumentParser, title: str, summary: str, see_also: list[str], date: str) -> str:
    template = _environment().get_template("man/page.j2")
    return template.render(
        prog=PROG,
        version=__version__,
        title=title,
        summary=summary,
        usage=parser.format_usage().removeprefix("usage: ").strip(),
        body=parser.format_help().strip(),
        see_also=see_also,
        date=date,
    )


def write_man_pages(directory: str | Path, parser: argparse.ArgumentParser, *, date: str | None = None) -> list[Path]:
    """
    Write `git-wt.1` and `git-wt-<command>.1` into directory; return the written paths in order.
    """
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    date = date or dt.date.today().isoformat()

    commands = command_table(parser)
    written: list[Path] = []

    root_path = out_dir / f"{PROG}.1"
    root_path.write_text(
        _page(parser, PROG, "Git worktree management tool", [f"{PROG}-{c.name}(1)" for c in commands], date),
        encoding="utf-8",
    )
    written.append(root_path)

    for c in commands:
        path = out_dir / f"{PROG}-{c.name}.1"
        path.write_text(_page(c.parser, f"{PROG}-{c.name}", c.help, [f"{PROG}(1)"], date), encoding="utf-8")
        written.append(path)

    return written
