"""
ui.py

Responsibility: everything printed to the terminal or read from the user.

Output goes through `rich` consoles with markup and highlighting disabled, so
user data (branch names, paths, "[DRY RUN]" banners) is printed verbatim.
Styling is dropped entirely when NO_COLOR is set.
"""

from __future__ import annotations

import sys
from typing import Callable, TypeVar

from rich.console import Console
from rich.style import Style
from rich.text import Text

from git_wt.config import load_settings

T = TypeVar("T")

ACCENT = Style(color="#5eead4")
SUCCESS = Style(color="#4ade80")
ERROR = Style(color="#f87171")
WARN = Style(color="#fbbf24")
SUBTLE = Style(color="#a8a29e")
MUTED = Style(color="#78716c")
HIGHLIGHT = Style(color="#c4b5fd")
BOLD = Style(bold=True)
DIM = Style(dim=True)

# file=None makes rich resolve sys.stdout / sys.stderr on every write.
stdout = Console(markup=False, highlight=False, emoji=False, soft_wrap=True)
stderr = Console(stderr=True, markup=False, highlight=False, emoji=False, soft_wrap=True)


def _no_color() -> bool:
    return load_settings().no_color


def paint(text: str, style: Style) -> str:
    """
    Return `text` wrapped in the ANSI escapes for `style` (unchanged under NO_COLOR).
    """
    if _no_color():
        return text
    console = Console(force_terminal=True, color_system="truecolor", markup=False, highlight=False, width=10_000)
    with console.capture() as capture:
        console.print(Text(text, style=style), end="")
    return capture.get()


def green(s: str) -> str:
    return paint(s, SUCCESS)


def red(s: str) -> str:
    return paint(s, ERROR)


def yellow(s: str) -> str:
    return paint(s, WARN)


def accent(s: str) -> str:
    return paint(s, ACCENT)


def subtle(s: str) -> str:
    return paint(s, SUBTLE)


def muted(s: str) -> str:
    return paint(s, MUTED)


def highlight(s: str) -> str:
    return paint(s, HIGHLIGHT)


def bold(s: str) -> str:
    return paint(s, BOLD)


def dim(s: str) -> str:
    return paint(s, DIM)


def _styled(text: str, style: Style) -> Text:
    return Text(text) if _no_color() else Text(text, style=style)


def echo(*parts: str | Text, err: bool = False, end: str = "\n") -> None:
    """
    Print parts separated by spaces.

    Strings may carry ANSI escapes from `paint`; they are decoded so rich can drop
    them when the stream is not a terminal.
    """
    console = stderr if err else stdout
    console.print(*(_decode(p) for p in parts), end=end, no_wrap=True, crop=False)


def _decode(part: str | Text) -> Text:
    if isinstance(part, Text):
        return part
    # from_ansi splits on lines and drops trailing newlines.
    body = part.rstrip("\n")
    text = Text.from_ansi(body)
    text.append("\n" * (len(part) - len(body)))
    return text


def error(msg: str) -> None:
    echo(_styled("Error:", ERROR), msg, err=True)


def warn(msg: str) -> None:
    echo(_styled("Warning:", WARN), msg)


def info(msg: str) -> None:
    echo(_styled(msg, SUCCESS))


def success(msg: str) -> None:
    echo(_styled("✓", SUCCESS), msg)


def success_prefix(prefix: str, msg: str) -> str:
    return f"{prefix}{green('✓')} {msg}"


def fail_prefix(prefix: str, msg: str) -> str:
    return f"{prefix}{red('✗')} {msg}"


def _read_line() -> str:
    line = sys.stdin.readline()
    return line.strip()


def confirm(msg: str) -> bool:
    """Prompt and return True only when the user types "y"."""
    echo(_styled("?", ACCENT), msg, end=" ")
    return _read_line() == "y"


def prompt_input(msg: str) -> str:
    echo(_styled("?", ACCENT), msg, end=" ")
    return _read_line()


def prompt_dangerous(msg: str, expect: str) -> bool:
    """Prompt in red and return True only when the input matches `expect` exactly."""
    echo(_styled("!", ERROR), msg, end=" ")
    return _read_line() == expect


def spin(message: str, fn: Callable[[], T]) -> T:
    """
    Run `fn` behind a spinner (on a terminal) and print a status dot when it finishes.
    """
    try:
        if stdout.is_terminal:
            with stdout.status(message, spinner="dots", spinner_style=ACCENT):
                result = fn()
        else:
            result = fn()
    except BaseException:
        echo(_styled("●", ERROR), message)
        raise
    echo(_styled("●", SUCCESS), message)
    return result
