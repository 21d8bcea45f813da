"""
picker.py

Responsibility: interactive fuzzy selection backed by `fzf`.

Items are fed to fzf as tab-delimited lines: the first field is the item's value
(so preview commands can use `{1}`), the remaining fields are what the user sees.

Setting GIT_WT_SELECT bypasses fzf entirely (scripts and tests); it holds a
comma-separated list of labels or values to select.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass, field

from git_wt import GitWtError
from git_wt.config import load_settings

log = logging.getLogger(__name__)

# fzf exit statuses
_NO_MATCH = 1
_INTERRUPTED = 130


class PickerError(GitWtError):
    pass


@dataclass(frozen=True)
class Item:
    label: str
    value: str
    desc: str = ""


@dataclass(frozen=True)
class Result:
    items: list[Item] = field(default_factory=list)
    canceled: bool = False


@dataclass(frozen=True)
class PickerConfig:
    items: list[Item]
    multi: bool = False
    prompt: str = ""
    header: str = ""
    preview_command: str | None = None


def format_selected(items: list[Item]) -> str:
    if len(items) == 1:
        return items[0].label
    return f"{len(items)} items"


def resolve_env_selection(config: PickerConfig, selection: str) -> Result:
    """
    Select items by value or label from a comma-separated string, in the order given.
    """
    selected: list[Item] = []
    for raw in selection.split(","):
        want = raw.strip()
        if not want:
            continue
        for item in config.items:
            if want in (item.value, item.label):
                selected.append(item)
                break
    if not selected:
        return Result(canceled=True)
    return Result(items=selected)


def _line(item: Item) -> str:
    # Tabs inside fields would shift fzf's {1}; they never occur in paths or branch names.
    text = item.label if not item.desc else f"{item.label}\t{item.desc}"
    return f"{item.value}\t{text}"


def _fzf_args(config: PickerConfig) -> list[str]:
    args = [
        "fzf",
        "--ansi",
        "--delimiter=\t",
        "--with-nth=2..",
        "--layout=reverse",
        "--height=80%",
        "--border",
    ]
    if config.prompt:
        args.append(f"--prompt={config.prompt}")
    if config.header:
        args.append(f"--header={config.header}")
    if config.multi:
        args.append("--multi")
    if config.preview_command:
        args.extend([f"--preview={config.preview_command}", "--preview-window=right:50%"])
    return args


def run(config: PickerConfig) -> Result:
    """
    Display the picker and return the user's selection.
    """
    if not config.items:
        return Result(canceled=True)

    selection = load_settings().select
    if selection:
        log.debug("picker bypassed via GIT_WT_SELECT=%r", selection)
        return resolve_env_selection(config, selection)

    if shutil.which("fzf") is None:
        raise PickerError("fzf is required for interactive selection (install fzf or set GIT_WT_SELECT)")

    by_value = {item.value: item for item in config.items}
    stdin_text = "\n".join(_line(item) for item in config.items) + "\n"

    # stderr is left attached to the terminal: fzf draws its UI there.
    proc = subprocess.run(_fzf_args(config), input=stdin_text, stdout=subprocess.PIPE, text=True, check=False)
    if proc.returncode in (_NO_MATCH, _INTERRUPTED):
        return Result(canceled=True)
    if proc.returncode != 0:
        raise PickerError(f"fzf exited with status {proc.returncode}")

    chosen: list[Item] = []
    for line in proc.stdout.splitlines():
        value = line.split("\t", 1)[0]
        if value in by_value:
            chosen.append(by_value[value])
    if not chosen:
        return Result(canceled=True)
    return Result(items=chosen)
