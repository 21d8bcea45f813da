import subprocess

import pytest

from git_wt import picker
from git_wt.picker import Item, PickerConfig

ITEMS = [
    Item(label="main [main]", value="/repo/main", desc="~/repo/main"),
    Item(label="feature [feature]", value="/repo/feature", desc="~/repo/feature"),
    Item(label="docs", value="/repo/docs"),
]


def test_format_selected() -> None:
    assert picker.format_selected(ITEMS[:1]) == "main [main]"
    assert picker.format_selected(ITEMS) == "3 items"


def test_empty_items_are_canceled() -> None:
    assert picker.run(PickerConfig(items=[])).canceled


def test_env_selection_by_value_or_label_in_order(monkeypatch) -> None:
    monkeypatch.setenv("GIT_WT_SELECT", "docs, /repo/main")
    result = picker.run(PickerConfig(items=ITEMS, multi=True))
    assert not result.canceled
    assert [i.value for i in result.items] == ["/repo/docs", "/repo/main"]


def test_env_selection_without_match_is_canceled(monkeypatch) -> None:
    monkeypatch.setenv("GIT_WT_SELECT", "nothing")
    assert picker.run(PickerConfig(items=ITEMS)).canceled


def test_missing_fzf(monkeypatch) -> None:
    monkeypatch.setattr(picker.shutil, "which", lambda name: None)
    with pytest.raises(picker.PickerError, match="fzf is required"):
        picker.run(PickerConfig(items=ITEMS))


def _fake_fzf(monkeypatch, returncode: int, stdout: str) -> list:
    calls = []

    def fake_run(args, **kwargs):
        calls.append((args, kwargs))
        return subprocess.CompletedProcess(args, returncode, stdout=stdout)

    monkeypatch.setattr(picker.shutil, "which", lambda name: "/usr/bin/fzf")
    monkeypatch.setattr(picker.subprocess, "run", fake_run)
    return calls


def test_fzf_selection_maps_back_by_value(monkeypatch) -> None:
    calls = _fake_fzf(monkeypatch, 0, "/repo/feature\tfeature [feature]\t~/repo/feature\n")
    result = picker.run(
        PickerConfig(items=ITEMS, multi=True, prompt="Pick: ", preview_command="preview {1}")
    )
    assert result.items == [ITEMS[1]]

    args, kwargs = calls[0]
    assert "--multi" in args
    assert "--prompt=Pick: " in args
    assert "--preview=preview {1}" in args
    assert "--with-nth=2.." in args
    assert kwargs["input"].splitlines()[2] == "/repo/docs\tdocs"


@pytest.mark.parametrize("code", [1, 130])
def test_fzf_escape_is_canceled(monkeypatch, code: int) -> None:
    _fake_fzf(monkeypatch, code, "")
    assert picker.run(PickerConfig(items=ITEMS)).canceled


def test_fzf_failure_raises(monkeypatch) -> None:
    _fake_fzf(monkeypatch, 2, "")
    with pytest.raises(picker.PickerError, match="status 2"):
        picker.run(PickerConfig(items=ITEMS))
