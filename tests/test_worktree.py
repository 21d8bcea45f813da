import os
from pathlib import Path

import pytest

from conftest import run_git
from git_wt import worktree
from git_wt.worktree import DETACHED, Entry

PORCELAIN = """\
worktree /repo/.bare
bare

worktree /repo/main
HEAD 1234567890abcdef1234567890abcdef12345678
branch refs/heads/main

worktree /repo/feature
HEAD abcdef1234567890abcdef1234567890abcdef12
branch refs/heads/feature/login

worktree /repo/hotfix
HEAD 0000000aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa
detached"""


def test_parse_porcelain() -> None:
    entries = worktree.parse_porcelain(PORCELAIN)
    assert entries == [
        Entry(path="/repo/main", branch="main", head="1234567"),
        Entry(path="/repo/feature", branch="feature/login", head="abcdef1"),
        Entry(path="/repo/hotfix", branch=DETACHED, head="0000000"),
    ]


def test_parse_porcelain_empty() -> None:
    assert worktree.parse_porcelain("") == []


def test_parse_porcelain_trailing_blank_line() -> None:
    entries = worktree.parse_porcelain("worktree /a\nHEAD 1111111111\nbranch refs/heads/x\n\n")
    assert entries == [Entry(path="/a", branch="x", head="1111111")]


ENTRIES = [
    Entry(path="/repo/main", branch="main"),
    Entry(path="/repo/feature-1", branch="feature-1"),
]


def test_resolve_exact_path_and_name() -> None:
    assert worktree.resolve(ENTRIES, "/repo/main") == "/repo/main"
    assert worktree.resolve(ENTRIES, "feature-1") == "/repo/feature-1"


def test_resolve_unknown() -> None:
    with pytest.raises(worktree.WorktreeError, match="'nope' is not a valid worktree"):
        worktree.resolve(ENTRIES, "nope")


def test_resolve_relative_path(tmp_path: Path, monkeypatch) -> None:
    root = tmp_path.resolve()
    (root / "wt").mkdir()
    monkeypatch.chdir(root)
    entries = [Entry(path=str(root / "wt"), branch="wt")]
    assert worktree.resolve(entries, "./wt") == str(root / "wt")


def test_validate_lists_available() -> None:
    with pytest.raises(worktree.WorktreeError) as exc:
        worktree.validate(ENTRIES, "nope")
    assert "Available worktrees:\n  main\n  feature-1" in str(exc.value)


def test_branch_for_and_find_by_branch() -> None:
    assert worktree.branch_for(ENTRIES, "feature-1") == "feature-1"
    assert worktree.branch_for(ENTRIES, "unknown") == ""
    assert worktree.find_by_branch(ENTRIES, "main") == ENTRIES[0]
    assert worktree.find_by_branch(ENTRIES, "other") is None


def test_list_worktrees_in_bare_layout(bare_layout: Path, monkeypatch) -> None:
    monkeypatch.chdir(bare_layout)
    entries = worktree.list_worktrees()
    assert [(e.path, e.branch) for e in entries] == [(str(bare_layout / "main"), "main")]


def test_bare_root_from_worktree(bare_layout: Path, monkeypatch) -> None:
    monkeypatch.chdir(bare_layout / "main")
    assert worktree.bare_root() == str(bare_layout)


def test_bare_root_outside_repo(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path.parent))
    with pytest.raises(worktree.WorktreeError, match="not in a git repository"):
        worktree.bare_root()


def test_default_remote_and_branch(bare_layout: Path, monkeypatch) -> None:
    monkeypatch.chdir(bare_layout)
    assert worktree.default_remote() == "origin"
    assert worktree.default_branch("origin") == "main"


def test_default_remote_none(tmp_repo: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_repo)
    assert worktree.default_remote() == ""


def test_default_remote_prefers_origin(tmp_repo: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_repo)
    run_git(tmp_repo, "remote", "add", "upstream", os.devnull)
    run_git(tmp_repo, "remote", "add", "origin", os.devnull)
    assert worktree.default_remote() == "origin"


def test_default_remote_prefers_branch_remote(tmp_repo: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_repo)
    run_git(tmp_repo, "remote", "add", "origin", os.devnull)
    run_git(tmp_repo, "remote", "add", "upstream", os.devnull)
    run_git(tmp_repo, "config", "branch.main.remote", "upstream")
    assert worktree.default_remote() == "upstream"
