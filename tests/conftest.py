import os
import subprocess
from pathlib import Path

import pytest


def run_git(cwd: Path, *args: str) -> str:
    proc = subprocess.run(["git", *args], cwd=str(cwd), check=True, capture_output=True, text=True)
    return proc.stdout.strip()


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path_factory, monkeypatch):
    # Keep the user's git config and terminal settings out of every test.
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", os.devnull)
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")
    for name in ("DEBUG", "NO_COLOR", "GIT_WT_SELECT", "GIT_WT_LOG_LEVEL", "GITHUB_TOKEN"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def tmp_repo(tmp_path: Path) -> Path:
    """
    A regular repository on `main` with one commit.
    """
    repo = tmp_path.resolve() / "repo"
    repo.mkdir()
    run_git(repo, "init", "-b", "main")
    (repo / "README.md").write_text("x\n", encoding="utf-8")
    run_git(repo, "add", ".")
    run_git(repo, "commit", "-m", "init")
    return repo


@pytest.fixture()
def origin_repo(tmp_path: Path, tmp_repo: Path) -> Path:
    """
    A bare remote with `main` (HEAD) and `feature` branches.
    """
    run_git(tmp_repo, "branch", "feature")
    origin = tmp_path.resolve() / "origin.git"
    run_git(tmp_path, "clone", "--bare", str(tmp_repo), str(origin))
    return origin


@pytest.fixture()
def bare_layout(tmp_path: Path, origin_repo: Path) -> Path:
    """
    A `.bare/` + `.git` pointer layout cloned from origin_repo, with a `main` worktree.
    """
    root = tmp_path.resolve() / "proj"
    root.mkdir()
    run_git(root, "clone", "--bare", str(origin_repo), ".bare")
    (root / ".git").write_text("gitdir: ./.bare\n", encoding="utf-8")
    run_git(root, "config", "remote.origin.fetch", "+refs/heads/*:refs/remotes/origin/*")
    run_git(root, "fetch", "origin")
    run_git(root, "remote", "set-head", "origin", "main")
    run_git(root, "worktree", "add", "main", "main")
    return root
