"""
git.py

Responsibility: the only place that spawns the `git` executable.

Two families of helpers:
- mutations (`run`, `run_with_output`): echoed instead of executed when DEBUG is set
- queries (`query`, `query_combined`, `query_lines`, `succeeds`): always executed

All failures surface as `GitError`.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from git_wt import GitWtError
from git_wt.config import load_settings

log = logging.getLogger(__name__)


class GitError(GitWtError):
    def __init__(self, args: list[str], returncode: int, output: str = "") -> None:
        self.argv = list(args)
        self.returncode = returncode
        self.output = output
        message = f"git {' '.join(args)} failed with exit status {returncode}"
        if output:
            message = f"{message}\n\n{output}"
        super().__init__(message)


def _debug() -> bool:
    return load_settings().debug


def _echo(args: tuple[str, ...], cwd: str | Path | None) -> None:
    if cwd is None:
        print("git " + " ".join(args))
    else:
        print(f"git -C {cwd} " + " ".join(args))


def _exec(
    args: tuple[str, ...],
    *,
    cwd: str | Path | None,
    capture: bool,
    combined: bool = False,
) -> subprocess.CompletedProcess:
    cmd = ["git", *args]
    log.debug("exec %s (cwd=%s)", cmd, cwd or ".")
    try:
        if not capture:
            return subprocess.run(cmd, cwd=cwd, check=False)
        return subprocess.run(
            cmd,
            cwd=cwd,
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if combined else subprocess.PIPE,
            text=True,
        )
    except FileNotFoundError as e:
        raise GitError(list(args), 127, "git executable not found on PATH") from e


def run(*args: str, cwd: str | Path | None = None) -> None:
    """
    Run a git mutation with inherited stdin/stdout/stderr.
    """
    if _debug():
        _echo(args, cwd)
        return
    proc = _exec(args, cwd=cwd, capture=False)
    if proc.returncode != 0:
        raise GitError(list(args), proc.returncode)


def run_with_output(*args: str, cwd: str | Path | None = None) -> str:
    """
    Run a git mutation and return its combined, stripped output.
    """
    if _debug():
        _echo(args, cwd)
        return ""
    proc = _exec(args, cwd=cwd, capture=True, combined=True)
    out = (proc.stdout or "").strip()
    if proc.returncode != 0:
        raise GitError(list(args), proc.returncode, out)
    return out


def query(*args: str, cwd: str | Path | None = None) -> str:
    """
    Run a read-only git command (executed even in DEBUG mode) and return stripped stdout.
    """
    proc = _exec(args, cwd=cwd, capture=True)
    if proc.returncode != 0:
        raise GitError(list(args), proc.returncode, (proc.stderr or "").strip())
    return (proc.stdout or "").strip()


def query_combined(*args: str, cwd: str | Path | None = None) -> str:
    proc = _exec(args, cwd=cwd, capture=True, combined=True)
    out = (proc.stdout or "").strip()
    if proc.returncode != 0:
        raise GitError(list(args), proc.returncode, out)
    return out


def query_lines(*args: str, cwd: str | Path | None = None) -> list[str]:
    out = query(*args, cwd=cwd)
    if not out:
        return []
    return out.split("\n")


def succeeds(*args: str, cwd: str | Path | None = None) -> bool:
    """
    Return True when the read-only git command exits with status 0.
    """
    try:
        query(*args, cwd=cwd)
    except GitError:
        return False
    return True
