"""
git_wt package

git worktree management using the bare repository pattern.

Key responsibilities are split across modules:
- `git.py`: subprocess wrapper around the `git` executable
- `worktree.py`: porcelain parsing, worktree resolution, default remote/branch discovery
- `picker.py` / `preview.py`: fzf-backed interactive selection and its preview panes
- `commands/`: one module per sub-command (add, clone, remove/destroy, migrate, ...)
- `formula.py`: package-manager manifest, recipe rendering, install layout, smoke test
- `cli.py`: CLI entrypoint and dispatch
"""

from __future__ import annotations

__all__ = ["__version__", "GitWtError"]

__version__ = "0.1.0"


class GitWtError(RuntimeError):
    """Base class for errors reported to the user as `Error: <message>`."""
