"""
config.py

Responsibility: read runtime settings from the environment.

Settings are read at call time (not import time) so tests and sub-processes
see the current environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    debug: bool = False
    no_color: bool = False
    select: str | None = None
    log_level: int = logging.WARNING
    github_token: str | None = None


def _log_level(raw: str | None) -> int:
    if not raw:
        return logging.WARNING
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else logging.WARNING


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        debug=bool(env.get("DEBUG")),
        no_color=bool(env.get("NO_COLOR")),
        select=env.get("GIT_WT_SELECT") or None,
        log_level=_log_level(env.get("GIT_WT_LOG_LEVEL")),
        github_token=env.get("GITHUB_TOKEN") or None,
    )
