import logging

from git_wt.config import load_settings


def test_defaults_from_empty_environment() -> None:
    s = load_settings({})
    assert s.debug is False
    assert s.no_color is False
    assert s.select is None
    assert s.log_level == logging.WARNING
    assert s.github_token is None


def test_reads_environment() -> None:
    s = load_settings(
        {
            "DEBUG": "1",
            "NO_COLOR": "1",
            "GIT_WT_SELECT": "main,feature",
            "GIT_WT_LOG_LEVEL": "debug",
            "GITHUB_TOKEN": "tok",
        }
    )
    assert s.debug is True
    assert s.no_color is True
    assert s.select == "main,feature"
    assert s.log_level == logging.DEBUG
    assert s.github_token == "tok"


def test_unknown_log_level_falls_back_to_warning() -> None:
    assert load_settings({"GIT_WT_LOG_LEVEL": "chatty"}).log_level == logging.WARNING


def test_read_at_call_time(monkeypatch) -> None:
    assert load_settings().debug is False
    monkeypatch.setenv("DEBUG", "1")
    assert load_settings().debug is True
