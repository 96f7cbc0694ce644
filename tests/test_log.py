from __future__ import annotations

import logging

from rich.logging import RichHandler

from tmpo import log


def test_default_level_is_warning():
    logger = log.configure()

    assert logger.level == logging.WARNING
    assert not logger.propagate
    assert [type(handler) for handler in logger.handlers] == [RichHandler]


def test_env_level_and_verbose_override(monkeypatch):
    monkeypatch.setenv("TMPO_LOG_LEVEL", "info")
    assert log.configure().level == logging.INFO
    assert log.configure(verbose=True).level == logging.DEBUG


def test_unknown_level_falls_back(monkeypatch):
    monkeypatch.setenv("TMPO_LOG_LEVEL", "chatty")

    assert log.configure().level == logging.WARNING
