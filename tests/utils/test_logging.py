"""Unit tests for ionviz logging utilities."""

from __future__ import annotations

import logging
import sys

import pytest

import ionviz
from ionviz.utils.logging import LOG_LEVEL_ENV, configure_logging, get_logger


@pytest.fixture
def ionviz_logger():
    logger = logging.getLogger("ionviz")
    saved_handlers = logger.handlers[:]
    saved_level = logger.level
    yield logger
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)


def _stderr_handlers(logger):
    return [
        h for h in logger.handlers
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr
    ]


def test_package_installs_null_handler():
    assert any(isinstance(h, logging.NullHandler) for h in logging.getLogger("ionviz").handlers)
    assert ionviz.__version__


def test_get_logger_default_and_named():
    assert get_logger().name == "ionviz"
    assert get_logger("ionviz.plotting").name == "ionviz.plotting"


def test_configure_logging_sets_level_and_single_handler(ionviz_logger):
    configure_logging("DEBUG", force=True)
    assert ionviz_logger.level == logging.DEBUG
    configure_logging("INFO")
    assert len(_stderr_handlers(ionviz_logger)) == 1
    # root logger is never touched
    assert all(h not in logging.getLogger().handlers for h in _stderr_handlers(ionviz_logger))


def test_configure_logging_reads_env(ionviz_logger, monkeypatch):
    monkeypatch.setenv(LOG_LEVEL_ENV, "WARNING")
    configure_logging(force=True)
    assert ionviz_logger.level == logging.WARNING


def test_configure_logging_unknown_level_falls_back_to_info(ionviz_logger):
    configure_logging("LOUD", force=True)
    assert ionviz_logger.level == logging.INFO
