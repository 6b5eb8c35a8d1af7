"""Tests for the package logging setup."""

import logging

import pytest

from fishbone.logging_config import level_from_env, setup_logging


@pytest.fixture(autouse=True)
def restore_package_logger():
    logger = logging.getLogger("fishbone")
    level = logger.level
    handlers = list(logger.handlers)
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


class TestLevelFromEnv:
    def test_debug_switch(self):
        assert level_from_env({"FISHBONE_DEBUG": "1"}) == logging.DEBUG

    def test_default_is_info(self):
        assert level_from_env({}) == logging.INFO
        assert level_from_env({"FISHBONE_DEBUG": "0"}) == logging.INFO


class TestSetupLogging:
    def test_environment_is_used_when_nothing_is_passed(self, monkeypatch, tmp_path):
        log_file = tmp_path / "fishbone.log"
        monkeypatch.setenv("FISHBONE_DEBUG", "1")
        monkeypatch.setenv("FISHBONE_LOG_FILE", str(log_file))
        logger = setup_logging()
        assert logger.level == logging.DEBUG
        logging.getLogger("fishbone.geometry").debug("bone skipped")
        for handler in logger.handlers:
            handler.flush()
        assert "bone skipped" in log_file.read_text(encoding="utf-8")

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("FISHBONE_DEBUG", "1")
        monkeypatch.delenv("FISHBONE_LOG_FILE", raising=False)
        logger = setup_logging(logging.WARNING)
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1

    def test_repeated_setup_does_not_stack_handlers(self, monkeypatch):
        monkeypatch.delenv("FISHBONE_LOG_FILE", raising=False)
        setup_logging(logging.INFO)
        logger = setup_logging(logging.INFO)
        assert len(logger.handlers) == 1
