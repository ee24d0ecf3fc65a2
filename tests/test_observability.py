"""
Tests for observability — logging setup and level resolution.
"""

import logging
from pathlib import Path

import pytest

from uca.core.observability.logging_config import resolve_level, setup_logging

pytestmark = pytest.mark.usefixtures("restore_logging")


class TestResolveLevel:
    def test_debug_flag_wins(self, monkeypatch):
        monkeypatch.setenv("UCA_LOG_LEVEL", "ERROR")
        assert resolve_level(debug=True) == "DEBUG"

    def test_env_var(self, monkeypatch):
        monkeypatch.setenv("UCA_LOG_LEVEL", "info")
        assert resolve_level() == "INFO"

    def test_default(self, monkeypatch):
        monkeypatch.delenv("UCA_LOG_LEVEL", raising=False)
        assert resolve_level() == "WARNING"


class TestSetupLogging:
    def test_console_level(self, monkeypatch):
        monkeypatch.delenv("UCA_LOG_FILE", raising=False)
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.StreamHandler)

    def test_bad_level_falls_back_to_warning(self, monkeypatch):
        monkeypatch.delenv("UCA_LOG_FILE", raising=False)
        setup_logging("LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_file_handler(self, tmp_path: Path):
        log_file = tmp_path / "uca.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("uca.test").debug("probe detail")
        for handler in root.handlers:
            handler.flush()
        assert "probe detail" in log_file.read_text()

    def test_file_from_env(self, tmp_path: Path, monkeypatch):
        log_file = tmp_path / "env.log"
        monkeypatch.setenv("UCA_LOG_FILE", str(log_file))
        monkeypatch.delenv("UCA_LOG_FILE_LEVEL", raising=False)
        setup_logging("ERROR")
        logging.getLogger("uca.test").error("kaboom")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "kaboom" in log_file.read_text()

    def test_repeated_setup_does_not_stack(self, monkeypatch):
        monkeypatch.delenv("UCA_LOG_FILE", raising=False)
        setup_logging("INFO")
        setup_logging("INFO")
        assert len(logging.getLogger().handlers) == 1
