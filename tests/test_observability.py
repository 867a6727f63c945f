"""
Tests for observability — logging setup.
"""

import logging
from pathlib import Path

import pytest

from jmlboot.core.observability.logging_config import (
    parse_level,
    resolve_level,
    setup_logging,
    setup_logging_from_env,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParseLevel:
    @pytest.mark.parametrize("name,expected", [
        ("DEBUG", logging.DEBUG),
        ("info", logging.INFO),
        ("Error", logging.ERROR),
    ])
    def test_known(self, name: str, expected: int):
        assert parse_level(name) == expected

    @pytest.mark.parametrize("name", [None, "", "loud", "basicConfig"])
    def test_unknown_falls_back_to_warning(self, name):
        assert parse_level(name) == logging.WARNING


class TestSetupLogging:
    def test_console_level(self):
        setup_logging(level="INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.INFO

    def test_replaces_previous_handlers(self):
        setup_logging(level="INFO")
        setup_logging(level="ERROR")
        assert len(logging.getLogger().handlers) == 1

    def test_file_handler(self, tmp_path: Path):
        log_file = tmp_path / "jmlboot.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("jmlboot.test").debug("fetched archive")
        for h in root.handlers:
            h.flush()
        assert "fetched archive" in log_file.read_text()


class TestResolveLevel:
    def test_default(self):
        assert resolve_level(env={}) == "WARNING"

    def test_env(self):
        assert resolve_level(env={"JMLBOOT_LOG_LEVEL": "INFO"}) == "INFO"

    def test_flags_beat_env(self):
        env = {"JMLBOOT_LOG_LEVEL": "INFO"}
        assert resolve_level(debug=True, env=env) == "DEBUG"
        assert resolve_level(quiet=True, env=env) == "ERROR"

    def test_debug_beats_quiet(self):
        assert resolve_level(debug=True, quiet=True, env={}) == "DEBUG"


class TestSetupLoggingFromEnv:
    def test_log_file_from_env(self, tmp_path: Path):
        log_file = tmp_path / "env.log"
        setup_logging_from_env(env={
            "JMLBOOT_LOG_FILE": str(log_file),
            "JMLBOOT_LOG_FILE_LEVEL": "INFO",
        })

        root = logging.getLogger()
        assert root.level == logging.INFO
        assert root.handlers[0].level == logging.WARNING
        assert log_file.exists()
