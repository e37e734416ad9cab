"""Unit tests for logging configuration module.

Tests verify that setup_logging installs the console handler, the optional
file handler and the per-module levels used by the orchestration core.
"""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from toolgate_ai.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)


def _console_handler():
    return next(
        (
            h
            for h in logging.getLogger().handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ),
        None,
    )


def _file_handler():
    return next((h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)), None)


class TestSetupLoggingLevelsAndFormats:
    """Test setup_logging with different log levels and formats."""

    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("debug", logging.DEBUG),
        ],
    )
    def test_console_level(self, log_level, expected_level):
        """Test setup_logging configures the console handler level."""
        setup_logging(log_level=log_level, enable_file=False)

        handler = _console_handler()
        assert handler is not None
        assert handler.level == expected_level

    @pytest.mark.parametrize(
        "log_format,expected_format",
        [
            ("simple", SIMPLE_FORMAT),
            ("detailed", DETAILED_FORMAT),
            ("json", JSON_FORMAT),
            ("unknown", DETAILED_FORMAT),
        ],
    )
    def test_console_format(self, log_format, expected_format):
        setup_logging(log_format=log_format, enable_file=False)

        handler = _console_handler()
        assert handler.formatter._fmt == expected_format
        assert handler.formatter.datefmt == "%Y-%m-%d %H:%M:%S"

    def test_root_logger_level_is_debug(self):
        """Test root logger is set to DEBUG; filtering happens at handler level."""
        setup_logging(log_level="WARNING", enable_file=False)
        assert logging.getLogger().level == logging.DEBUG

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(enable_file=False)
        count = len(logging.getLogger().handlers)
        setup_logging(enable_file=False)
        assert len(logging.getLogger().handlers) == count


class TestSetupLoggingFileHandling:
    """Test setup_logging file logging functionality."""

    def test_file_handler_when_enabled(self, tmp_path: Path):
        log_dir = tmp_path / "logs"
        with patch("toolgate_ai.core.logging_config.LOG_FILE_DIR", str(log_dir)), patch(
            "toolgate_ai.core.logging_config.ENABLE_FILE_LOGGING", True
        ):
            setup_logging(log_level="ERROR", enable_file=True)

            handler = _file_handler()
            assert handler is not None
            # File handler always logs DEBUG
            assert handler.level == logging.DEBUG
            assert (log_dir / "toolgate_ai.log").exists()

        setup_logging(enable_file=False)

    def test_no_file_handler_when_setting_is_off(self, tmp_path: Path):
        with patch("toolgate_ai.core.logging_config.LOG_FILE_DIR", str(tmp_path)), patch(
            "toolgate_ai.core.logging_config.ENABLE_FILE_LOGGING", False
        ):
            setup_logging(enable_file=True)
            assert _file_handler() is None

    def test_no_file_handler_when_disabled_by_argument(self):
        setup_logging(enable_file=False)
        assert _file_handler() is None


class TestModuleLevels:
    """Test module-specific log level configuration."""

    @pytest.mark.parametrize(
        "module_name,expected_level",
        [
            ("toolgate_ai.agent_core", logging.DEBUG),
            ("toolgate_ai.agent_core.policy", logging.DEBUG),
            ("toolgate_ai.agent_core.parsing", logging.INFO),
            ("toolgate_ai.mcp_client", logging.INFO),
            ("mcp", logging.WARNING),
            ("httpx", logging.WARNING),
        ],
    )
    def test_module_specific_log_levels(self, module_name, expected_level):
        setup_logging(enable_file=False)
        assert logging.getLogger(module_name).level == expected_level

    def test_all_module_log_levels_configured(self):
        setup_logging(enable_file=False)

        for module_name, expected_level_str in MODULE_LOG_LEVELS.items():
            assert logging.getLogger(module_name).level == getattr(logging, expected_level_str)


class TestGetLogger:
    """Test get_logger function."""

    def test_same_name_returns_same_instance(self):
        assert get_logger("same_module") is get_logger("same_module")

    def test_name_is_kept(self):
        logger = get_logger("toolgate_ai.agent_core.runtime.dispatch")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "toolgate_ai.agent_core.runtime.dispatch"

    def test_logger_can_log_exception_info(self):
        setup_logging(log_level="ERROR", enable_file=False)
        logger = get_logger("test_logger")
        try:
            raise ValueError("Test error")
        except ValueError:
            logger.error("An error occurred", exc_info=True)
