import logging
from unittest.mock import patch

from resolution_hub.utils.logger import ColoredFormatter, get_logger, setup_logger


class TestLogger:

    def test_get_logger_config(self):
        """Verify logger is configured correctly"""
        logger = get_logger("test.module")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "test.module"
        assert logger.level == logging.INFO
        assert len(logger.handlers) > 0  # At least console handler

    def test_handler_added_once(self):
        logger = get_logger("test.once")
        get_logger("test.once")
        assert len(logger.handlers) == 1

    def test_level_from_name(self):
        logger = setup_logger("test.debug", level="debug")
        assert logger.level == logging.DEBUG

    def test_unknown_level_name_falls_back_to_info(self):
        logger = setup_logger("test.bogus", level="LOUD")
        assert logger.level == logging.INFO

    def test_level_from_settings(self):
        with patch("resolution_hub.utils.logger.settings") as mock_settings:
            mock_settings.LOG_LEVEL = "WARNING"
            logger = setup_logger("test.settings")
        assert logger.level == logging.WARNING

    def test_colored_formatter(self):
        """Verify formatter adds color codes and icon"""
        formatter = ColoredFormatter("%(levelname)s: %(message)s")
        record = logging.LogRecord("test", logging.ERROR, "path", 1, "test message", (), None)

        output = formatter.format(record)
        # Should contain ANSI red color code
        assert "\033[31m" in output
        assert "❌" in output
        assert "test message" in output
        # Original record untouched for other handlers
        assert record.levelname == "ERROR"

