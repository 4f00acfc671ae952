"""Tests for logging configuration."""

import logging

from kicad_blocks.logging import disable_verbose, enable_verbose, get_logger


class TestLogging:
    """Tests for enable_verbose / disable_verbose."""

    def teardown_method(self):
        disable_verbose()

    def test_silent_by_default(self):
        """Only a NullHandler is attached until verbose output is enabled."""
        logger = get_logger()
        assert logger.name == "kicad_blocks"
        assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)

    def test_enable_adds_single_stream_handler(self):
        """Calling enable twice does not stack handlers."""
        enable_verbose("DEBUG")
        enable_verbose("INFO")
        logger = get_logger()
        streams = [h for h in logger.handlers if not isinstance(h, logging.NullHandler)]
        assert len(streams) == 1
        assert logger.level == logging.INFO

    def test_custom_format(self):
        enable_verbose("WARNING", format="%(message)s")
        handler = [h for h in get_logger().handlers if not isinstance(h, logging.NullHandler)][0]
        assert handler.formatter._fmt == "%(message)s"

    def test_disable_removes_handler(self):
        enable_verbose()
        disable_verbose()
        logger = get_logger()
        assert all(isinstance(h, logging.NullHandler) for h in logger.handlers)
        assert logger.level == logging.WARNING

    def test_module_loggers_propagate_to_package(self, caplog):
        """Module loggers are children of the package logger."""
        with caplog.at_level(logging.INFO, logger="kicad_blocks"):
            logging.getLogger("kicad_blocks.compose.merge").info("merged")
        assert "merged" in caplog.text
