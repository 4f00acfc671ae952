"""
Logging configuration for kicad-blocks.

Library modules log through ``logging.getLogger(__name__)``; nothing is
printed unless a caller opts in with :func:`enable_verbose` (the CLI does so
for ``-v``).
"""

import logging

_logger = logging.getLogger("kicad_blocks")
_logger.addHandler(logging.NullHandler())  # Default: no output


def enable_verbose(level: str = "INFO", format: str = None) -> None:
    """Enable log output on stderr.

    Args:
        level: Logging level - "DEBUG", "INFO", "WARNING", "ERROR"
        format: Optional custom format string

    Example:
        enable_verbose("DEBUG")
        result = merge_block_schematics(placed, definitions, "demo", registry)
        disable_verbose()
    """
    numeric = getattr(logging, level.upper())
    _logger.setLevel(numeric)

    for handler in _logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            _logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(numeric)

    if format is None:
        format = "[%(levelname)s] %(name)s: %(message)s"

    handler.setFormatter(logging.Formatter(format))
    _logger.addHandler(handler)


def disable_verbose() -> None:
    """Remove the stream handler installed by :func:`enable_verbose`."""
    _logger.setLevel(logging.WARNING)
    for handler in _logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            _logger.removeHandler(handler)


def get_logger() -> logging.Logger:
    """The package root logger."""
    return _logger
