"""
Logging configuration for binpkg-audit.

stdout carries only the report, so console logging always goes to
stderr, prefixed like compiler diagnostics ("warning: ...").
A log file, when requested, receives every record at DEBUG.
"""

import logging
import sys
from pathlib import Path
from typing import Optional


LOGGER_NAME = "binpkg_audit"

_logger: Optional[logging.Logger] = None


class PrefixFormatter(logging.Formatter):
    """
    Console formatter rendering "<level>: <message>".

    The level prefix is coloured when the stream is a terminal.
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[1;31m', # Bold Red
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = False):
        super().__init__("%(prefix)s: %(message)s")
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        prefix = record.levelname.lower()
        if self.use_colors:
            prefix = f"{self.COLORS.get(record.levelname, '')}{prefix}{self.RESET}"
        record.prefix = prefix
        return super().format(record)


def setup_logging(
    log_file: Optional[str] = None,
    verbose: bool = False,
    quiet: bool = False,
    propagate: bool = False,
) -> logging.Logger:
    """
    Configure the package logger for one CLI run.

    Console verbosity:
        default  warnings and errors
        verbose  everything down to DEBUG (tool invocations, stage counts)
        quiet    nothing; fatal errors are still printed by the CLI itself

    Args:
        log_file: Optional file receiving every record at DEBUG
        verbose: Show DEBUG records on stderr
        quiet: Disable the console handler
        propagate: Allow propagation to the root logger (used by tests)

    Returns:
        Configured logger instance
    """
    global _logger

    console_level = logging.DEBUG if verbose else logging.WARNING

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    levels = []
    if not quiet:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(PrefixFormatter(use_colors=sys.stderr.isatty()))
        logger.addHandler(console_handler)
        levels.append(console_level)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(file_handler)
        levels.append(logging.DEBUG)

    if not levels:
        # Keeps logging's last-resort stderr handler from firing
        logger.addHandler(logging.NullHandler())

    # Records below every handler's level are dropped at the logger
    logger.setLevel(min(levels) if levels else logging.ERROR)
    logger.propagate = propagate

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """
    Get the configured logger instance.

    If logging hasn't been set up, initializes with defaults.
    """
    global _logger
    if _logger is None:
        _logger = setup_logging()
    return _logger
