import logging
import sys
import os
from datetime import datetime
from typing import Optional

from harness.core.verbosity import VerbosityLevel

# Quiet runs keep the console clear of failures; they surface as exceptions
VERBOSITY_LOG_LEVELS = {
    VerbosityLevel.QUIET: logging.CRITICAL,
    VerbosityLevel.COMMANDS: logging.INFO,
    VerbosityLevel.STREAM: logging.DEBUG,
}


class ColoredFormatter(logging.Formatter):
    """Custom formatter to add colors to console output."""

    cyan = "\x1b[36m"
    green = "\x1b[32m"
    yellow = "\x1b[33m"
    red = "\x1b[31m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"

    format_str = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"

    FORMATS = {
        logging.DEBUG: cyan + format_str + reset,
        logging.INFO: green + format_str + reset,
        logging.WARNING: yellow + format_str + reset,
        logging.ERROR: red + format_str + reset,
        logging.CRITICAL: bold_red + format_str + reset
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno)
        # Levels outside the standard range get the plain format
        if not log_fmt:
            log_fmt = self.format_str
        formatter = logging.Formatter(log_fmt, datefmt="%Y-%m-%d %H:%M:%S")
        return formatter.format(record)


def level_for_verbosity(level) -> int:
    """Map a harness verbosity level (0, 1, 2) to a logger threshold."""
    return VERBOSITY_LOG_LEVELS[VerbosityLevel.parse(level)]


def setup_logging(level=logging.INFO, log_dir: Optional[str] = None):
    """
    Setup centralized logging for the harness.

    Console output goes to stderr so it never mixes with child stdout that
    the harness tees to the console at verbosity 2. A dated log file is
    added when ``log_dir`` is given.
    """
    harness_logger = logging.getLogger("harness")

    # Clear existing handlers to prevent duplicate logs across re-configuration
    for handler in harness_logger.handlers[:]:
        harness_logger.removeHandler(handler)
        handler.close()

    harness_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter())
    harness_logger.addHandler(console_handler)

    if log_dir:
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(
            os.path.join(log_dir, f"harness_{datetime.now().strftime('%Y%m%d')}.log")
        )
        file_fmt = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        file_handler.setFormatter(file_fmt)
        harness_logger.addHandler(file_handler)

    harness_logger.info("Logging initialized (console%s).", " + file" if log_dir else "")
    return harness_logger
