#!/usr/bin/env python3
"""
Logging for blebatt.

Modules log through `get_logger(__name__)`. The CLI and the HTTP service
call `setup_logging()` once at startup. Console lines look like
``[WARNING] message``, with the bracketed level coloured on a TTY; the
optional log file always gets the timestamped, uncoloured format.
"""
import logging
import sys

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"
CONSOLE_FORMAT = "%(levelname)s %(message)s"
CONSOLE_FORMAT_DEBUG = "%(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[34m",       # blue
    logging.INFO: "\033[32m",        # green
    logging.WARNING: "\033[33m",     # yellow
    logging.ERROR: "\033[1;31m",     # bold red
    logging.CRITICAL: "\033[1;35m",  # bold magenta
}


class BracketLevelFormatter(logging.Formatter):
    """Renders the level as ``[LEVEL]``, optionally wrapped in ANSI colour."""

    def __init__(self, fmt: str, color: bool = False) -> None:
        super().__init__(fmt)
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        bracketed = f"[{record.levelname}]"
        if self.color and record.levelno in LEVEL_COLORS:
            bracketed = f"{LEVEL_COLORS[record.levelno]}{bracketed}{RESET}"

        # Format a copy so other handlers still see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = bracketed
        return super().format(record)


def setup_logging(
    verbose: bool = False,
    console_output: bool = True,
    log_file: str | None = None,
    color: bool | None = None,
) -> None:
    """
    Configure the root logger.

    Args:
        verbose: DEBUG instead of INFO, and logger names on the console
        console_output: Log to stderr (stdout is reserved for CLI output)
        log_file: Optional file path for log output
        color: Colour the level; defaults to whether stderr is a TTY
    """
    level = logging.DEBUG if verbose else logging.INFO
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if console_output:
        if color is None:
            color = sys.stderr.isatty()
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(BracketLevelFormatter(
            CONSOLE_FORMAT_DEBUG if verbose else CONSOLE_FORMAT, color=color))
        root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    # dbus-next is chatty at DEBUG
    logging.getLogger("dbus_next").setLevel(max(level, logging.INFO))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
