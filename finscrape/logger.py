"""
Logging configuration for finscrape.

Importing the package configures nothing: the stage modules log through
child loggers of "finscrape" and whoever runs the pipeline decides where the
records go. run_scraper.py calls setup_logger() once it has read its
settings. Console output goes to stderr, so stdout only ever carries the
rendered table or the CSV/JSON dump.
"""

import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str = "finscrape",
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Configure and return the package logger.

    Handlers installed by an earlier call are replaced, so calling this again
    with another level or a log file takes effect instead of being ignored.

    Args:
        name: Logger name
        level: Logging level (default: INFO)
        log_file: Optional file path; records are appended to it as well
        stream: Console stream (default: sys.stderr at call time)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_module_logger(module_name: str) -> logging.Logger:
    """
    Get the child logger of one pipeline stage, e.g. "finscrape.extractor".

    Records propagate to the "finscrape" logger, so one setup_logger() call
    covers every stage.
    """
    return logging.getLogger(f"finscrape.{module_name}")
