"""
Logging for the scanner.

Everything logs under the ``polyglot_scanner`` logger. Only that logger
is configured, so embedding applications keep control of the root logger.
Output goes to stderr: stdout is reserved for the JSON tree.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "polyglot_scanner"

FILE_FORMAT = "%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s"


def _level(verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.WARNING


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Attach a Rich stderr handler (and optionally a file handler) to the
    package logger, replacing any handlers from an earlier call.

    Args:
        verbose: DEBUG level; messages are prefixed with the thread name
            so the history thread and file workers can be told apart
        quiet: ERROR level only; wins over ``verbose``
        log_file: Also append plain-text records to this file, always at
            DEBUG level

    Returns:
        The configured package logger
    """
    level = _level(verbose, quiet)
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        level=level,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_path=verbose,
    )
    console_handler.setFormatter(
        logging.Formatter("[%(threadName)s] %(message)s" if verbose else "%(message)s")
    )
    logger.addHandler(console_handler)
    logger.setLevel(level)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)

    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger for ``name``, namespaced under the package logger."""
    if name is None or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
