"""Logging setup for labelbench.

Console output goes to stderr: stdout is reserved for result tables and
for ``bench export`` without ``-o``.  The optional log file is rewritten
on every run and records millisecond timestamps, which makes it easy to
line up a slow trial with the dataset being processed.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "labelbench"
_FILE_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-7s [%(module)s] %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"
_CONSOLE_FORMAT = "labelbench: %(levelname)s: %(message)s"


def _console_level(verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the ``labelbench`` logger for one CLI invocation.

    *verbose* shows per-trial progress on the console, *quiet* keeps only
    warnings (images that failed to load, failed tests); *verbose* wins
    when both are given.  *log_file* always receives DEBUG records and is
    truncated first.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(_console_level(verbose, quiet))
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        logger.addHandler(fh)

    return logger
