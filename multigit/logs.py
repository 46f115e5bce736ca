"""Logging setup for the multigit command line."""

import logging
import sys

LOG_FORMAT = "%(levelname)s: %(message)s"


def verbosity_to_level(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def setup_logging(verbosity: int = 0) -> None:
    """Send multigit log records to stderr at a level chosen by -v flags."""
    logging.basicConfig(
        level=verbosity_to_level(verbosity),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    # GitPython logs every command it runs at debug level
    logging.getLogger("git").setLevel(logging.WARNING if verbosity < 3 else logging.DEBUG)
