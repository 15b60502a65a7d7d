"""
Logging helpers for commitwise.

Every module logs through its own ``logging.getLogger(__name__)``. The
analysis package logs one debug record per change and per boundary, so
its loggers need one more ``-v`` than the rest before that trace shows.
"""

from __future__ import annotations

import logging

ANALYSIS_LOGGER = "commitwise.analysis"


def configure_logging(verbosity: int) -> None:
    """
    Configure logging based on a verbosity count.

    verbosity == 0 -> WARNING
    verbosity == 1 -> INFO
    verbosity == 2 -> DEBUG, analysis loggers stay at INFO
    verbosity >= 3 -> DEBUG everywhere
    """

    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(level)

    analysis_level = logging.DEBUG if verbosity >= 3 else max(level, logging.INFO)
    logging.getLogger(ANALYSIS_LOGGER).setLevel(analysis_level)
