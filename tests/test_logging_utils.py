import logging

import pytest

from commitwise.logging_utils import ANALYSIS_LOGGER, configure_logging


@pytest.fixture
def restore_levels():
    loggers = [logging.getLogger(), logging.getLogger(ANALYSIS_LOGGER)]
    saved = [logger.level for logger in loggers]
    yield
    for logger, level in zip(loggers, saved):
        logger.setLevel(level)


@pytest.mark.parametrize(
    "verbosity, root_level, analysis_level",
    [
        (0, logging.WARNING, logging.WARNING),
        (1, logging.INFO, logging.INFO),
        (2, logging.DEBUG, logging.INFO),
        (3, logging.DEBUG, logging.DEBUG),
    ],
)
def test_verbosity_levels(restore_levels, verbosity, root_level, analysis_level):
    configure_logging(verbosity)

    assert logging.getLogger().level == root_level
    assert logging.getLogger("commitwise.planner").getEffectiveLevel() == root_level
    assert logging.getLogger("commitwise.analysis.ranker").getEffectiveLevel() == analysis_level


def test_analysis_trace_is_hidden_at_double_verbose(restore_levels):
    configure_logging(2)

    assert logging.getLogger("commitwise.diff_parser").isEnabledFor(logging.DEBUG)
    assert not logging.getLogger("commitwise.analysis.boundaries").isEnabledFor(logging.DEBUG)
