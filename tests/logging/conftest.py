import logging

import pytest


@pytest.fixture(autouse=True)
def _caplog_all_levels(caplog):
    caplog.set_level(0)


@pytest.fixture(autouse=True)
def _restore_lowlevel_loggers():
    loggers = [logging.getLogger(name) for name in ['asyncio', 'aiohttp']]
    states = [(logger.propagate, logger.handlers[:]) for logger in loggers]
    yield
    for logger, (propagate, handlers) in zip(loggers, states):
        logger.propagate = propagate
        logger.handlers[:] = handlers
