import functools
import logging

import click.testing
import pytest

from statemgr.cli import main


@pytest.fixture(autouse=True)
def _restore_logging():
    names = ['', 'asyncio', 'aiohttp']
    states = {name: (logging.getLogger(name).level,
                     logging.getLogger(name).propagate,
                     logging.getLogger(name).handlers[:]) for name in names}
    yield
    for name, (level, propagate, handlers) in states.items():
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = propagate
        logger.handlers[:] = handlers


@pytest.fixture()
def runner():
    runner = click.testing.CliRunner()
    return runner


@pytest.fixture()
def invoke(runner):
    return functools.partial(runner.invoke, main, env={'STATEMGR_SERVER': None,
                                                       'STATEMGR_TIMEOUT': None})


@pytest.fixture()
def provider_mocks(mocker):
    cls = 'statemgr._core.providers.StateManagerProvider'
    return mocker.Mock(
        get=mocker.patch(f'{cls}.get'),
        list=mocker.patch(f'{cls}.list'),
        list_pending=mocker.patch(f'{cls}.list_pending'),
        create=mocker.patch(f'{cls}.create'),
        update=mocker.patch(f'{cls}.update'),
        update_status=mocker.patch(f'{cls}.update_status'),
        delete=mocker.patch(f'{cls}.delete'),
    )
