import functools
import logging

import click.testing
import pytest

from attio.cli import main


@pytest.fixture(autouse=True)
def _restore_logging():
    # The commands re-configure the root logger; keep it for other tests.
    logger = logging.getLogger()
    handlers, level = logger.handlers[:], logger.level
    lowlevel = {name: (logging.getLogger(name).propagate, logging.getLogger(name).handlers[:])
                for name in ['asyncio', 'aiohttp']}
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    for name, (propagate, lowlevel_handlers) in lowlevel.items():
        logging.getLogger(name).propagate = propagate
        logging.getLogger(name).handlers[:] = lowlevel_handlers


@pytest.fixture()
def runner():
    runner = click.testing.CliRunner()
    return runner


@pytest.fixture()
def invoke(runner):
    return functools.partial(runner.invoke, main)
