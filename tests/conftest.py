import logging

import pytest

from lendrisk.connection import connection_manager
from lendrisk.logging import logger


@pytest.fixture(autouse=True)
def _initialize_and_reset_after_each_test():
    """
    Before each test, clear/reset global values and singletons
    """
    connection_manager.clear()


@pytest.fixture(scope="session", autouse=True)
def _set_lendrisk_logging():
    """
    Set the logging level to DEBUG for the test run
    """
    logger.setLevel(logging.DEBUG)
