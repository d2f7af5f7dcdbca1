"""
Pytest configuration file for the probe test suite.

This file contains fixtures that are shared across multiple test files.
"""

import logging

import pytest

from cbsim_probe.config import env_loader, settings
from cbsim_probe.config.constants import LOGGER_NAME
from cbsim_probe.handlers import error_handler


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset the application logger so caplog sees its records"""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def reset_globals():
    """Reset module-level singletons between tests"""
    yield
    error_handler._global_error_handler = None
    settings.set_config(None)
    env_loader._env_loaded = False


@pytest.fixture
def isolated_error_handler():
    """An ErrorHandler that is not shared with other tests"""
    return error_handler.ErrorHandler()
