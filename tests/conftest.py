"""Test configuration for pytest."""

import logging

import pytest


@pytest.fixture(autouse=True, scope="session")
def configure_test_logging():
    """Configure logging for tests to be minimal."""
    logging.getLogger().setLevel(logging.WARNING)

    # The engines log process detail at DEBUG
    for logger_name in ["module_string", "monoidal_string", "repeated_squaring"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
