"""
Pytest fixtures for the tip pool test suite.

Everything under test is a pure function, so there is no database or
network setup: fixtures only isolate logging state between tests.
"""

import pytest

from tippool_kernel.logging_config import LogContext, reset_logging


@pytest.fixture(autouse=True)
def _isolate_logging():
    """Reset logging configuration and context around every test."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
