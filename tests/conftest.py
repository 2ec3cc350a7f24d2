"""Shared test fixtures."""

import pytest

from onedrive_gateway.core.rate_limit import limiter


@pytest.fixture(autouse=True)
def disable_rate_limiting():
    """Disable slowapi limits so API tests can repeat requests freely."""
    previous = limiter.enabled
    limiter.enabled = False
    yield
    limiter.enabled = previous
