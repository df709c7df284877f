"""Pytest configuration and fixtures for visca2uvc tests.

Everything here runs against the digital twin, so no camera and no libuvc
installation are needed. Logging is reset around every test so handlers
bound to captured streams never leak between tests.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from visca2uvc.drivers.uvc import DigitalTwinConfig, DigitalTwinUvcLibrary
from visca2uvc.observability import reset_logging


@pytest.fixture(autouse=True)
def clean_logging() -> Iterator[None]:
    """Reset visca2uvc logging before and after each test.

    Business context:
        configure_logging() is idempotent and binds its handler to the
        stream current at configuration time. CLI tests configure logging
        against pytest's captured stderr; without a reset, later tests
        would write into a closed capture.

    Yields:
        None.
    """
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def twin() -> DigitalTwinUvcLibrary:
    """Default simulated camera: zoom 100..500, relative -10..10."""
    return DigitalTwinUvcLibrary()


@pytest.fixture
def make_twin():
    """Factory for simulated cameras with custom configuration.

    Example:
        def test_stall(make_twin):
            lib = make_twin(faults={"get_zoom_abs:MAX": UvcError.PIPE})
    """

    def _make(**kwargs) -> DigitalTwinUvcLibrary:
        return DigitalTwinUvcLibrary(DigitalTwinConfig(**kwargs))

    return _make
