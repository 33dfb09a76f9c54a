"""Pytest configuration"""

import pytest

from multistream.layout.geometry import Size
from multistream.layout.manager import LayoutManager
from multistream.telemetry import metrics


@pytest.fixture
def anyio_backend():
    """Run anyio tests on asyncio only"""
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics around every test"""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def container():
    return Size(1280.0, 720.0)


@pytest.fixture
def manager(container):
    """Empty grid2x2 layout on a 1280x720 canvas"""
    return LayoutManager("grid2x2", container)


@pytest.fixture
def custom_manager(container):
    """Custom-template layout with streams a, b"""
    m = LayoutManager("custom", container)
    m.add_stream("a")
    m.add_stream("b")
    return m
