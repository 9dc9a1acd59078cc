# pixcheck test configuration and shared fixtures
from __future__ import annotations

import pytest

from pixcheck.color import Color, ColorList
from pixcheck.driver import CaseMatrix, SizeList
from pixcheck.engine import SoftwareEngine
from pixcheck.format import FormatList, PixelStorage, get_format
from pixcheck.types import ByteOrder, OperatorList

# ─────────────────────────────────────────────────────────────────────────────
# Color fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def red():
    """Opaque red."""
    return Color(1.0, 0.0, 0.0, 1.0)


@pytest.fixture
def white():
    """Opaque white."""
    return Color(1.0, 1.0, 1.0, 1.0)


@pytest.fixture
def blue():
    """Opaque blue."""
    return Color(0.0, 0.0, 1.0, 1.0)


@pytest.fixture
def half_red():
    """Half transparent dark red, premultiplied."""
    return Color(0.5, 0.0, 0.0, 0.5).premultiply()


@pytest.fixture
def transparent():
    """Fully transparent black."""
    return Color(0.0, 0.0, 0.0, 0.0)


# ─────────────────────────────────────────────────────────────────────────────
# Format fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def argb32():
    return get_format('a8r8g8b8')


@pytest.fixture
def xrgb32():
    return get_format('x8r8g8b8')


@pytest.fixture
def a8():
    return get_format('a8')


@pytest.fixture
def rgb565():
    return get_format('r5g6b5')


# ─────────────────────────────────────────────────────────────────────────────
# Engine fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def little_endian():
    return PixelStorage(ByteOrder.LITTLE, 32)


@pytest.fixture
def big_endian():
    return PixelStorage(ByteOrder.BIG, 32)


@pytest.fixture
def engine(little_endian):
    """Software engine with little-endian storage."""
    return SoftwareEngine(little_endian)


@pytest.fixture
def small_matrix():
    """Two colors, two formats, one size and two operators."""
    colors = ColorList([(1.0, 0.0, 0.0, 1.0), (0.5, 0.0, 0.0, 0.5)]).premultiply()
    return CaseMatrix(colors, FormatList(['a8r8g8b8', 'a8']), SizeList(['1']),
                      OperatorList(['OVER', 'ADD']))


# ─────────────────────────────────────────────────────────────────────────────
# Pytest configuration
# ─────────────────────────────────────────────────────────────────────────────


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks tests requiring libpixman")
