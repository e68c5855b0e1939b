"""Root pytest configuration for all tests.

Shared fixtures build small value objects directly, so domain tests never
touch a database or the filesystem.
"""

from __future__ import annotations

import pytest

from domain.tessellation.value_objects import ClipRegion, Site

UNIT_SQUARE = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]


def square(x0: float, y0: float, size: float = 1.0) -> list[tuple[float, float]]:
    """Exterior ring of an axis-aligned square with lower-left (x0, y0)."""
    return [(x0, y0), (x0 + size, y0), (x0 + size, y0 + size), (x0, y0 + size)]


@pytest.fixture
def unit_square() -> ClipRegion:
    """Clip region (0,0)-(1,1)."""
    return ClipRegion.from_rings([UNIT_SQUARE])


@pytest.fixture
def two_sites() -> list[Site]:
    """A at (0.25, 0.5) and B at (0.75, 0.5)."""
    return [
        Site(site_id="A", longitude=0.25, latitude=0.5),
        Site(site_id="B", longitude=0.75, latitude=0.5),
    ]
