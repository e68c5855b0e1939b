"""Fixtures for sync tests: owned areas without running the tessellation."""

from __future__ import annotations

import pytest
from shapely.geometry import box

from domain.tessellation.value_objects import OwnedArea


def owned(site_id, x0: float = 0.0) -> OwnedArea:
    return OwnedArea(site_id=site_id, geometry=box(x0, 0, x0 + 1, 1), area_m2=1.0e10)


@pytest.fixture
def areas() -> list[OwnedArea]:
    return [owned(site_id, x0) for x0, site_id in enumerate([10, 11, 12, 13])]
