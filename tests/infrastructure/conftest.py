"""Fixtures for adapter tests: an in-memory SQLite catalog."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool


@pytest.fixture
def engine():
    """Single-connection SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE cols (id INTEGER PRIMARY KEY, lat REAL, lng REAL, "
                "col_group_id INTEGER)"
            )
        )
        conn.execute(
            text(
                "INSERT INTO cols (id, lat, lng, col_group_id) VALUES "
                "(3, 0.5, 0.75, 1), (1, 0.5, 0.25, 1), (2, 0.2, 0.2, 2), "
                "(4, 95.0, 0.2, 3)"
            )
        )
        conn.execute(
            text(
                "CREATE TABLE col_areas (col_id INTEGER PRIMARY KEY, col_area TEXT, "
                "area_m2 REAL)"
            )
        )
    yield engine
    engine.dispose()
