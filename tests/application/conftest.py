"""Fixtures for application tests: a run wired to GeoJSON files."""

from __future__ import annotations

import json

import pytest


def feature_collection(features):
    return {"type": "FeatureCollection", "features": features}


@pytest.fixture
def data_dir(tmp_path):
    """Three columns inside a unit square boundary, one far outside."""
    cols = [
        (1, 0.25, 0.5, 1),
        (2, 0.75, 0.5, 1),
        (3, 0.5, 0.9, 1),
        (4, 3.0, 3.0, 2),
    ]
    features = [
        {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [lng, lat]},
            "properties": {"id": col_id, "col_group_id": group},
        }
        for col_id, lng, lat, group in cols
    ]
    (tmp_path / "cols.geojson").write_text(json.dumps(feature_collection(features)))

    ring = [[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]
    boundary = {
        "type": "Feature",
        "geometry": {"type": "Polygon", "coordinates": [ring]},
        "properties": {"boundary_id": 7, "name": "square", "boundary_group": "test"},
    }
    (tmp_path / "boundaries.geojson").write_text(
        json.dumps(feature_collection([boundary]))
    )
    return tmp_path


@pytest.fixture
def run_dict(data_dir):
    return {
        "sites": {"group_ids": [1]},
        "boundary": {"boundary_id": 7},
        "sites_file": str(data_dir / "cols.geojson"),
        "boundary_file": str(data_dir / "boundaries.geojson"),
        "targets": [
            {"name": "mariadb", "database": "catalog"},
            {"name": "postgis", "database": "gis"},
        ],
    }


@pytest.fixture
def config_path(data_dir, run_dict):
    path = data_dir / "run.json"
    path.write_text(json.dumps(run_dict))
    return path


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Keep developer .env files and COLUMN_AREAS_* variables out of tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("COLUMN_AREAS_DATABASES", raising=False)
    monkeypatch.delenv("COLUMN_AREAS_LOG_LEVEL", raising=False)
