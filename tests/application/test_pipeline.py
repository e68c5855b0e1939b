"""Tests for the batch pipeline and adapter wiring."""

from __future__ import annotations

import json

import pytest
from sqlalchemy import text

from application.config import RunConfig, Settings
from application.pipeline import AdapterFactory, run_pipeline
from domain.sync.errors import ConfigurationError
from domain.tessellation.errors import DuplicateSitesError, SitesOutsideRegionError
from infrastructure.geojson import GeoJsonClipRegionSource, GeoJsonSiteSource
from infrastructure.memory import InMemoryAreaStore
from infrastructure.sql import SqlAreaStore, SqlSiteSource


def test_run_pipeline_writes_every_site_to_every_store(run_dict, data_dir):
    config = RunConfig.model_validate(run_dict)
    stores = [InMemoryAreaStore("mariadb"), InMemoryAreaStore("postgis")]

    report = run_pipeline(
        config,
        GeoJsonSiteSource(data_dir / "cols.geojson"),
        GeoJsonClipRegionSource(data_dir / "boundaries.geojson"),
        stores,
    )

    assert report.ok
    assert report.site_count == 3
    assert [a.site_id for a in report.areas] == [1, 2, 3]
    assert report.sync.inserted == 6
    for store in stores:
        assert set(store.rows) == {1, 2, 3}
    assert sum(a.geometry.area for a in report.areas) == pytest.approx(1.0)


def test_fatal_error_writes_nothing(run_dict, data_dir):
    run_dict["sites"] = {"group_ids": [1, 2]}
    config = RunConfig.model_validate(run_dict)
    store = InMemoryAreaStore()

    with pytest.raises(SitesOutsideRegionError):
        run_pipeline(
            config,
            GeoJsonSiteSource(data_dir / "cols.geojson"),
            GeoJsonClipRegionSource(data_dir / "boundaries.geojson"),
            [store],
        )
    assert store.rows == {}


def test_coincident_sites_write_nothing(run_dict, data_dir):
    cols = json.loads((data_dir / "cols.geojson").read_text())
    cols["features"][1]["geometry"]["coordinates"] = [0.25, 0.5]
    (data_dir / "cols.geojson").write_text(json.dumps(cols))
    config = RunConfig.model_validate(run_dict)
    stores = [InMemoryAreaStore("mariadb"), InMemoryAreaStore("postgis")]

    with pytest.raises(DuplicateSitesError) as exc_info:
        run_pipeline(
            config,
            GeoJsonSiteSource(data_dir / "cols.geojson"),
            GeoJsonClipRegionSource(data_dir / "boundaries.geojson"),
            stores,
        )

    assert set(exc_info.value.site_ids) == {1, 2}
    for store in stores:
        assert store.rows == {}
        assert (store.inserts, store.updates) == (0, 0)


def test_factory_prefers_files(run_dict):
    config = RunConfig.model_validate(run_dict)
    factory = AdapterFactory(Settings(databases={}))

    assert isinstance(factory.site_source(config), GeoJsonSiteSource)
    assert isinstance(factory.region_source(config), GeoJsonClipRegionSource)
    assert all(isinstance(s, InMemoryAreaStore) for s in factory.stores(config, dry_run=True))


def test_factory_needs_database_urls(run_dict):
    config = RunConfig.model_validate(run_dict)
    factory = AdapterFactory(Settings(databases={}))

    with pytest.raises(ConfigurationError, match="catalog"):
        factory.stores(config)


def test_sql_backed_run(run_dict, data_dir):
    url = f"sqlite:///{data_dir / 'catalog.db'}"
    del run_dict["sites_file"]
    run_dict["targets"] = [
        {"name": "catalog", "database": "catalog", "table": {"geometry_sql": ":wkt"}}
    ]
    config = RunConfig.model_validate(run_dict)
    factory = AdapterFactory(Settings(databases={"catalog": url}))
    engine = factory.engine("catalog")
    with engine.begin() as conn:
        conn.execute(
            text("CREATE TABLE cols (id INTEGER, lat REAL, lng REAL, col_group_id INTEGER)")
        )
        conn.execute(text("INSERT INTO cols VALUES (1, 0.5, 0.25, 1), (2, 0.5, 0.75, 1)"))
        conn.execute(text("CREATE TABLE col_areas (col_id INTEGER PRIMARY KEY, col_area TEXT)"))
        conn.execute(text("INSERT INTO col_areas VALUES (2, 'stale')"))

    try:
        site_source = factory.site_source(config)
        stores = factory.stores(config)
        assert isinstance(site_source, SqlSiteSource)
        assert isinstance(stores[0], SqlAreaStore)
        # One engine per database name
        assert factory.engine("catalog") is engine

        report = run_pipeline(config, site_source, factory.region_source(config), stores)

        assert (report.sync.inserted, report.sync.updated) == (1, 1)
        with engine.connect() as conn:
            rows = conn.execute(
                text("SELECT col_id, col_area FROM col_areas ORDER BY col_id")
            ).all()
        assert [r[0] for r in rows] == [1, 2]
        assert all(r[1].startswith("POLYGON") for r in rows)
    finally:
        factory.dispose()
