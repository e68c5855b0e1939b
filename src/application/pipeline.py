"""Batch pipeline: fetch, tessellate, sync.

Everything fatal happens before the first write; only the sync stage may
leave a run partially applied, and it reports exactly which writes failed.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from application.config import RunConfig, Settings
from domain.sync.repositories import AreaStore, ClipRegionSource, SiteSource
from domain.sync.services import sync_owned_areas
from domain.sync.value_objects import SyncReport
from domain.tessellation.services import tessellate
from domain.tessellation.value_objects import OwnedArea
from infrastructure.geojson import GeoJsonClipRegionSource, GeoJsonSiteSource
from infrastructure.memory import InMemoryAreaStore
from infrastructure.sql import SqlAreaStore, SqlClipRegionSource, SqlSiteSource

logger = logging.getLogger(__name__)


class RunReport(BaseModel):
    """Outcome of a completed run."""

    site_count: int
    areas: tuple[OwnedArea, ...]
    sync: SyncReport

    model_config = ConfigDict(frozen=True)

    @property
    def ok(self) -> bool:
        return self.sync.ok


def run_pipeline(
    config: RunConfig,
    site_source: SiteSource,
    region_source: ClipRegionSource,
    stores: Sequence[AreaStore],
) -> RunReport:
    """Run one batch from input snapshot to persisted areas.

    Raises:
        ColumnAreasError: Any fatal configuration, data, validation or
            geometric error; nothing has been written when this is raised
    """
    sites = site_source.fetch_sites(config.sites)
    region = region_source.fetch_region(config.boundary)
    logger.info("Tessellating %d sites", len(sites))

    areas = tessellate(sites, region, config.options)
    sync = sync_owned_areas(areas, stores, config.max_in_flight)
    return RunReport(site_count=len(sites), areas=areas, sync=sync)


class AdapterFactory:
    """Build adapters for a RunConfig, sharing one engine per database."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._engines: dict[str, Engine] = {}

    def engine(self, database: str) -> Engine:
        if database not in self._engines:
            url = self.settings.database_url(database)
            logger.info("Creating engine for database %s", database)
            self._engines[database] = create_engine(url, pool_pre_ping=True)
        return self._engines[database]

    def site_source(self, config: RunConfig) -> SiteSource:
        if config.sites_file is not None:
            return GeoJsonSiteSource(config.sites_file)
        return SqlSiteSource(self.engine(config.site_database))

    def region_source(self, config: RunConfig) -> ClipRegionSource:
        if config.boundary_file is not None:
            return GeoJsonClipRegionSource(config.boundary_file)
        return SqlClipRegionSource(self.engine(config.boundary_database))

    def stores(self, config: RunConfig, dry_run: bool = False) -> list[AreaStore]:
        if dry_run:
            return [InMemoryAreaStore(target.name) for target in config.targets]
        return [
            SqlAreaStore(self.engine(target.database), target.table, name=target.name)
            for target in config.targets
        ]

    def dispose(self) -> None:
        for engine in self._engines.values():
            engine.dispose()
        self._engines.clear()
