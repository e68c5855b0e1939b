"""In-process AreaStore used for dry runs and tests."""

from __future__ import annotations

from dataclasses import dataclass

from domain.sync.errors import StoreWriteError
from domain.tessellation.value_objects import OwnedArea, SiteId


@dataclass(frozen=True)
class StoredArea:
    wkt: str
    area_m2: float


class InMemoryAreaStore:
    """Dict-backed store keyed by site identifier."""

    def __init__(self, name: str = "memory") -> None:
        self.name = name
        self.rows: dict[SiteId, StoredArea] = {}
        self.inserts = 0
        self.updates = 0

    def exists(self, site_id: SiteId) -> bool:
        return site_id in self.rows

    def insert(self, area: OwnedArea) -> None:
        if area.site_id in self.rows:
            raise StoreWriteError(self.name, area.site_id, "row already exists")
        self.rows[area.site_id] = StoredArea(area.wkt, area.area_m2)
        self.inserts += 1

    def update(self, area: OwnedArea) -> None:
        if area.site_id not in self.rows:
            raise StoreWriteError(self.name, area.site_id, "no row to update")
        self.rows[area.site_id] = StoredArea(area.wkt, area.area_m2)
        self.updates += 1
