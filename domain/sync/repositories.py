"""Domain Ports for site, region and area I/O.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.
"""

from __future__ import annotations

from typing import Protocol

from domain.sync.value_objects import BoundarySelection, SiteSelection
from domain.tessellation.value_objects import ClipRegion, OwnedArea, Site, SiteId


class SiteSource(Protocol):
    """Port for obtaining the site snapshot of a run."""

    def fetch_sites(self, selection: SiteSelection) -> list[Site]:
        """Return the selected sites; raise NoSitesFoundError if none."""
        ...


class ClipRegionSource(Protocol):
    """Port for obtaining the clip region of a run."""

    def fetch_region(self, selection: BoundarySelection) -> ClipRegion:
        """Return the addressed region; raise ClipRegionNotFoundError if none."""
        ...


class AreaStore(Protocol):
    """Port for a target store keyed by site identifier.

    Implementations raise StoreWriteError for any failed operation.
    """

    name: str

    def exists(self, site_id: SiteId) -> bool:
        """Whether a row for ``site_id`` is already stored."""
        ...

    def insert(self, area: OwnedArea) -> None:
        """Create the row for ``area.site_id``."""
        ...

    def update(self, area: OwnedArea) -> None:
        """Replace polygon and area of the existing row."""
        ...
