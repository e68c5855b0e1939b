"""Sync Bounded Context - Error Hierarchy.

Configuration and data-absence errors are fatal and raised before any
geometry work. StoreWriteError is recoverable per (site, store) pair.
"""

from __future__ import annotations

from domain.errors import ColumnAreasError


class SyncError(ColumnAreasError):
    """Base error for selection, source and store operations."""

    stage = "sync"


class ConfigurationError(SyncError):
    """Selection is missing, ambiguous, or a required field is absent."""

    stage = "configuration"


class DataAbsenceError(SyncError):
    """A source returned nothing for a valid selection."""

    stage = "data"


class NoSitesFoundError(DataAbsenceError):
    """The site source returned no sites."""


class ClipRegionNotFoundError(DataAbsenceError):
    """The clip region source returned no geometry."""


class StoreWriteError(SyncError):
    """A single existence check, insert or update against one store failed.

    Attributes:
        store: Name of the store
        site_id: Identifier of the row being written
    """

    def __init__(self, store: str, site_id: object, message: str) -> None:
        self.store = store
        self.site_id = site_id
        super().__init__(f"[{store}] site {site_id}: {message}")


class SourceReadError(SyncError):
    """A site or region source could not be read."""

    stage = "data"
