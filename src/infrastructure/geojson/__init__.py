"""GeoJSON file adapters for the sync bounded context."""

from .sources import GeoJsonClipRegionSource, GeoJsonSiteSource

__all__ = ["GeoJsonClipRegionSource", "GeoJsonSiteSource"]
