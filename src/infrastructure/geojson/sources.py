"""GeoJSON file adapters for SiteSource and ClipRegionSource.

Lets a run work from exported files instead of live databases. Selection
modes map onto feature properties; ``clip_sql`` has no file equivalent.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from domain.sync.errors import (
    ClipRegionNotFoundError,
    ConfigurationError,
    NoSitesFoundError,
    SourceReadError,
)
from domain.sync.value_objects import BoundarySelection, SiteSelection
from domain.tessellation.value_objects import ClipRegion, Site

logger = logging.getLogger(__name__)


def _read_features(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        raise SourceReadError(f"No such file: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SourceReadError(f"{path.name} is not valid JSON: {e}") from e
    if data.get("type") == "FeatureCollection":
        return list(data.get("features", []))
    if data.get("type") == "Feature":
        return [data]
    # Bare geometry: wrap so callers see one shape
    return [{"type": "Feature", "geometry": data, "properties": {}}]


def _matches(value: Any, wanted: tuple[Any, ...]) -> bool:
    # Ids typed by hand in JSON configs may be strings or numbers
    return value in wanted or str(value) in {str(w) for w in wanted}


class GeoJsonSiteSource:
    """Read sites from a FeatureCollection of Point features."""

    def __init__(
        self,
        path: Path | str,
        id_property: str = "id",
        group_property: str = "col_group_id",
    ) -> None:
        self.path = Path(path)
        self.id_property = id_property
        self.group_property = group_property

    def fetch_sites(self, selection: SiteSelection) -> list[Site]:
        if selection.site_ids:
            prop, wanted = self.id_property, selection.site_ids
        else:
            prop, wanted = self.group_property, selection.group_ids

        sites: list[Site] = []
        for feature in _read_features(self.path):
            props = feature.get("properties") or {}
            geometry = feature.get("geometry") or {}
            if geometry.get("type") != "Point" or not _matches(props.get(prop), wanted):
                continue
            try:
                lng, lat = geometry["coordinates"][:2]
                sites.append(
                    Site(site_id=props[self.id_property], longitude=lng, latitude=lat)
                )
            except (KeyError, TypeError, ValueError) as e:
                raise SourceReadError(
                    f"Site {props.get(self.id_property)} in {self.path.name} "
                    f"has invalid coordinates: {e}"
                ) from e

        if not sites:
            raise NoSitesFoundError(
                f"No sites in {self.path.name} for {selection.mode}={list(wanted)}"
            )
        logger.info("Loaded %d sites from %s", len(sites), self.path.name)
        return sites


class GeoJsonClipRegionSource:
    """Read the clip region from polygon features, filtered by property."""

    _PROPERTIES = {
        "boundary_id": "boundary_id",
        "boundary_name": "name",
        "boundary_group": "boundary_group",
    }

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def fetch_region(self, selection: BoundarySelection) -> ClipRegion:
        if selection.clip_sql is not None:
            raise ConfigurationError("clip_sql cannot address a GeoJSON file")

        prop = self._PROPERTIES[selection.mode]
        wanted = (getattr(selection, selection.mode),)
        features = [
            f
            for f in _read_features(self.path)
            if f.get("geometry") and _matches((f.get("properties") or {}).get(prop), wanted)
        ]
        if not features:
            raise ClipRegionNotFoundError(
                f"No clip polygons in {self.path.name} for {selection.mode}={wanted[0]}"
            )

        try:
            region = ClipRegion.from_geojson(
                {"type": "FeatureCollection", "features": features}
            )
        except ValueError as e:
            raise SourceReadError(f"Clip region is unusable: {e}") from e
        logger.info("Loaded clip region from %s: %d part(s)", self.path.name, len(region.parts))
        return region
