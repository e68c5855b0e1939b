"""Tessellation Bounded Context - Value Objects.

Immutable data structures for sites, the clip region and the cells derived
from them. All validation occurs at construction time via Pydantic.

Geometries are shapely objects in EPSG:4326 (x = longitude, y = latitude).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from shapely.geometry import MultiPolygon, Polygon, box, shape
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union
from shapely.validation import make_valid

from domain.tessellation.geometry import polygon_pieces

# ---------------------------------------------------------------------------
# Numeric Constants
# ---------------------------------------------------------------------------
# Tolerances for floating-point comparisons, in degrees
DEFAULT_TOLERANCE_DEG = 1e-9  # ~0.1 mm at the equator
DEFAULT_SLIVER_AREA_DEG2 = 1e-12  # pieces smaller than this are noise

SiteId = int | str


class PiecePolicy(str, Enum):
    """What to do when a clipped cell falls apart into disjoint pieces."""

    KEEP_SITE_PIECE = "keep_site_piece"
    KEEP_ALL = "keep_all"
    ERROR = "error"


class TessellationOptions(BaseModel):
    """Numerical and policy knobs for a tessellation run."""

    tolerance: float = Field(default=DEFAULT_TOLERANCE_DEG, ge=0)
    sliver_area: float = Field(default=DEFAULT_SLIVER_AREA_DEG2, ge=0)
    piece_policy: PiecePolicy = PiecePolicy.KEEP_SITE_PIECE

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Site
# ---------------------------------------------------------------------------
class Site(BaseModel):
    """A column location that will own one cell (Value Object).

    Invariants:
        latitude in [-90, 90]
        longitude in [-180, 180]
    """

    site_id: SiteId
    longitude: float = Field(ge=-180, le=180)
    latitude: float = Field(ge=-90, le=90)

    model_config = ConfigDict(frozen=True)

    @property
    def coordinate(self) -> tuple[float, float]:
        """(x, y) tuple in shapely axis order."""
        return (self.longitude, self.latitude)


# ---------------------------------------------------------------------------
# BoundingBox
# ---------------------------------------------------------------------------
class BoundingBox(BaseModel):
    """Geographic extent in EPSG:4326 (Value Object).

    Invariants are enforced at construction time - invalid BoundingBox
    cannot be instantiated.
    """

    min_x: float  # Western boundary (longitude)
    min_y: float  # Southern boundary (latitude)
    max_x: float  # Eastern boundary (longitude)
    max_y: float  # Northern boundary (latitude)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_bounds(self) -> "BoundingBox":
        # Longitude range
        if not (-180 <= self.min_x <= 180):
            raise ValueError(f"min_x longitude out of range: {self.min_x}")
        if not (-180 <= self.max_x <= 180):
            raise ValueError(f"max_x longitude out of range: {self.max_x}")
        # Latitude range
        if not (-90 <= self.min_y <= 90):
            raise ValueError(f"min_y latitude out of range: {self.min_y}")
        if not (-90 <= self.max_y <= 90):
            raise ValueError(f"max_y latitude out of range: {self.max_y}")
        # Ordering
        if not (self.min_x < self.max_x):
            raise ValueError(
                f"Invalid x ordering: min_x={self.min_x} >= max_x={self.max_x}"
            )
        if not (self.min_y < self.max_y):
            raise ValueError(
                f"Invalid y ordering: min_y={self.min_y} >= max_y={self.max_y}"
            )
        return self

    @classmethod
    def of(cls, geometry: BaseGeometry) -> "BoundingBox":
        """Bounding box of a non-empty shapely geometry."""
        min_x, min_y, max_x, max_y = geometry.bounds
        return cls(min_x=min_x, min_y=min_y, max_x=max_x, max_y=max_y)

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def to_polygon(self) -> Polygon:
        return box(self.min_x, self.min_y, self.max_x, self.max_y)

    def contains(self, longitude: float, latitude: float) -> bool:
        """Inclusive containment test."""
        return (
            self.min_x <= longitude <= self.max_x
            and self.min_y <= latitude <= self.max_y
        )


# ---------------------------------------------------------------------------
# ClipRegion
# ---------------------------------------------------------------------------
def _geojson_geometries(data: Mapping[str, Any]) -> list[BaseGeometry]:
    kind = data.get("type")
    if kind == "FeatureCollection":
        geometries: list[BaseGeometry] = []
        for feature in data.get("features", []):
            geometries.extend(_geojson_geometries(feature))
        return geometries
    if kind == "Feature":
        geometry = data.get("geometry")
        return [shape(geometry)] if geometry else []
    return [shape(data)]


class ClipRegion(BaseModel):
    """Multi-part boundary inside which the tessellation is valid (Value Object).

    The geometry is normalized at construction: invalid rings are repaired,
    overlapping parts are dissolved and the result is always a MultiPolygon.
    """

    geometry: MultiPolygon

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="before")
    @classmethod
    def coerce_geometry(cls, values: Any) -> Any:
        if isinstance(values, dict) and isinstance(
            values.get("geometry"), BaseGeometry
        ):
            values = dict(values)
            values["geometry"] = cls._normalize(values["geometry"])
        return values

    @model_validator(mode="after")
    def validate_region(self) -> "ClipRegion":
        if self.geometry.is_empty:
            raise ValueError("Clip region is empty")
        usable = [
            p for p in self.geometry.geoms if len(set(p.exterior.coords)) >= 3
        ]
        if not usable:
            raise ValueError("Clip region needs a ring with at least 3 points")
        if self.geometry.area <= 0:
            raise ValueError("Clip region has zero area")
        return self

    @staticmethod
    def _normalize(geometry: BaseGeometry) -> MultiPolygon:
        if not geometry.is_valid:
            geometry = make_valid(geometry)
        parts = polygon_pieces(geometry)
        if len(parts) > 1:
            parts = polygon_pieces(unary_union(parts))
        return MultiPolygon(parts)

    @classmethod
    def from_geometries(cls, geometries: Iterable[BaseGeometry]) -> "ClipRegion":
        """Union several source polygons into one region."""
        parts: list[Polygon] = []
        for geometry in geometries:
            if not geometry.is_valid:
                geometry = make_valid(geometry)
            parts.extend(polygon_pieces(geometry))
        return cls(geometry=unary_union(parts) if parts else MultiPolygon())

    @classmethod
    def from_geojson(cls, data: Mapping[str, Any]) -> "ClipRegion":
        """Build from a GeoJSON geometry, Feature or FeatureCollection."""
        return cls.from_geometries(_geojson_geometries(data))

    @classmethod
    def from_rings(
        cls, rings: Iterable[Sequence[tuple[float, float]]]
    ) -> "ClipRegion":
        """Build from exterior rings of (lon, lat) pairs, one polygon each."""
        return cls.from_geometries(Polygon(ring) for ring in rings)

    @property
    def parts(self) -> tuple[Polygon, ...]:
        return tuple(self.geometry.geoms)

    def bounding_box(self) -> BoundingBox:
        return BoundingBox.of(self.geometry)


# ---------------------------------------------------------------------------
# Cells
# ---------------------------------------------------------------------------
class RawCell(BaseModel):
    """Unclipped Voronoi cell for one site, bounded by the working box."""

    site_id: SiteId
    polygon: Polygon

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class ClippedCell(BaseModel):
    """RawCell intersected with the clip region.

    ``geometry`` may be empty, a Polygon or (keep-all policy) a MultiPolygon.
    ``discarded_pieces`` counts pieces dropped by the keep-site-piece policy.
    """

    site_id: SiteId
    geometry: BaseGeometry
    discarded_pieces: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def is_empty(self) -> bool:
        return self.geometry.is_empty


class OwnedArea(BaseModel):
    """A clipped cell bound to exactly one site - the final output unit."""

    site_id: SiteId
    geometry: BaseGeometry
    area_m2: float = Field(ge=0)  # Geodesic area on the WGS84 ellipsoid

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_geometry(self) -> "OwnedArea":
        if self.geometry.is_empty:
            raise ValueError(f"Owned area for site {self.site_id} is empty")
        if not isinstance(self.geometry, (Polygon, MultiPolygon)):
            raise ValueError(
                f"Owned area must be polygonal, got {self.geometry.geom_type}"
            )
        return self

    @property
    def wkt(self) -> str:
        """Well-known text of the polygon, as stored by target stores."""
        return self.geometry.wkt
