"""Tessellation Bounded Context - Geometry Primitives.

Small predicates and measurements shared by the validation gate, the
clipper and the ownership resolver. NO I/O.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import shapely
from numpy.typing import NDArray
from pyproj import Geod
from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry
from shapely.geometry.polygon import orient

# WGS84 ellipsoid for geodesic calculations (same as GPS, EPSG:4326)
_geod = Geod(ellps="WGS84")


# ---------------------------------------------------------------------------
# Piece Extraction
# ---------------------------------------------------------------------------
def polygon_pieces(geometry: BaseGeometry) -> list[Polygon]:
    """Flatten any geometry into its polygonal parts.

    Points and lines produced by touching boundaries carry no area and are
    dropped. Nested collections are walked recursively.
    """
    if geometry.is_empty:
        return []
    if isinstance(geometry, Polygon):
        return [geometry]
    if hasattr(geometry, "geoms"):
        pieces: list[Polygon] = []
        for part in geometry.geoms:
            pieces.extend(polygon_pieces(part))
        return pieces
    return []


# ---------------------------------------------------------------------------
# Point-in-Polygon
# ---------------------------------------------------------------------------
def points_within(
    geometry: BaseGeometry,
    coordinates: Sequence[tuple[float, float]],
    tolerance: float = 0.0,
) -> NDArray[np.bool_]:
    """Vectorized inclusive point-in-polygon test.

    A point counts as inside when the geometry covers it (boundary included)
    or when it lies within ``tolerance`` of the geometry. For a multi-part
    geometry, being inside any one part is enough.

    Returns:
        Boolean array aligned with ``coordinates``
    """
    if len(coordinates) == 0:
        return np.zeros(0, dtype=bool)
    points = shapely.points(np.asarray(coordinates, dtype=np.float64))
    shapely.prepare(geometry)
    inside = shapely.covers(geometry, points)
    if tolerance > 0 and not inside.all():
        inside |= shapely.dwithin(geometry, points, tolerance)
    return np.asarray(inside, dtype=bool)


def point_within(
    geometry: BaseGeometry, longitude: float, latitude: float, tolerance: float = 0.0
) -> bool:
    """Scalar form of :func:`points_within`."""
    return bool(points_within(geometry, [(longitude, latitude)], tolerance)[0])


# ---------------------------------------------------------------------------
# Geodesic Area
# ---------------------------------------------------------------------------
def geodesic_area(geometry: BaseGeometry) -> float:
    """Area in square meters on the WGS84 ellipsoid.

    Uses pyproj.Geod on each polygonal piece. Pieces are re-oriented first
    (exterior counter-clockwise, holes clockwise) because Geod signs ring
    areas by orientation.
    """
    total = 0.0
    for piece in polygon_pieces(geometry):
        area, _ = _geod.geometry_area_perimeter(orient(piece, sign=1.0))
        total += area
    return float(abs(total))
