"""Tessellation Bounded Context - Voronoi Builder.

Builds one bounded Voronoi cell per site inside a working bounding box.

Voronoi cells of hull sites are unbounded. Rather than intersecting rays with
the box, every site is mirrored across the four edges of a slightly padded
box: the bisectors between a site and its mirrors are exactly the padded box
edges, so every original site gets a finite Qhull region. Each region is then
intersected with the real box, which partitions it exactly.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray
from scipy.spatial import QhullError, Voronoi
from shapely.geometry import MultiPoint, Polygon

from domain.tessellation.errors import (
    DegenerateGeometryError,
    DuplicateSitesError,
    SitesOutsideBoxError,
)
from domain.tessellation.value_objects import BoundingBox, RawCell, Site, SiteId

logger = logging.getLogger(__name__)

# Mirror padding as a fraction of the larger box side
PAD_FRACTION = 0.1


def find_coincident_sites(sites: Sequence[Site]) -> list[tuple[SiteId, ...]]:
    """Group identifiers of sites sharing exactly the same coordinate.

    Returns:
        One tuple per coordinate held by more than one site, in input order
    """
    by_coordinate: dict[tuple[float, float], list[SiteId]] = defaultdict(list)
    for site in sites:
        by_coordinate[site.coordinate].append(site.site_id)
    return [tuple(ids) for ids in by_coordinate.values() if len(ids) > 1]


def _tie_break_key(site: Site) -> tuple[float, float, str]:
    # Lexicographic coordinate order; id only separates equal keys for sorting
    return (site.longitude, site.latitude, str(site.site_id))


def _mirror_points(
    points: NDArray[np.float64],
    min_x: float,
    min_y: float,
    max_x: float,
    max_y: float,
) -> NDArray[np.float64]:
    """Reflect points across each edge of the given box."""
    left = points.copy()
    left[:, 0] = 2 * min_x - points[:, 0]
    right = points.copy()
    right[:, 0] = 2 * max_x - points[:, 0]
    bottom = points.copy()
    bottom[:, 1] = 2 * min_y - points[:, 1]
    top = points.copy()
    top[:, 1] = 2 * max_y - points[:, 1]
    return np.vstack([left, right, bottom, top])


def build_voronoi_cells(
    sites: Sequence[Site], bbox: BoundingBox
) -> tuple[RawCell, ...]:
    """Partition ``bbox`` into one cell per site.

    Each cell holds the box points closer to its site than to any other.
    Cells are returned in lexicographic (longitude, latitude) site order and
    carry their site identifier.

    Args:
        sites: Sites inside the box, with distinct coordinates
        bbox: Working box (normally the clip region's bounding box)

    Returns:
        Tuple of RawCells, one per site

    Raises:
        DuplicateSitesError: If two or more sites share a coordinate
        DegenerateGeometryError: If Qhull fails or a cell is not a polygon
        SitesOutsideBoxError: If a site lies outside the box
    """
    if not sites:
        return ()

    groups = find_coincident_sites(sites)
    if groups:
        raise DuplicateSitesError(groups)

    outside = [s.site_id for s in sites if not bbox.contains(*s.coordinate)]
    if outside:
        raise SitesOutsideBoxError(outside)

    box_polygon = bbox.to_polygon()
    if len(sites) == 1:
        # A single site degenerates to the whole box
        return (RawCell(site_id=sites[0].site_id, polygon=box_polygon),)

    ordered = sorted(sites, key=_tie_break_key)
    points = np.array([s.coordinate for s in ordered], dtype=np.float64)

    pad = max(bbox.width, bbox.height) * PAD_FRACTION
    generators = np.vstack(
        [
            points,
            _mirror_points(
                points,
                bbox.min_x - pad,
                bbox.min_y - pad,
                bbox.max_x + pad,
                bbox.max_y + pad,
            ),
        ]
    )

    try:
        vor = Voronoi(generators)
    except QhullError as e:
        raise DegenerateGeometryError(f"Qhull failed on {len(sites)} sites: {e}") from e

    cells: list[RawCell] = []
    for index, site in enumerate(ordered):
        region = vor.regions[vor.point_region[index]]
        if not region or -1 in region:
            raise DegenerateGeometryError(
                f"Site {site.site_id} has no bounded Voronoi region"
            )
        # Voronoi regions are convex, so the hull of the vertices is the cell
        hull = MultiPoint(vor.vertices[region]).convex_hull
        cell = hull.intersection(box_polygon)
        if not isinstance(cell, Polygon) or cell.is_empty:
            raise DegenerateGeometryError(
                f"Voronoi cell for site {site.site_id} is not a polygon "
                f"({cell.geom_type})"
            )
        cells.append(RawCell(site_id=site.site_id, polygon=cell))

    logger.debug("Built %d Voronoi cells in %s", len(cells), bbox)
    return tuple(cells)
