"""Tessellation Bounded Context - Polygon Clipper.

Intersects a RawCell with the clip region. The clipper never validates
topology beyond avoiding crashes: whatever it returns is checked by the
ownership resolver.

Numerical policy:
    Cell vertices within ``tolerance`` of the region boundary are snapped onto
    it before the intersection, so coincident edges do not leave hairline
    gaps. Pieces smaller than ``sliver_area`` are treated as floating-point
    noise and dropped.
"""

from __future__ import annotations

import logging

import shapely
from shapely.errors import GEOSException
from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import snap
from shapely.validation import make_valid

from domain.tessellation.errors import DisconnectedCellError
from domain.tessellation.geometry import point_within, polygon_pieces
from domain.tessellation.value_objects import (
    ClippedCell,
    ClipRegion,
    PiecePolicy,
    RawCell,
    Site,
    TessellationOptions,
)

logger = logging.getLogger(__name__)


def _intersect(
    polygon: BaseGeometry, region: BaseGeometry, tolerance: float
) -> BaseGeometry:
    try:
        return polygon.intersection(region)
    except GEOSException:
        if tolerance <= 0:
            raise
        # Topology exceptions on nearly-coincident edges go away on a grid
        logger.warning("Intersection failed, retrying on a %g grid", tolerance)
        return shapely.intersection(polygon, region, grid_size=tolerance)


def clip_cell(
    cell: RawCell,
    region: ClipRegion,
    site: Site,
    options: TessellationOptions | None = None,
) -> ClippedCell:
    """Clip one Voronoi cell to the region.

    Args:
        cell: Unclipped cell, labelled with its site
        region: Clip region (may have several parts)
        site: The site the cell was built for
        options: Tolerance, sliver area and multi-piece policy

    Returns:
        ClippedCell holding an empty geometry, a Polygon, or (keep-all
        policy, or when no piece contains the site) a MultiPolygon

    Raises:
        DisconnectedCellError: Several pieces under PiecePolicy.ERROR
        ValueError: If ``site`` does not match the cell's label
    """
    options = options or TessellationOptions()
    if cell.site_id != site.site_id:
        raise ValueError(f"Cell {cell.site_id} clipped with site {site.site_id}")

    polygon: BaseGeometry = cell.polygon
    if options.tolerance > 0:
        polygon = snap(polygon, region.geometry, options.tolerance)
    if not polygon.is_valid:
        polygon = make_valid(polygon)

    clipped = _intersect(polygon, region.geometry, options.tolerance)
    if not clipped.is_valid:
        clipped = make_valid(clipped)

    pieces = []
    for piece in polygon_pieces(clipped):
        if piece.area > options.sliver_area:
            pieces.append(piece)
        else:
            logger.debug("Site %s: dropped sliver of %.3g deg2", site.site_id, piece.area)

    if not pieces:
        logger.debug("Site %s: clipped cell is empty", site.site_id)
        return ClippedCell(site_id=site.site_id, geometry=Polygon())
    if len(pieces) == 1:
        return ClippedCell(site_id=site.site_id, geometry=pieces[0])

    if options.piece_policy is PiecePolicy.ERROR:
        raise DisconnectedCellError(site.site_id, len(pieces))

    if options.piece_policy is PiecePolicy.KEEP_ALL:
        logger.info(
            "Site %s: cell spans %d region parts, keeping all", site.site_id, len(pieces)
        )
        return ClippedCell(site_id=site.site_id, geometry=MultiPolygon(pieces))

    own = [
        p for p in pieces if point_within(p, *site.coordinate, options.tolerance)
    ]
    if len(own) != 1:
        # Leave the ambiguity to the ownership resolver
        logger.warning(
            "Site %s: %d of %d pieces contain the site", site.site_id, len(own), len(pieces)
        )
        return ClippedCell(site_id=site.site_id, geometry=MultiPolygon(pieces))

    discarded = len(pieces) - 1
    logger.warning(
        "Site %s: cell spans %d region parts, discarded %d piece(s) "
        "not containing the site (%.3g deg2)",
        site.site_id,
        len(pieces),
        discarded,
        sum(p.area for p in pieces) - own[0].area,
    )
    return ClippedCell(
        site_id=site.site_id, geometry=own[0], discarded_pieces=discarded
    )
