"""Tessellation Bounded Context - Domain Services.

Pure domain logic: a linear pipeline of value-to-value transforms.
NO I/O operations - sites and regions are fetched, and owned areas stored,
by infrastructure adapters behind the ports in ``domain.sync.repositories``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from domain.tessellation.clipping import clip_cell
from domain.tessellation.errors import OwnershipError
from domain.tessellation.ownership import OwnershipResolver
from domain.tessellation.validation import validate_sites
from domain.tessellation.value_objects import (
    BoundingBox,
    ClipRegion,
    OwnedArea,
    Site,
    TessellationOptions,
)
from domain.tessellation.voronoi import build_voronoi_cells

logger = logging.getLogger(__name__)


def working_box(region: ClipRegion, sites: Sequence[Site]) -> BoundingBox:
    """Bounding box of the region grown to hold every site.

    The gate accepts sites within tolerance of the region, which may put them
    just outside its bounding box.
    """
    min_x, min_y, max_x, max_y = region.geometry.bounds
    for site in sites:
        min_x, max_x = min(min_x, site.longitude), max(max_x, site.longitude)
        min_y, max_y = min(min_y, site.latitude), max(max_y, site.latitude)
    return BoundingBox(min_x=min_x, min_y=min_y, max_x=max_x, max_y=max_y)


def tessellate(
    sites: Sequence[Site],
    region: ClipRegion,
    options: TessellationOptions | None = None,
) -> tuple[OwnedArea, ...]:
    """Partition the clip region into one owned area per site.

    Steps: validation gate, Voronoi build over the region's bounding box,
    clip every cell to the region, resolve every clipped cell to its owner.

    Args:
        sites: Input sites (non-empty, unique ids, distinct coordinates)
        region: Clip region
        options: Tolerance, sliver area and multi-piece policy

    Returns:
        OwnedAreas in input site order, exactly one per site

    Raises:
        SiteValidationError: Empty set, duplicate ids, or sites outside region
        GeometricInvariantError: Coincident sites, degenerate geometry,
            disconnected cells (``error`` policy) or unresolved ownership

    Example:
        >>> region = ClipRegion.from_rings([[(0, 0), (1, 0), (1, 1), (0, 1)]])
        >>> a = Site(site_id="A", longitude=0.25, latitude=0.5)
        >>> b = Site(site_id="B", longitude=0.75, latitude=0.5)
        >>> [area.site_id for area in tessellate([a, b], region)]
        ['A', 'B']
    """
    options = options or TessellationOptions()

    validated = validate_sites(sites, region, options.tolerance)
    bbox = working_box(region, validated)
    raw_cells = build_voronoi_cells(validated, bbox)

    by_id = {site.site_id: site for site in validated}
    resolver = OwnershipResolver(validated, options.tolerance)

    owned: dict[object, OwnedArea] = {}
    discarded = 0
    for cell in raw_cells:
        clipped = clip_cell(cell, region, by_id[cell.site_id], options)
        discarded += clipped.discarded_pieces
        owned[cell.site_id] = resolver.resolve(clipped)

    # Bijection: one owned area per validated site
    missing = [site.site_id for site in validated if site.site_id not in owned]
    if missing:
        raise OwnershipError(missing[0], [])

    logger.info(
        "Tessellated %d sites over %d region part(s); %d piece(s) discarded",
        len(validated),
        len(region.parts),
        discarded,
    )
    return tuple(owned[site.site_id] for site in validated)
