"""Tessellation Bounded Context - Validation Gate.

Pre-flight check run before any geometry is built. A site outside the clip
region would silently vanish from the final coverage, so the whole run is
rejected instead of tessellating a subset.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence

from domain.tessellation.errors import (
    DuplicateSiteIdsError,
    EmptySiteSetError,
    SitesOutsideRegionError,
)
from domain.tessellation.geometry import points_within
from domain.tessellation.value_objects import (
    DEFAULT_TOLERANCE_DEG,
    ClipRegion,
    Site,
)

logger = logging.getLogger(__name__)


def validate_sites(
    sites: Sequence[Site],
    region: ClipRegion,
    tolerance: float = DEFAULT_TOLERANCE_DEG,
) -> tuple[Site, ...]:
    """Confirm every site lies inside (or on the boundary of) the region.

    Args:
        sites: Input sites, in any order
        region: Clip region; a site inside any one part counts as inside
        tolerance: Distance in degrees within which a site still counts as
            on the boundary

    Returns:
        The full site set, unchanged and in input order

    Raises:
        EmptySiteSetError: If no sites were supplied
        DuplicateSiteIdsError: If an identifier appears more than once
        SitesOutsideRegionError: Listing every site outside the region
    """
    if not sites:
        raise EmptySiteSetError("At least one site is required")

    counts = Counter(site.site_id for site in sites)
    repeated = [site_id for site_id, n in counts.items() if n > 1]
    if repeated:
        raise DuplicateSiteIdsError(repeated)

    inside = points_within(
        region.geometry, [site.coordinate for site in sites], tolerance
    )
    outside = [site.site_id for site, ok in zip(sites, inside) if not ok]
    if outside:
        logger.error("%d of %d sites outside clip region", len(outside), len(sites))
        raise SitesOutsideRegionError(outside)

    logger.debug("All %d sites inside clip region", len(sites))
    return tuple(sites)
