"""Tessellation Bounded Context - Ownership Resolver.

Every clipped cell is already labelled with the site it was built for. The
resolver re-derives the owner from geometry alone and refuses to continue
unless both agree: a silent mis-assignment would corrupt the stored areas.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
from shapely import STRtree, points

from domain.tessellation.errors import OwnershipError
from domain.tessellation.geometry import geodesic_area
from domain.tessellation.value_objects import (
    DEFAULT_TOLERANCE_DEG,
    ClippedCell,
    OwnedArea,
    Site,
    SiteId,
)

logger = logging.getLogger(__name__)


class OwnershipResolver:
    """Resolve clipped cells to the single site lying inside each.

    Parameters
    ----------
    sites: Sequence[Site]
        The full validated site set.
    tolerance: float
        Distance in degrees within which a site on a cell boundary still
        counts as inside the cell.
    """

    def __init__(
        self, sites: Sequence[Site], tolerance: float = DEFAULT_TOLERANCE_DEG
    ) -> None:
        self.tolerance = tolerance
        self._site_ids: list[SiteId] = [s.site_id for s in sites]
        coords = np.array([s.coordinate for s in sites], dtype=np.float64)
        self._tree = STRtree(points(coords.reshape(-1, 2)))

    def sites_within(self, cell: ClippedCell) -> list[SiteId]:
        """Identifiers of sites inside or within tolerance of the cell."""
        if cell.is_empty:
            return []
        indices = self._tree.query(
            cell.geometry, predicate="dwithin", distance=self.tolerance
        )
        return [self._site_ids[i] for i in sorted(int(i) for i in indices)]

    def resolve(self, cell: ClippedCell) -> OwnedArea:
        """Bind a clipped cell to its owning site.

        Raises:
            OwnershipError: Zero matches, several matches, or a match other
                than the cell's own label
        """
        matches = self.sites_within(cell)
        if len(matches) != 1 or matches[0] != cell.site_id:
            logger.error(
                "Cell %s resolved to %d site(s): %s", cell.site_id, len(matches), matches
            )
            raise OwnershipError(cell.site_id, matches)

        return OwnedArea(
            site_id=cell.site_id,
            geometry=cell.geometry,
            area_m2=geodesic_area(cell.geometry),
        )
