"""Tessellation Bounded Context - Error Hierarchy.

Custom exceptions for validation and geometric invariant violations.
All of them are fatal: they stop the batch before anything is written.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from domain.errors import ColumnAreasError

if TYPE_CHECKING:
    from domain.tessellation.value_objects import SiteId


def _format_ids(site_ids: Iterable[SiteId]) -> str:
    return ", ".join(str(s) for s in site_ids)


class TessellationError(ColumnAreasError):
    """Base error for tessellation operations."""

    stage = "tessellation"


# ---------------------------------------------------------------------------
# Validation Gate
# ---------------------------------------------------------------------------
class SiteValidationError(TessellationError):
    """Input sites failed the pre-flight checks."""

    stage = "validation"


class EmptySiteSetError(SiteValidationError):
    """No sites were supplied."""


class DuplicateSiteIdsError(SiteValidationError):
    """The same site identifier appears more than once.

    Attributes:
        site_ids: The repeated identifiers (each listed once)
    """

    def __init__(self, site_ids: Sequence[SiteId]) -> None:
        self.site_ids = tuple(site_ids)
        super().__init__(f"Duplicate site identifiers: {_format_ids(self.site_ids)}")


class SitesOutsideRegionError(SiteValidationError):
    """One or more sites lie outside the clip region.

    Attributes:
        site_ids: Every offending identifier, in input order
    """

    def __init__(self, site_ids: Sequence[SiteId]) -> None:
        self.site_ids = tuple(site_ids)
        super().__init__(
            f"{len(self.site_ids)} site(s) outside the clip region: "
            f"{_format_ids(self.site_ids)}"
        )


# ---------------------------------------------------------------------------
# Geometric Invariant Violations
# ---------------------------------------------------------------------------
class GeometricInvariantError(TessellationError):
    """Degenerate input or an algorithmic bug was detected."""


class DuplicateSitesError(GeometricInvariantError):
    """Two or more sites share the same coordinate.

    Attributes:
        groups: One tuple of identifiers per coincident coordinate
    """

    stage = "voronoi"

    def __init__(self, groups: Sequence[Sequence[SiteId]]) -> None:
        self.groups = tuple(tuple(g) for g in groups)
        described = "; ".join(f"[{_format_ids(g)}]" for g in self.groups)
        super().__init__(f"Coincident sites with ambiguous ownership: {described}")

    @property
    def site_ids(self) -> tuple[SiteId, ...]:
        return tuple(s for group in self.groups for s in group)


class DegenerateGeometryError(GeometricInvariantError):
    """The Voronoi construction could not produce a bounded cell."""

    stage = "voronoi"


class SitesOutsideBoxError(GeometricInvariantError):
    """Sites fall outside the working box the Voronoi cells are bounded by.

    Attributes:
        site_ids: Every offending identifier, in input order
    """

    stage = "voronoi"

    def __init__(self, site_ids: Sequence[SiteId]) -> None:
        self.site_ids = tuple(site_ids)
        super().__init__(f"Sites outside the working box: {_format_ids(self.site_ids)}")


class DisconnectedCellError(GeometricInvariantError):
    """A clipped cell split into several pieces under the ``error`` policy.

    Attributes:
        site_id: Site whose cell is disconnected
        pieces: Number of pieces after clipping
    """

    stage = "clipping"

    def __init__(self, site_id: SiteId, pieces: int) -> None:
        self.site_id = site_id
        self.pieces = pieces
        super().__init__(
            f"Cell for site {site_id} splits into {pieces} disjoint pieces"
        )


class OwnershipError(GeometricInvariantError):
    """A clipped cell does not resolve to exactly its own site.

    Attributes:
        site_id: Label carried by the cell
        matches: Sites found inside the cell (may be empty)
    """

    stage = "ownership"

    def __init__(self, site_id: SiteId, matches: Sequence[SiteId]) -> None:
        self.site_id = site_id
        self.matches = tuple(matches)
        if not self.matches:
            detail = "contains no site"
        elif len(self.matches) > 1:
            detail = f"contains {len(self.matches)} sites ({_format_ids(self.matches)})"
        else:
            detail = f"contains site {self.matches[0]} instead"
        super().__init__(f"Cell labelled {site_id} {detail}")
