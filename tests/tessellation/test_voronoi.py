"""Tests for the bounded Voronoi builder."""

from __future__ import annotations

import itertools

import numpy as np
import pytest
from shapely.geometry import Point
from shapely.ops import unary_union

from domain.tessellation.errors import DuplicateSitesError, SitesOutsideBoxError
from domain.tessellation.value_objects import BoundingBox, Site
from domain.tessellation.voronoi import build_voronoi_cells, find_coincident_sites

UNIT_BOX = BoundingBox(min_x=0, min_y=0, max_x=1, max_y=1)


def random_sites(n: int, bbox: BoundingBox, seed: int = 7) -> list[Site]:
    """n sites uniformly inside bbox (strict interior)."""
    rng = np.random.default_rng(seed)
    xs = rng.uniform(bbox.min_x, bbox.max_x, n)
    ys = rng.uniform(bbox.min_y, bbox.max_y, n)
    return [
        Site(site_id=i, longitude=float(x), latitude=float(y))
        for i, (x, y) in enumerate(zip(xs, ys))
    ]


def test_two_sites_split_square_in_half(two_sites):
    cells = {c.site_id: c.polygon for c in build_voronoi_cells(two_sites, UNIT_BOX)}

    assert set(cells) == {"A", "B"}
    assert cells["A"].bounds == pytest.approx((0.0, 0.0, 0.5, 1.0), abs=1e-9)
    assert cells["B"].bounds == pytest.approx((0.5, 0.0, 1.0, 1.0), abs=1e-9)
    assert cells["A"].area == pytest.approx(0.5)


def test_single_site_owns_whole_box():
    cells = build_voronoi_cells([Site(site_id=1, longitude=0.3, latitude=0.3)], UNIT_BOX)
    assert len(cells) == 1
    assert cells[0].polygon.equals(UNIT_BOX.to_polygon())


def test_no_sites_no_cells():
    assert build_voronoi_cells([], UNIT_BOX) == ()


def test_coincident_sites_raise_with_all_ids():
    sites = [
        Site(site_id="A", longitude=0.1, latitude=0.1),
        Site(site_id="B", longitude=0.1, latitude=0.1),
        Site(site_id="C", longitude=0.9, latitude=0.9),
    ]
    with pytest.raises(DuplicateSitesError) as exc_info:
        build_voronoi_cells(sites, UNIT_BOX)

    assert exc_info.value.groups == (("A", "B"),)
    assert exc_info.value.site_ids == ("A", "B")


def test_find_coincident_sites_groups_in_input_order():
    sites = [
        Site(site_id=3, longitude=0.5, latitude=0.5),
        Site(site_id=1, longitude=0.2, latitude=0.2),
        Site(site_id=2, longitude=0.5, latitude=0.5),
        Site(site_id=4, longitude=0.2, latitude=0.2),
    ]
    assert find_coincident_sites(sites) == [(3, 2), (1, 4)]


def test_site_outside_box_rejected():
    sites = [
        Site(site_id=1, longitude=0.5, latitude=0.5),
        Site(site_id=2, longitude=1.5, latitude=0.5),
    ]
    with pytest.raises(SitesOutsideBoxError, match="outside the working box") as exc_info:
        build_voronoi_cells(sites, UNIT_BOX)
    assert exc_info.value.site_ids == (2,)
    assert exc_info.value.stage == "voronoi"


def test_collinear_sites_give_strips():
    sites = [
        Site(site_id=i, longitude=x, latitude=0.5)
        for i, x in enumerate([0.1, 0.5, 0.9])
    ]
    cells = {c.site_id: c.polygon for c in build_voronoi_cells(sites, UNIT_BOX)}

    assert cells[0].bounds == pytest.approx((0.0, 0.0, 0.3, 1.0), abs=1e-9)
    assert cells[1].bounds == pytest.approx((0.3, 0.0, 0.7, 1.0), abs=1e-9)
    assert cells[2].bounds == pytest.approx((0.7, 0.0, 1.0, 1.0), abs=1e-9)


def test_cocircular_sites_give_quarters():
    # Four sites on a circle: all bisectors meet in the box center
    sites = [
        Site(site_id=f"{i}{j}", longitude=0.25 + 0.5 * i, latitude=0.25 + 0.5 * j)
        for i in (0, 1)
        for j in (0, 1)
    ]
    cells = build_voronoi_cells(sites, UNIT_BOX)

    assert len(cells) == 4
    for cell in cells:
        assert cell.polygon.area == pytest.approx(0.25, abs=1e-9)


def test_sites_on_box_edge():
    sites = [
        Site(site_id="W", longitude=0.0, latitude=0.5),
        Site(site_id="E", longitude=1.0, latitude=0.5),
    ]
    cells = {c.site_id: c.polygon for c in build_voronoi_cells(sites, UNIT_BOX)}
    assert cells["W"].area == pytest.approx(0.5)
    assert cells["E"].area == pytest.approx(0.5)


def test_cells_partition_box_exactly():
    bbox = BoundingBox(min_x=-110.0, min_y=38.0, max_x=-104.0, max_y=42.0)
    sites = random_sites(40, bbox)
    cells = build_voronoi_cells(sites, bbox)

    assert len(cells) == len(sites)
    union = unary_union([c.polygon for c in cells])
    assert union.area == pytest.approx(bbox.to_polygon().area, rel=1e-9)
    assert union.symmetric_difference(bbox.to_polygon()).area < 1e-9

    for a, b in itertools.combinations(cells, 2):
        assert a.polygon.intersection(b.polygon).area < 1e-12


def test_each_cell_holds_nearest_points():
    sites = random_sites(25, UNIT_BOX, seed=11)
    by_id = {s.site_id: s for s in sites}
    cells = build_voronoi_cells(sites, UNIT_BOX)
    coords = np.array([s.coordinate for s in sites])

    for cell in cells:
        site = by_id[cell.site_id]
        assert cell.polygon.covers(Point(site.coordinate))
        # The centroid of a Voronoi cell is closer to its own site than to any other
        cx, cy = cell.polygon.centroid.coords[0]
        nearest = int(np.argmin(np.hypot(coords[:, 0] - cx, coords[:, 1] - cy)))
        assert sites[nearest].site_id == cell.site_id


def test_result_independent_of_input_order():
    sites = random_sites(15, UNIT_BOX, seed=3)
    forward = {c.site_id: c.polygon for c in build_voronoi_cells(sites, UNIT_BOX)}
    backward = {
        c.site_id: c.polygon for c in build_voronoi_cells(sites[::-1], UNIT_BOX)
    }
    for site_id, polygon in forward.items():
        assert polygon.symmetric_difference(backward[site_id]).area < 1e-12
