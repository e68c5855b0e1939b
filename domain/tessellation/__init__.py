"""Tessellation Bounded Context.

Responsible for turning sites and a clip region into owned areas:
- Value Objects: Site, ClipRegion, BoundingBox, RawCell, ClippedCell, OwnedArea
- Services: validate_sites, build_voronoi_cells, clip_cell,
  OwnershipResolver, tessellate
"""
