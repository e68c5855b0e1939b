"""Column Areas Domain Layer.

This package contains the core business logic organized by bounded contexts:
- tessellation: Voronoi cells, clipping to the region, site ownership
- sync: Site selection, source/store ports, upserting owned areas
"""

# Imports alphabetized per project style (isort)
from domain import sync, tessellation

__all__ = ["sync", "tessellation"]
