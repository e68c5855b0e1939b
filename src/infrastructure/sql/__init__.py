"""SQL adapters for the sync bounded context.

Adapters exported for simplified imports.
"""

from .sources import SqlClipRegionSource, SqlSiteSource
from .stores import AreaTable, SqlAreaStore

__all__ = ["AreaTable", "SqlAreaStore", "SqlClipRegionSource", "SqlSiteSource"]
