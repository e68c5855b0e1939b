"""Sync Bounded Context.

Responsible for moving data across the core boundary:
- Value Objects: SiteSelection, BoundarySelection, WriteOutcome, SyncReport
- Ports: SiteSource, ClipRegionSource, AreaStore
- Services: upsert_area, sync_owned_areas
"""
