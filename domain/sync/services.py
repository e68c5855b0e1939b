"""Sync Bounded Context - Domain Services.

Writes owned areas to every target store with check-then-act upserts.

Stores are written independently: a failure on one (site, store) pair is
logged and recorded, and processing continues with the next store and the
next site. There is no cross-store transaction, so two stores may briefly
disagree about a site between its two writes.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from domain.sync.errors import StoreWriteError
from domain.sync.repositories import AreaStore
from domain.sync.value_objects import SyncReport, WriteAction, WriteOutcome
from domain.tessellation.value_objects import OwnedArea

logger = logging.getLogger(__name__)


def upsert_area(store: AreaStore, area: OwnedArea) -> WriteAction:
    """Insert the area if its site has no row yet, update it otherwise.

    Raises:
        StoreWriteError: Propagated from the store
    """
    if store.exists(area.site_id):
        store.update(area)
        return WriteAction.UPDATED
    store.insert(area)
    return WriteAction.INSERTED


def _sync_one(area: OwnedArea, stores: Sequence[AreaStore]) -> list[WriteOutcome]:
    outcomes: list[WriteOutcome] = []
    for store in stores:
        try:
            action = upsert_area(store, area)
        except StoreWriteError as e:
            logger.error("Write failed for site %s in %s: %s", area.site_id, store.name, e)
            outcomes.append(
                WriteOutcome(
                    site_id=area.site_id,
                    store=store.name,
                    action=WriteAction.FAILED,
                    error=str(e),
                )
            )
            continue
        logger.debug("Site %s %s in %s", area.site_id, action.value, store.name)
        outcomes.append(
            WriteOutcome(site_id=area.site_id, store=store.name, action=action)
        )
    return outcomes


def sync_owned_areas(
    areas: Sequence[OwnedArea],
    stores: Sequence[AreaStore],
    max_in_flight: int = 1,
) -> SyncReport:
    """Upsert every owned area into every store.

    Args:
        areas: Owned areas, written in the given order
        stores: Target stores, written in the given order for each area
        max_in_flight: Number of areas processed concurrently. The default of
            one writes strictly sequentially; larger values use a bounded
            thread pool. Outcomes are reported in input order either way.

    Returns:
        SyncReport with one outcome per (area, store) pair

    Raises:
        ValueError: If max_in_flight < 1
    """
    if max_in_flight < 1:
        raise ValueError(f"max_in_flight must be >= 1, got {max_in_flight}")

    if max_in_flight == 1:
        batches = [_sync_one(area, stores) for area in areas]
    else:
        with ThreadPoolExecutor(max_workers=max_in_flight) as pool:
            batches = list(pool.map(lambda a: _sync_one(a, stores), areas))

    report = SyncReport(outcomes=tuple(o for batch in batches for o in batch))
    log = logger.warning if report.failed_writes else logger.info
    log(
        "Synced %d areas to %d store(s): %d inserted, %d updated, %d failed",
        len(areas),
        len(stores),
        report.inserted,
        report.updated,
        report.failed_writes,
    )
    return report
