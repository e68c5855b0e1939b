"""Sync Bounded Context - Value Objects.

Selections are validated at construction time: exactly one selection mode
must be configured, so an ambiguous or empty selection cannot exist.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from domain.tessellation.value_objects import SiteId


# ---------------------------------------------------------------------------
# Selections
# ---------------------------------------------------------------------------
class SiteSelection(BaseModel):
    """Which sites to tessellate: explicit ids or whole groups, never both."""

    site_ids: tuple[SiteId, ...] = ()
    group_ids: tuple[SiteId, ...] = ()

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_mode(self) -> "SiteSelection":
        if bool(self.site_ids) == bool(self.group_ids):
            raise ValueError(
                "Specify exactly one of site_ids or group_ids "
                f"(got {len(self.site_ids)} ids, {len(self.group_ids)} groups)"
            )
        return self

    @property
    def mode(self) -> str:
        return "site_ids" if self.site_ids else "group_ids"


class BoundarySelection(BaseModel):
    """How to address the clip region: by id, name, group or custom SQL.

    Empty strings count as unset, matching hand-edited config files.
    """

    boundary_id: int | None = None
    boundary_name: str | None = None
    boundary_group: str | None = None
    clip_sql: str | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("boundary_name", "boundary_group", "clip_sql", mode="before")
    @classmethod
    def blank_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def validate_mode(self) -> "BoundarySelection":
        chosen = [
            name
            for name in ("boundary_id", "boundary_name", "boundary_group", "clip_sql")
            if getattr(self, name) is not None
        ]
        if len(chosen) != 1:
            raise ValueError(
                "Specify exactly one of boundary_id, boundary_name, "
                f"boundary_group or clip_sql (got {chosen or 'none'})"
            )
        return self

    @property
    def mode(self) -> str:
        for name in ("boundary_id", "boundary_name", "boundary_group"):
            if getattr(self, name) is not None:
                return name
        return "clip_sql"


# ---------------------------------------------------------------------------
# Sync Outcomes
# ---------------------------------------------------------------------------
class WriteAction(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    FAILED = "failed"


class WriteOutcome(BaseModel):
    """Result of one upsert against one store."""

    site_id: SiteId
    store: str
    action: WriteAction
    error: str | None = None

    model_config = ConfigDict(frozen=True)


class SyncReport(BaseModel):
    """Every write outcome of a sync run, in processing order."""

    outcomes: tuple[WriteOutcome, ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def failures(self) -> tuple[WriteOutcome, ...]:
        return tuple(o for o in self.outcomes if o.action is WriteAction.FAILED)

    @property
    def failed_writes(self) -> int:
        return len(self.failures)

    @property
    def inserted(self) -> int:
        return sum(1 for o in self.outcomes if o.action is WriteAction.INSERTED)

    @property
    def updated(self) -> int:
        return sum(1 for o in self.outcomes if o.action is WriteAction.UPDATED)

    @property
    def ok(self) -> bool:
        return not self.failures
