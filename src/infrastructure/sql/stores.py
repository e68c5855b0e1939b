"""SQL adapter for the AreaStore port.

One SqlAreaStore writes one table. The column catalog keeps owned areas in
``col_areas`` in both the MariaDB and the PostGIS database; the ``cols``
table itself can be kept in step with an update-only store.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from domain.sync.errors import StoreWriteError
from domain.tessellation.value_objects import OwnedArea, SiteId
from infrastructure.sql.sources import checked_identifier

logger = logging.getLogger(__name__)


class AreaTable(BaseModel):
    """Where and how owned areas are written.

    ``geometry_sql`` is the SQL expression turning the ``:wkt`` parameter
    into the stored geometry; plain ``:wkt`` stores the text itself. With
    ``geometry_column`` unset only the area is written, which needs an
    ``area_column``.
    With ``update_only`` a missing row is a failed write, not an insert.
    """

    table: str = "col_areas"
    key_column: str = "col_id"
    geometry_column: str | None = "col_area"
    geometry_sql: str = "ST_GeomFromText(:wkt)"
    area_column: str | None = None
    wkt_column: str | None = None
    update_only: bool = False

    model_config = ConfigDict(frozen=True)

    @field_validator("table", "key_column")
    @classmethod
    def plain_identifier(cls, value: str) -> str:
        return checked_identifier(value)

    @field_validator("geometry_column", "area_column", "wkt_column")
    @classmethod
    def optional_identifier(cls, value: str | None) -> str | None:
        return None if value is None else checked_identifier(value)

    @field_validator("geometry_sql")
    @classmethod
    def uses_wkt_parameter(cls, value: str) -> str:
        if ":wkt" not in value:
            raise ValueError(f"geometry_sql must reference :wkt, got {value!r}")
        return value

    @model_validator(mode="after")
    def writes_something(self) -> "AreaTable":
        if self.geometry_column is None and self.area_column is None:
            raise ValueError("Set geometry_column, area_column or both")
        return self


class SqlAreaStore:
    """Check/insert/update owned areas keyed by site identifier.

    Each operation runs in its own transaction. Driver errors are wrapped in
    StoreWriteError so the sync service can record them per site.
    """

    def __init__(self, engine: Engine, table: AreaTable, name: str | None = None) -> None:
        self.engine = engine
        self.table = table
        self.name = name or table.table

    def _values(self, area: OwnedArea) -> tuple[list[str], list[str], dict[str, object]]:
        t = self.table
        columns: list[str] = []
        expressions: list[str] = []
        params: dict[str, object] = {"site_id": area.site_id}
        if t.geometry_column:
            columns.append(t.geometry_column)
            expressions.append(t.geometry_sql)
            params["wkt"] = area.wkt
        if t.area_column:
            columns.append(t.area_column)
            expressions.append(":area")
            params["area"] = area.area_m2
        if t.wkt_column:
            columns.append(t.wkt_column)
            expressions.append(":wkt")
            params["wkt"] = area.wkt
        return columns, expressions, params

    def exists(self, site_id: SiteId) -> bool:
        t = self.table
        stmt = text(
            f"SELECT {t.key_column} FROM {t.table} "
            f"WHERE {t.key_column} = :site_id LIMIT 1"
        )
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt, {"site_id": site_id}).first()
        except SQLAlchemyError as e:
            raise StoreWriteError(self.name, site_id, f"existence check failed: {e}") from e
        return row is not None

    def insert(self, area: OwnedArea) -> None:
        t = self.table
        if t.update_only:
            raise StoreWriteError(
                self.name, area.site_id, f"no row in {t.table} and inserts are disabled"
            )
        columns, expressions, params = self._values(area)
        stmt = text(
            f"INSERT INTO {t.table} ({t.key_column}, {', '.join(columns)}) "
            f"VALUES (:site_id, {', '.join(expressions)})"
        )
        try:
            with self.engine.begin() as conn:
                conn.execute(stmt, params)
        except SQLAlchemyError as e:
            raise StoreWriteError(self.name, area.site_id, f"insert failed: {e}") from e
        logger.debug("Inserted site %s into %s", area.site_id, t.table)

    def update(self, area: OwnedArea) -> None:
        t = self.table
        columns, expressions, params = self._values(area)
        assignments = ", ".join(f"{c} = {e}" for c, e in zip(columns, expressions))
        stmt = text(
            f"UPDATE {t.table} SET {assignments} WHERE {t.key_column} = :site_id"
        )
        try:
            with self.engine.begin() as conn:
                result = conn.execute(stmt, params)
        except SQLAlchemyError as e:
            raise StoreWriteError(self.name, area.site_id, f"update failed: {e}") from e
        if result.rowcount == 0:
            raise StoreWriteError(self.name, area.site_id, f"no row in {t.table} to update")
        logger.debug("Updated site %s in %s", area.site_id, t.table)
