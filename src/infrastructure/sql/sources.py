"""SQL adapters for SiteSource and ClipRegionSource.

Works against any SQLAlchemy engine. The defaults match the column catalog
(``cols`` with ``id``/``lat``/``lng``/``col_group_id``) and the PostGIS
boundary table ``geologic_boundaries.boundaries``.

Table and column names come from configuration, never from user input, and
are still checked against a plain identifier pattern before being placed in
SQL text. Values always go through bound parameters.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError
from shapely.geometry import shape
from sqlalchemy import bindparam, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from domain.sync.errors import (
    ClipRegionNotFoundError,
    NoSitesFoundError,
    SourceReadError,
)
from domain.sync.value_objects import BoundarySelection, SiteSelection
from domain.tessellation.value_objects import ClipRegion, Site

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def checked_identifier(name: str) -> str:
    """Return ``name`` if it is a plain (optionally schema-qualified) identifier."""
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Not a valid SQL identifier: {name!r}")
    return name


class SqlSiteSource:
    """Read site coordinates from a column table.

    Parameters
    ----------
    engine: Engine
        SQLAlchemy engine for the catalog database.
    table, id_column, group_column, lat_column, lng_column: str
        Names of the table and its columns.
    """

    def __init__(
        self,
        engine: Engine,
        table: str = "cols",
        id_column: str = "id",
        group_column: str = "col_group_id",
        lat_column: str = "lat",
        lng_column: str = "lng",
    ) -> None:
        self.engine = engine
        self.table = checked_identifier(table)
        self.id_column = checked_identifier(id_column)
        self.group_column = checked_identifier(group_column)
        self.lat_column = checked_identifier(lat_column)
        self.lng_column = checked_identifier(lng_column)

    def fetch_sites(self, selection: SiteSelection) -> list[Site]:
        if selection.site_ids:
            column, values = self.id_column, list(selection.site_ids)
        else:
            column, values = self.group_column, list(selection.group_ids)

        stmt = text(
            f"SELECT {self.id_column} AS id, {self.lat_column} AS lat, "
            f"{self.lng_column} AS lng FROM {self.table} "
            f"WHERE {column} IN :values ORDER BY {self.id_column}"
        ).bindparams(bindparam("values", expanding=True))

        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt, {"values": values}).mappings().all()
        except SQLAlchemyError as e:
            raise SourceReadError(f"Failed to read sites from {self.table}: {e}") from e

        if not rows:
            raise NoSitesFoundError(
                f"No sites in {self.table} for {selection.mode}={values}"
            )

        sites: list[Site] = []
        for row in rows:
            try:
                # DECIMAL columns come back as Decimal
                sites.append(
                    Site(
                        site_id=row["id"],
                        longitude=float(row["lng"]),
                        latitude=float(row["lat"]),
                    )
                )
            except (TypeError, ValidationError) as e:
                raise SourceReadError(
                    f"Site {row['id']} has invalid coordinates: {e}"
                ) from e

        logger.info("Loaded %d sites by %s", len(sites), selection.mode)
        return sites


def _parse_geometry(value: Any) -> Any:
    # Drivers return GeoJSON as text or, for json columns, already decoded
    data = json.loads(value) if isinstance(value, (str, bytes)) else value
    if not isinstance(data, Mapping):
        raise SourceReadError(f"Clip geometry is not GeoJSON: {value!r:.80}")
    return data


class SqlClipRegionSource:
    """Read the clip region as GeoJSON from a boundary table or custom SQL.

    Every returned row is a GeoJSON geometry in a ``geom`` column; all rows
    are unioned into one region.
    """

    _COLUMNS = {
        "boundary_id": "boundary_id",
        "boundary_name": "name",
        "boundary_group": "boundary_group",
    }

    def __init__(
        self,
        engine: Engine,
        table: str = "geologic_boundaries.boundaries",
        geometry_column: str = "geom",
    ) -> None:
        self.engine = engine
        self.table = checked_identifier(table)
        self.geometry_column = checked_identifier(geometry_column)

    def _statement(self, selection: BoundarySelection) -> tuple[Any, dict[str, Any]]:
        if selection.clip_sql is not None:
            return text(selection.clip_sql), {}
        column = self._COLUMNS[selection.mode]
        stmt = text(
            f"SELECT ST_AsGeoJSON((ST_Dump(ST_Union({self.geometry_column}))).geom) "
            f"AS geom FROM {self.table} WHERE {column} = :value"
        )
        return stmt, {"value": getattr(selection, selection.mode)}

    def fetch_region(self, selection: BoundarySelection) -> ClipRegion:
        stmt, params = self._statement(selection)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt, params).mappings().all()
        except SQLAlchemyError as e:
            raise SourceReadError(f"Failed to read clip region: {e}") from e

        geometries = [
            shape(_parse_geometry(row["geom"])) for row in rows if row["geom"] is not None
        ]
        if not geometries:
            raise ClipRegionNotFoundError(
                f"No clip polygons returned for {selection.mode}"
            )

        try:
            region = ClipRegion.from_geometries(geometries)
        except ValueError as e:
            raise SourceReadError(f"Clip region is unusable: {e}") from e

        logger.info(
            "Loaded clip region by %s: %d row(s), %d part(s)",
            selection.mode,
            len(geometries),
            len(region.parts),
        )
        return region
