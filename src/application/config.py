"""Run configuration and environment settings.

Two layers:
- RunConfig: what to tessellate and where to write it. Immutable, loaded
  from a JSON file, with selector exclusivity enforced at construction.
- Settings: environment-specific values (database URLs, log level) read
  from ``COLUMN_AREAS_*`` environment variables or a ``.env`` file.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from domain.sync.errors import ConfigurationError
from domain.sync.value_objects import BoundarySelection, SiteSelection
from domain.tessellation.value_objects import TessellationOptions
from infrastructure.sql.stores import AreaTable

# Upper bound for concurrent area writes
MAX_IN_FLIGHT_LIMIT = 16


class TargetConfig(BaseModel):
    """One target store: a named database plus the table to write."""

    name: str = Field(min_length=1)
    database: str = Field(min_length=1)
    table: AreaTable = AreaTable()

    model_config = ConfigDict(frozen=True)


class RunConfig(BaseModel):
    """Everything a run needs besides credentials.

    Sites and the clip region come from a GeoJSON file when ``sites_file`` /
    ``boundary_file`` is set, otherwise from the named database.
    """

    sites: SiteSelection
    boundary: BoundarySelection
    site_database: str = "catalog"
    boundary_database: str = "boundaries"
    sites_file: Path | None = None
    boundary_file: Path | None = None
    targets: tuple[TargetConfig, ...] = Field(min_length=1)
    options: TessellationOptions = TessellationOptions()
    max_in_flight: int = Field(default=1, ge=1, le=MAX_IN_FLIGHT_LIMIT)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_targets(self) -> "RunConfig":
        names = [t.name for t in self.targets]
        if len(set(names)) != len(names):
            raise ValueError(f"Target names must be unique: {names}")
        return self


def load_run_config(path: Path | str) -> RunConfig:
    """Read and validate a JSON run configuration.

    Raises:
        ConfigurationError: Missing file, malformed JSON, or any selector or
            field violating the configuration rules
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read config {path.name}: {e.strerror}") from e
    try:
        return RunConfig.model_validate(json.loads(raw))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{path.name} is not valid JSON: {e}") from e
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config {path.name}: {e}") from e


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    # Database name -> SQLAlchemy URL, e.g.
    # COLUMN_AREAS_DATABASES='{"catalog": "mysql+pymysql://...", ...}'
    databases: dict[str, str] = Field(
        default_factory=dict, description="Named SQLAlchemy URLs"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_prefix="COLUMN_AREAS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def database_url(self, name: str) -> str:
        try:
            return self.databases[name]
        except KeyError:
            raise ConfigurationError(
                f"No URL configured for database {name!r} "
                f"(known: {sorted(self.databases) or 'none'})"
            ) from None
