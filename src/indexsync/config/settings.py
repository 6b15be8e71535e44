"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. YAML config file (if specified)
  2. Environment variables (INDEXSYNC_ prefix)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

if TYPE_CHECKING:
    from indexsync.core.backoff import BackoffPolicy


class ConnectionSettings(BaseModel):
    """Built-in search service connection defaults."""

    host: str = Field(default="http://localhost", description="Search service host")
    port: int = Field(default=9200, description="Search service port")
    prefix: str | None = Field(default=None, description="Index namespace prefix")


class RetrySettings(BaseModel):
    """Retry and backoff behavior for requests to the search service."""

    base_delay: float = Field(default=0.1, gt=0, description="Delay before the first retry, in seconds")
    max_delay: float = Field(default=30.0, gt=0, description="Upper bound for a single backoff delay")
    max_attempts: int | None = Field(
        default=10,
        ge=1,
        description="Maximum attempts per request; null retries transient failures forever",
    )
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")

    @field_validator("max_attempts", mode="before")
    @classmethod
    def _parse_unbounded(cls, v: object) -> object:
        """Accept 0, 'none' or 'unbounded' (env vars) as no ceiling."""
        if isinstance(v, str) and v.strip().lower() in {"", "none", "null", "unbounded"}:
            return None
        if v == 0:
            return None
        return v

    def to_policy(self) -> BackoffPolicy:
        """Build the ``BackoffPolicy`` these settings describe."""
        from indexsync.core.backoff import BackoffPolicy

        return BackoffPolicy(
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            max_attempts=self.max_attempts,
        )


class SyncSettings(BaseModel):
    """Full-collection resync behavior."""

    max_in_flight: int = Field(default=10, ge=1, description="Max concurrent index writes during a resync")
    max_error_samples: int = Field(default=50, ge=0, description="Per-record failures kept in a job summary")


class SearchSettings(BaseModel):
    """Search request behavior."""

    url_params: str = Field(
        default="search_type=dfs_query_then_fetch&preference=_primary_first",
        description="Query string sent with every _search request; empty sends none",
    )


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the INDEXSYNC_ prefix.
    Nested settings use double underscores: INDEXSYNC_CONNECTION__PORT=9201

    Example:
        INDEXSYNC_CONNECTION__HOST=http://search.internal
        INDEXSYNC_CONNECTION__PREFIX=qa
        INDEXSYNC_RETRY__MAX_ATTEMPTS=unbounded
        INDEXSYNC_SYNC__MAX_IN_FLIGHT=20
        INDEXSYNC_SEARCH__URL_PARAMS=search_type=dfs_query_then_fetch
    """

    model_config = {
        "env_prefix": "INDEXSYNC_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    connection: ConnectionSettings = Field(default_factory=ConnectionSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Keys present in the YAML file win over environment variables; keys it
        omits still fall back to the environment, then to defaults.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
