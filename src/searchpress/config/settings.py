"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. YAML config file (if specified)
  2. Environment variables (SEARCHPRESS_ prefix)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class ServerSettings(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=8080, description="Server port")
    workers: int = Field(default=1, description="Number of worker processes")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")


class ClusterSettings(BaseModel):
    """Search cluster connection configuration.

    The primary ``host`` is tried first; ``backup_hosts`` are used in order
    when the primary fails or when ``use_only_backups`` is set.
    """

    host: str = Field(default="http://localhost:9200", description="Primary cluster URL")
    backup_hosts: list[str] = Field(default_factory=list, description="Backup cluster URLs, in order of preference")
    index_prefix: str = Field(default="searchpress", description="Index name prefix")
    site_id: int = Field(default=1, ge=0, description="Site id appended to the index name")
    network_alias: str = Field(default="searchpress-global", description="Alias spanning every site index")
    api_key: str | None = Field(default=None, description="Value for the X-SearchPress-API-Key header")
    shield: str | None = Field(default=None, description="Basic-auth credential as 'username:password'")
    force_host_refresh: bool = Field(default=False, description="Re-resolve the host on every request")
    use_only_backups: bool = Field(default=False, description="Never select the primary host")
    verify_certs: bool = Field(default=True, description="Verify TLS certificates")
    read_timeout: float = Field(default=5.0, gt=0, description="Timeout for reads and admin calls (seconds)")
    write_timeout: float = Field(default=15.0, gt=0, description="Timeout for single-document writes (seconds)")
    bulk_timeout: float = Field(default=30.0, gt=0, description="Timeout for bulk writes (seconds)")
    number_of_shards: int | None = Field(default=None, description="Override index shard count in the mapping")
    number_of_replicas: int | None = Field(default=None, description="Override index replica count in the mapping")

    @field_validator("backup_hosts", mode="before")
    @classmethod
    def _parse_hosts(cls, v: Any) -> list[str]:
        """Parse hosts from JSON string (env var) or list."""
        if isinstance(v, str):
            import json

            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return [str(h) for h in parsed]
            except (json.JSONDecodeError, TypeError):
                pass
            # Comma separated or single host
            return [h.strip() for h in v.split(",") if h.strip()]
        return list(v)

    def index_name(self, site_id: int | None = None) -> str:
        """Return the index name for a site (defaults to the current site)."""
        return f"{self.index_prefix}-{self.site_id if site_id is None else site_id}"


class QuerySettings(BaseModel):
    """Query translation defaults."""

    posts_per_page: int = Field(default=10, ge=1, description="Default page size")
    max_result_window: int = Field(default=10000, ge=1, description="Page size used for 'unlimited' requests")
    match_boost: float = Field(default=2, description="Boost applied to the exact multi-match clause")
    fuzziness: int | str = Field(default=2, description="Fuzziness of the fuzzy multi-match clause")


class IndexingSettings(BaseModel):
    """Document preparation configuration."""

    ignore_invalid_dates: bool = Field(default=True, description="Replace invalid or zero dates with null")
    allow_term_hierarchy: bool = Field(default=False, description="Index ancestor terms alongside assigned terms")
    allowed_protected_keys: list[str] | bool = Field(
        default_factory=list,
        description="Internal ('_'-prefixed) meta keys to index; true indexes all of them",
    )
    excluded_public_keys: list[str] | bool = Field(
        default_factory=list,
        description="Public meta keys to skip; true skips all of them",
    )


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")
    debug: bool = Field(default=False, description="Keep an in-memory log of outbound requests")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the SEARCHPRESS_ prefix.
    Nested settings use double underscores: SEARCHPRESS_CLUSTER__HOST=http://es:9200

    Example:
        SEARCHPRESS_CLUSTER__HOST=http://es-1:9200
        SEARCHPRESS_CLUSTER__BACKUP_HOSTS='["http://es-2:9200"]'
        SEARCHPRESS_CLUSTER__API_KEY=secret
        SEARCHPRESS_OBSERVABILITY__DEBUG=true
    """

    model_config = {
        "env_prefix": "SEARCHPRESS_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    app_name: str = Field(default="SearchPress", description="Application name")

    server: ServerSettings = Field(default_factory=ServerSettings)
    cluster: ClusterSettings = Field(default_factory=ClusterSettings)
    query: QuerySettings = Field(default_factory=QuerySettings)
    indexing: IndexingSettings = Field(default_factory=IndexingSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values present in the YAML file are passed as init arguments; fields
        it leaves out still fall back to environment variables and defaults.

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
