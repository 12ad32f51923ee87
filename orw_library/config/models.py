"""Configuration models for the orw daemon.

These models define the structure of the configuration file. The whole
configuration is assembled once at startup and handed to the components
that need it.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel
from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import PydanticBaseSettingsSource
from pydantic_settings import SettingsConfigDict

from ..storage.paths import get_cache_dir
from ..storage.paths import get_state_dir

DEFAULT_API_URL = "https://openrouter.ai/api/v1/models"


def _default_database_path() -> Path:
    return get_state_dir() / "orw.db"


class DaemonConfig(BaseModel):
    """Configuration for the HTTP daemon."""

    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to",
    )
    port: int = Field(
        default=8420,
        ge=1,
        le=65535,
        description="Port to listen on",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    public_url: str | None = Field(
        default=None,
        description="Public base URL used in feed links (defaults to http://host:port/)",
    )
    content_security_policy: str | None = Field(
        default=None,
        description="Value for the Content-Security-Policy header, omitted when unset",
    )
    is_development: bool = Field(
        default=False,
        description="Reported to clients in the status envelope",
    )
    cors_origins: list[str] = Field(
        default_factory=list,
        description="CORS allowed origins, e.g. a Vite dev server",
    )

    def get_public_url(self) -> str:
        """Get the public base URL, always ending with a slash."""
        url = self.public_url or f"http://{self.host}:{self.port}/"
        return url if url.endswith("/") else url + "/"


class WatcherConfig(BaseModel):
    """Configuration for upstream polling."""

    enabled: bool = Field(
        default=True,
        description="Run the recurring poll (disable to serve stored data only)",
    )
    api_url: str = Field(
        default=DEFAULT_API_URL,
        description="Catalog endpoint returning {'data': [...]}",
    )
    interval_seconds: int = Field(
        default=3600,
        ge=1,
        description="Seconds between polls",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for one catalog request",
    )


class StorageConfig(BaseModel):
    """Configuration for on-disk locations."""

    database_path: Path = Field(
        default_factory=_default_database_path,
        description="SQLite database holding snapshots and changes",
    )
    cache_dir: Path = Field(
        default_factory=get_cache_dir,
        description="Directory for materialized responses",
    )
    client_dist_dir: Path = Field(
        default=Path("dist"),
        description="Built client application (index.html and assets/)",
    )
    static_dir: Path = Field(
        default=Path("static"),
        description="Files served from the site root (favicon, robots.txt)",
    )
    disable_cache: bool = Field(
        default=False,
        description="Generate every response on request and skip Cache-Control",
    )


class Config(BaseSettings):
    """Complete orw configuration.

    Precedence (highest to lowest):
    1. Environment variables (ORW_SECTION__KEY, e.g. ORW_WATCHER__INTERVAL_SECONDS)
    2. Values passed in, normally read from orw.yaml
    3. Defaults
    """

    model_config = SettingsConfigDict(
        env_prefix="ORW_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    daemon: DaemonConfig = Field(default_factory=DaemonConfig)
    watcher: WatcherConfig = Field(default_factory=WatcherConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats file values
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def load_from_file(cls, path: Path) -> Config:
        """Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            Loaded configuration with environment overrides applied

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        import yaml

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            with path.open() as f:
                data = yaml.safe_load(f)
            return cls(**(data or {}))
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e
        except Exception as e:
            raise ValueError(f"Failed to load configuration: {e}") from e
