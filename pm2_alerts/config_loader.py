"""
Configuration Loader

Loads settings from PM2_SLACK_* environment variables, optionally
overlaid by a YAML file with environment variable substitution.
Settings are read once at startup and frozen.
"""

import os
import re
from typing import Annotated, Any, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pathlib import Path

import yaml
import structlog
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .tools.event_filter import DEFAULT_EVENTS

logger = structlog.get_logger(__name__)

ENV_PREFIX = "PM2_SLACK_"
APP_URL_PREFIX = f"{ENV_PREFIX}URL_"

CommaList = Annotated[list[str], NoDecode]


class ConfigError(Exception):
    """Required configuration missing or invalid"""
    pass


def _substitute_env_vars(value: Any) -> Any:
    """
    Recursively substitute environment variables in configuration.

    Supports format: ${VAR_NAME:-default_value}
    """
    if isinstance(value, str):
        # Pattern: ${VAR:-default} or ${VAR}
        pattern = r"\$\{([^}:]+)(?::-([^}]*))?\}"

        def replace(match):
            var_name = match.group(1)
            default = match.group(2) if match.group(2) is not None else ""
            return os.getenv(var_name, default)

        return re.sub(pattern, replace, value)

    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]

    return value


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


def app_url_key(app_name: str) -> str:
    """Per-app override key suffix: 'my-api' -> 'MY_API'"""
    return app_name.replace("-", "_").upper()


def collect_app_urls(environ: Optional[dict[str, str]] = None) -> dict[str, str]:
    """Snapshot PM2_SLACK_URL_<APP> overrides from the environment"""
    environ = os.environ if environ is None else environ
    return {
        key[len(APP_URL_PREFIX):]: value
        for key, value in environ.items()
        if key.startswith(APP_URL_PREFIX) and value
    }


class Settings(BaseSettings):
    """Complete runtime configuration"""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
        frozen=True,
    )

    # Slack
    url: Optional[str] = None
    app_urls: dict[str, str] = Field(default_factory=dict)
    mentions: CommaList = Field(default_factory=list)

    # Filtering
    events: CommaList = Field(default_factory=lambda: list(DEFAULT_EVENTS))
    filter: CommaList = Field(default_factory=list)

    # Debounce windows
    debounce_ms: int = Field(default=2000, ge=0)
    suppress_ms: int = Field(default=2000, ge=0)

    # Supervisor bridge
    supervisor_url: str = "http://127.0.0.1:9615"
    supervisor_timeout: float = 10.0
    connect_attempts: int = Field(default=3, ge=1)

    # Ingest
    ingest_mode: Literal["stream", "http"] = "stream"
    host: str = "0.0.0.0"
    port: int = 8090

    # Formatting
    timezone: str = "UTC"
    hostname: Optional[str] = None

    # Observability
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("mentions", "filter", mode="before")
    @classmethod
    def _parse_csv(cls, value: Any) -> Any:
        return _split_csv(value)

    @field_validator("events", mode="before")
    @classmethod
    def _parse_events(cls, value: Any) -> Any:
        # Unset or blank falls back to the default lifecycle set
        value = _split_csv(value)
        if not value:
            return list(DEFAULT_EVENTS)
        return value

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @field_validator("app_urls", mode="before")
    @classmethod
    def _normalize_app_urls(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {app_url_key(k): v for k, v in value.items() if v}
        return value

    def webhook_url_for(self, app_name: str) -> Optional[str]:
        """Per-app webhook if configured, else the global one"""
        return self.app_urls.get(app_url_key(app_name)) or self.url


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration.

    Args:
        config_path: Optional YAML file. Defaults to $PM2_SLACK_CONFIG.

    Returns:
        Frozen Settings

    Raises:
        ConfigError: file unreadable, values invalid or webhook URL missing
    """
    if config_path is None:
        config_path = os.getenv(f"{ENV_PREFIX}CONFIG")

    overrides: dict[str, Any] = {}
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        logger.info("Loading configuration", path=str(path))
        try:
            with open(path, "r") as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(raw_config, dict):
            raise ConfigError(f"Config file must contain a mapping: {path}")

        # Substitute environment variables
        overrides = _substitute_env_vars(raw_config)

    app_urls = collect_app_urls()
    app_urls.update(overrides.pop("app_urls", None) or {})

    try:
        settings = Settings(app_urls=app_urls, **overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    if not settings.url:
        raise ConfigError(
            "Missing Slack URL. Set environment variable PM2_SLACK_URL "
            "(e.g. https://hooks.slack.com/services/XXXXX/YYYYY/ZZZZZ)"
        )

    logger.info(
        "Configuration loaded",
        events=settings.events,
        apps=settings.filter or "all",
        app_overrides=sorted(settings.app_urls),
        ingest_mode=settings.ingest_mode,
    )

    return settings
