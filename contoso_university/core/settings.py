from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    SettingsError,
)

from contoso_university.core.errors import ConfigurationError

BASE_SETTINGS_FILE = "appsettings.json"
DEFAULT_ENVIRONMENT = "Production"
DEVELOPMENT_ENVIRONMENT = "Development"

# Names used by Logging:LogLevel:Default mapped to stdlib levels.
_LOG_LEVEL_NAMES = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "information": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "none": logging.CRITICAL + 10,
}


class AppSettings(BaseSettings):
    """
    Application settings for the Contoso University web application.

    Values come, from lowest to highest precedence, from appsettings.json,
    appsettings.{ENVIRONMENT}.json, a .env file in the content root and process
    environment variables.
    Nested JSON sections are flattened with "__", so the connection string key
    ConnectionStrings:DefaultConnection is read as ConnectionStrings__DefaultConnection.
    """

    APP_NAME: str = Field(default="Contoso University")
    APP_VERSION: str = Field(default="0.1.0")

    # Environment label; "Development" enables the debug error page.
    ENVIRONMENT: str = Field(default=DEFAULT_ENVIRONMENT)
    CONTENT_ROOT: Path = Field(default_factory=Path.cwd)
    WEB_ROOT: Optional[Path] = Field(
        default=None,
        validation_alias=AliasChoices("WEB_ROOT", "WebRoot"),
        description="Directory served by the static files stage. Defaults to the packaged wwwroot.",
    )

    # Database
    DEFAULT_CONNECTION: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ConnectionStrings__DefaultConnection"),
        description="SQLAlchemy URL of the school database.",
    )
    SQL_ECHO: bool = Field(default=False, validation_alias=AliasChoices("SQL_ECHO", "SqlEcho"))

    # Startup behavior
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(
        default=False,
        validation_alias=AliasChoices("RUN_MIGRATIONS_ON_STARTUP", "RunMigrationsOnStartup"),
        description="If true, run Alembic migrations (upgrade head) before seeding.",
    )
    SEED_ON_STARTUP: bool = Field(
        default=True,
        validation_alias=AliasChoices("SEED_ON_STARTUP", "SeedOnStartup"),
    )
    SEED_FAILURE_POLICY: Literal["log", "raise"] = Field(
        default="log",
        validation_alias=AliasChoices("SEED_FAILURE_POLICY", "SeedFailurePolicy"),
        description="'log' keeps serving after a seeding failure, 'raise' aborts startup.",
    )

    # HTTP pipeline
    HTTPS_PORT: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("HTTPS_PORT", "HttpsPort")
    )
    HSTS_MAX_AGE: int = Field(
        default=30 * 24 * 60 * 60, validation_alias=AliasChoices("HSTS_MAX_AGE", "HstsMaxAge")
    )
    ALLOWED_HOSTS: str = Field(
        default="*",
        description="Semicolon separated host names accepted by the host filter, or '*'.",
        validation_alias=AliasChoices("ALLOWED_HOSTS", "AllowedHosts"),
    )

    # Logging
    LOG_LEVEL: str = Field(
        default="Information",
        validation_alias=AliasChoices("LOG_LEVEL", "Logging__LogLevel__Default"),
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        # JSON files arrive as init kwargs and must lose to the environment.
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @field_validator("LOG_LEVEL")
    @classmethod
    def _check_log_level(cls, v: str) -> str:
        if v.lower() not in _LOG_LEVEL_NAMES:
            raise ValueError(f"Unknown log level: {v}")
        return v

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == DEVELOPMENT_ENVIRONMENT.lower()

    @property
    def allowed_hosts(self) -> List[str]:
        """
        Accept a semicolon or comma separated string of host names.
        """
        parts = [p.strip() for p in self.ALLOWED_HOSTS.replace(",", ";").split(";") if p.strip()]
        return parts or ["*"]

    @property
    def log_level(self) -> int:
        """Stdlib logging level for LOG_LEVEL."""
        return _LOG_LEVEL_NAMES[self.LOG_LEVEL.lower()]

    @property
    def connection_string(self) -> str:
        """
        Return the configured connection string.

        Raises:
            ConfigurationError: when ConnectionStrings:DefaultConnection is not set.
        """
        if not self.DEFAULT_CONNECTION:
            raise ConfigurationError(
                "Connection string 'DefaultConnection' not found. Set "
                "ConnectionStrings:DefaultConnection in appsettings.json or the "
                "ConnectionStrings__DefaultConnection environment variable."
            )
        return self.DEFAULT_CONNECTION


def _read_json_file(path: Path, *, required: bool) -> Dict[str, Any]:
    if not path.is_file():
        if required:
            raise ConfigurationError(f"The configuration file '{path}' was not found.")
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8-sig"))
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Failed to load configuration from '{path}': {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"The configuration file '{path}' must contain a JSON object.")
    return data


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def flatten_sections(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """
    Flatten nested configuration sections into "__"-joined keys.

    {"ConnectionStrings": {"DefaultConnection": "..."}} becomes
    {"ConnectionStrings__DefaultConnection": "..."}.
    """
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}__{key}" if prefix else key
        if isinstance(value, dict):
            flat.update(flatten_sections(value, name))
        else:
            flat[name] = value
    return flat


# PUBLIC_INTERFACE
def load_settings(
    content_root: Optional[Path | str] = None,
    environment: Optional[str] = None,
) -> AppSettings:
    """
    Build AppSettings from the JSON files in the content root and the environment.

    Parameters:
      content_root: directory holding appsettings.json and .env (default CONTENT_ROOT or cwd)
      environment: environment name (default ENVIRONMENT or "Production")

    Raises:
      ConfigurationError: if appsettings.json is missing or malformed, or if a
      value fails validation.
    """
    root = Path(content_root or os.environ.get("CONTENT_ROOT") or Path.cwd()).resolve()
    env_name = environment or os.environ.get("ENVIRONMENT") or DEFAULT_ENVIRONMENT

    data = _read_json_file(root / BASE_SETTINGS_FILE, required=True)
    data = _merge(data, _read_json_file(root / f"appsettings.{env_name}.json", required=False))

    try:
        settings = AppSettings(_env_file=root / ".env", **flatten_sections(data))
    except (ValidationError, SettingsError) as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
    return settings.model_copy(update={"ENVIRONMENT": env_name, "CONTENT_ROOT": root})
