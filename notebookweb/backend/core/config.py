"""
Configuration Management.

Secrets come from the environment or config/.env; everything else comes
from config/settings/*.yaml, one file per AppConfig section:

    application.yaml - App identity, server, cors, timeouts
    supabase.yaml    - Backend project URL, notes table, auth providers
    logging.yaml     - Log level, format, handlers
    features.yaml    - Feature flags
    security.yaml    - Browser cookie and context settings

Secrets:
    SUPABASE_ANON_KEY - Public API key of the backend project
    SESSION_SECRET    - Signs the browser cookie
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from notebookweb.backend.core.config_schema import (
    ApplicationSchema,
    FeaturesSchema,
    LoggingSchema,
    SecuritySchema,
    SupabaseSchema,
)

PROJECT_MARKER = ".project_root"


def find_project_root() -> Path:
    """Walk up from the working directory to the .project_root marker."""
    for directory in (Path.cwd(), *Path.cwd().parents):
        if (directory / PROJECT_MARKER).exists():
            return directory
    raise RuntimeError(f"Project root not found. Ensure {PROJECT_MARKER} file exists.")


def validate_project_root() -> Path:
    """find_project_root for entry points: exits with the message instead of raising."""
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Raw mapping from config/settings/<filename>."""
    config_path = find_project_root() / "config" / "settings" / filename
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    with open(config_path) as f:
        return yaml.safe_load(f) or {}


def _load_validated(schema_cls: type[BaseModel], filename: str) -> Any:
    try:
        return schema_cls(**load_yaml_config(filename))
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {filename}:\n{e}") from e


class Settings(BaseSettings):
    """Secrets. Nothing here is ever rendered, logged, or echoed by the CLI."""

    supabase_anon_key: str
    session_secret: str

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class AppConfig(BaseModel):
    """All YAML settings, validated. Build with AppConfig.load()."""

    application: ApplicationSchema
    supabase: SupabaseSchema
    logging: LoggingSchema
    features: FeaturesSchema
    security: SecuritySchema

    @classmethod
    def load(cls) -> "AppConfig":
        sections = {
            name: _load_validated(field.annotation, f"{name}.yaml")
            for name, field in cls.model_fields.items()
        }
        return cls(**sections)


@lru_cache
def get_settings() -> Settings:
    """Cached secrets; config/.env is optional when the environment has them."""
    return Settings(_env_file=str(find_project_root() / "config" / ".env"))


@lru_cache
def get_app_config() -> AppConfig:
    """Cached application configuration."""
    return AppConfig.load()


def get_oauth_redirect_url() -> str:
    """Where the backend sends the browser after a federated sign-in."""
    app_config = get_app_config()
    public_url = app_config.application.server.public_url.rstrip("/")
    return f"{public_url}{app_config.supabase.auth.redirect_path}"
