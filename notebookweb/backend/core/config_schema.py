"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in application code.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema  → application.yaml
    SupabaseSchema     → supabase.yaml
    LoggingSchema      → logging.yaml
    FeaturesSchema     → features.yaml
    SecuritySchema     → security.yaml
"""

from pydantic import BaseModel, ConfigDict, Field


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class ServerSchema(_StrictBase):
    host: str
    port: int
    public_url: str


class CorsSchema(_StrictBase):
    origins: list[str]


class TimeoutsSchema(_StrictBase):
    external_api: int


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    docs_enabled: bool
    server: ServerSchema
    cors: CorsSchema
    timeouts: TimeoutsSchema


# =============================================================================
# supabase.yaml
# =============================================================================


class AuthSchema(_StrictBase):
    providers: list[str]
    redirect_path: str
    refresh_margin_seconds: int = Field(ge=0)


class SupabaseSchema(_StrictBase):
    url: str
    notes_table: str
    auth: AuthSchema


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: str
    format: str
    handlers: HandlersSchema


# =============================================================================
# features.yaml
# =============================================================================


class FeaturesSchema(_StrictBase):
    auth_password_enabled: bool
    auth_signup_enabled: bool
    api_enabled: bool
    security_startup_checks_enabled: bool


# =============================================================================
# security.yaml
# =============================================================================


class CookieSchema(_StrictBase):
    name: str
    secure: bool
    same_site: str
    max_age_seconds: int
    algorithm: str


class BrowserContextSchema(_StrictBase):
    idle_ttl_seconds: int
    max_contexts: int = Field(gt=0)


class SecretsValidationSchema(_StrictBase):
    session_secret_min_length: int


class SecuritySchema(_StrictBase):
    cookie: CookieSchema
    browser_context: BrowserContextSchema
    secrets_validation: SecretsValidationSchema
