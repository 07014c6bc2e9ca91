"""
Startup Security Checks.

Run from the application lifespan before traffic is accepted. Any failed
check blocks startup with every problem listed at once.
"""

from collections.abc import Callable, Iterator

from notebookweb.backend.core.config import AppConfig, Settings, get_app_config, get_settings
from notebookweb.backend.core.logging import get_logger

logger = get_logger(__name__)


class StartupSecurityError(RuntimeError):
    """Raised when one or more startup checks fail."""


def _secrets(settings: Settings, app_config: AppConfig) -> Iterator[str]:
    minimum = app_config.security.secrets_validation.session_secret_min_length
    if len(settings.session_secret) < minimum:
        yield f"SESSION_SECRET is {len(settings.session_secret)} chars, minimum is {minimum}"
    if not settings.supabase_anon_key:
        yield "SUPABASE_ANON_KEY is empty"


def _production(settings: Settings, app_config: AppConfig) -> Iterator[str]:
    application = app_config.application
    if application.environment != "production":
        return
    if application.debug:
        yield "debug is true in production environment"
    if application.docs_enabled:
        yield "docs_enabled is true in production environment"
    if not app_config.supabase.url.startswith("https://"):
        yield "supabase url must use https in production"
    if not application.server.public_url.startswith("https://"):
        yield "server public_url must use https in production"
    if not app_config.security.cookie.secure:
        yield "cookie.secure is false in production environment"
    local = [origin for origin in application.cors.origins if "localhost" in origin or "127.0.0.1" in origin]
    if local:
        yield f"CORS origins contain local addresses in production: {local}"


CHECKS: list[Callable[[Settings, AppConfig], Iterator[str]]] = [_secrets, _production]


def run_startup_checks() -> None:
    """
    Raises:
        StartupSecurityError: If any check fails
    """
    app_config = get_app_config()
    settings = get_settings()

    errors = [error for check in CHECKS for error in check(settings, app_config)]
    for error in errors:
        logger.error("Startup security check failed", extra={"check": error})
    if errors:
        raise StartupSecurityError(
            f"Startup blocked: {len(errors)} security check(s) failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    logger.info(
        "Startup security checks passed",
        extra={"environment": app_config.application.environment, "checks_run": len(CHECKS)},
    )
