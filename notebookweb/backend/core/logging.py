"""
Centralized Logging Configuration.

Every module logs through structlog as set up here; settings come from the
validated logging.yaml (AppConfig.logging).

Record fields:
    timestamp, level, logger, event, func_name, lineno
    source      - Set explicitly by the caller (web, api, cli, auth, internal)
    request_id  - Bound by RequestContextMiddleware
    browser_id  - Bound by BrowserContextMiddleware

Token material never reaches a handler: keys listed in SECRET_KEYS are
masked by redact_secrets before rendering.

Usage:
    from notebookweb.backend.core.logging import get_logger, setup_logging

    setup_logging(level="DEBUG", format_type="console")
    logger = get_logger(__name__)
    logger.info("Note created", extra={"note_id": note.id})
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any

import structlog
from structlog.typing import EventDict, Processor

from notebookweb.backend.core.config import find_project_root, get_app_config
from notebookweb.backend.core.config_schema import FileHandlerSchema

VALID_SOURCES = frozenset({"web", "api", "cli", "auth", "internal", "unknown"})

SECRET_KEYS = frozenset({
    "access_token",
    "refresh_token",
    "code_verifier",
    "password",
    "apikey",
    "authorization",
    "session_secret",
})

REDACTED = "***"

QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask secret values, including inside an `extra` mapping."""
    for key in event_dict.keys() & SECRET_KEYS:
        event_dict[key] = REDACTED
    extra = event_dict.get("extra")
    if isinstance(extra, dict) and extra.keys() & SECRET_KEYS:
        event_dict["extra"] = {k: REDACTED if k in SECRET_KEYS else v for k, v in extra.items()}
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
        redact_secrets,
    ]


def _file_handler(file_config: FileHandlerSchema, formatter: logging.Formatter) -> logging.Handler:
    log_path = find_project_root() / file_config.path
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=file_config.max_bytes,
        backupCount=file_config.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    enable_console: bool | None = None,
    enable_file_logging: bool | None = None,
) -> None:
    """
    Configure structlog and the root logger.

    Arguments left as None fall back to logging.yaml. Calling again
    replaces the previously installed handlers.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        format_type: 'json' or 'console'
        enable_console: Write records to stdout
        enable_file_logging: Write JSON lines to handlers.file.path
    """
    config = get_app_config().logging
    level = level or config.level
    format_type = format_type or config.format
    if enable_console is None:
        enable_console = config.handlers.console.enabled
    if enable_file_logging is None:
        enable_file_logging = config.handlers.file.enabled

    shared = _shared_processors()
    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    json_formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=shared,
    )
    if format_type == "console":
        console_formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
            foreign_pre_chain=shared,
        )
    else:
        console_formatter = json_formatter

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(getattr(logging, level.upper()))

    if enable_console:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(console_formatter)
        root.addHandler(console)
    if enable_file_logging:
        root.addHandler(_file_handler(config.handlers.file, json_formatter))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """Structlog logger for a module, typically get_logger(__name__)."""
    return structlog.get_logger(name)


def log_with_source(logger: Any, source: str, level: str, message: str, **kwargs: Any) -> None:
    """
    Log with an explicit source outside the HTTP request context.

    Raises:
        AttributeError: If level is not a logger method

    Example:
        log_with_source(logger, "auth", "info", "Session refreshed", user_id="abc")
    """
    getattr(logger, level.lower())(message, source=source, **kwargs)
