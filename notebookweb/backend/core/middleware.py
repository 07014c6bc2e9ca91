"""
Request Middleware.

RequestContextMiddleware: request id, timing, and structlog context.
BrowserContextMiddleware: resolves the browser cookie to a server-side
browser context and issues a cookie to new browsers.
"""

import uuid
from datetime import datetime, timezone

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notebookweb.backend.core.config import get_app_config
from notebookweb.backend.core.logging import get_logger
from notebookweb.backend.core.security import decode_browser_cookie, encode_browser_cookie

logger = get_logger(__name__)

# Probes and docs never get a browser context
BROWSER_EXEMPT_PREFIXES = ("/health", "/docs", "/redoc", "/openapi.json")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds request context to every request.

    Features:
    - Generates or propagates request ID (X-Request-ID header)
    - Records request timing (X-Response-Time header)
    - Binds request context to structlog for automatic inclusion in logs
    - Stores context in request.state for access by handlers
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request with context tracking."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start_time = datetime.now(timezone.utc).replace(tzinfo=None)

        request.state.request_id = request_id
        request.state.start_time = start_time

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            source="api" if request.url.path.startswith("/api/") else "web",
            method=request.method,
            path=request.url.path,
        )

        logger.debug(
            "Request started",
            extra={
                "client_host": request.client.host if request.client else None,
                "user_agent": request.headers.get("User-Agent"),
            },
        )

        try:
            response = await call_next(request)

            end_time = datetime.now(timezone.utc).replace(tzinfo=None)
            duration_ms = int((end_time - start_time).total_seconds() * 1000)

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms}ms"

            logger.debug(
                "Request completed",
                extra={
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )

            return response

        except Exception as exc:
            end_time = datetime.now(timezone.utc).replace(tzinfo=None)
            duration_ms = int((end_time - start_time).total_seconds() * 1000)

            logger.error(
                "Request failed with exception",
                extra={
                    "duration_ms": duration_ms,
                    "error_type": type(exc).__name__,
                },
            )
            raise

        finally:
            structlog.contextvars.clear_contextvars()


class BrowserContextMiddleware(BaseHTTPMiddleware):
    """
    Attach the browser context to request.state.browser.

    The registry is read from app.state.browsers. A browser without a
    valid cookie gets a new context and a Set-Cookie on the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path.startswith(BROWSER_EXEMPT_PREFIXES):
            return await call_next(request)

        cookie_config = get_app_config().security.cookie
        registry = request.app.state.browsers

        browser_id = decode_browser_cookie(request.cookies.get(cookie_config.name))
        browser, created = registry.resolve(browser_id)

        request.state.browser = browser
        structlog.contextvars.bind_contextvars(browser_id=browser.id)

        response = await call_next(request)

        if created:
            response.set_cookie(
                cookie_config.name,
                encode_browser_cookie(browser.id),
                max_age=cookie_config.max_age_seconds,
                httponly=True,
                secure=cookie_config.secure,
                samesite=cookie_config.same_site,
            )
        return response
