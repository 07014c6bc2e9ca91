"""
FastAPI Dependencies.

Shared dependencies for request handling. The browser context comes from
BrowserContextMiddleware; sessions are read through its SessionProvider.
"""

from typing import Annotated

from fastapi import Depends, Request

from notebookweb.backend.core.exceptions import AuthenticationError
from notebookweb.backend.core.logging import get_logger
from notebookweb.backend.schemas.session import Session
from notebookweb.backend.services.browser import BrowserContext

logger = get_logger(__name__)


def get_browser(request: Request) -> BrowserContext:
    """Browser context attached by BrowserContextMiddleware."""
    browser = getattr(request.state, "browser", None)
    if browser is None:
        raise RuntimeError("BrowserContextMiddleware is not installed for this path")
    return browser


Browser = Annotated[BrowserContext, Depends(get_browser)]


async def get_current_session(browser: Browser) -> Session | None:
    """Current session of the browser, refreshed if it is about to expire."""
    return await browser.sessions.current()


CurrentSession = Annotated[Session | None, Depends(get_current_session)]


async def require_session(session: CurrentSession) -> Session:
    """
    Session for JSON API routes.

    Raises:
        AuthenticationError: If the browser is not signed in
    """
    if session is None:
        raise AuthenticationError("Sign in to access notes")
    return session


AuthenticatedSession = Annotated[Session, Depends(require_session)]


def get_request_id(request: Request) -> str | None:
    """Request ID set by RequestContextMiddleware."""
    return getattr(request.state, "request_id", None)


RequestId = Annotated[str | None, Depends(get_request_id)]
