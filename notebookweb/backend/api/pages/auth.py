"""
Auth Screen.

Sign-in page and the endpoints behind it. Sign-in success is never acted
on directly: the auth client emits SIGNED_IN, the session provider
mirrors it, and the redirect back to /auth lets the route guard forward
the browser to the notes page.

Every route here is guarded like the page itself, so a browser that is
already signed in is sent to its notes instead of starting another sign-in.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from notebookweb.backend.api.guard import AUTH_PATH, guard
from notebookweb.backend.core.config import get_app_config, get_oauth_redirect_url
from notebookweb.backend.core.dependencies import Browser, CurrentSession
from notebookweb.backend.core.exceptions import (
    AuthenticationError,
    BackendRequestError,
    NotFoundError,
)
from notebookweb.backend.core.logging import get_logger
from notebookweb.backend.services.browser import BrowserContext
from notebookweb.frontend import templates

router = APIRouter()
logger = get_logger(__name__)

UNREACHABLE = "Could not reach the sign-in service. Please try again."
CONFIRM_EMAIL = "Check your email for the confirmation link."
RESET_EMAIL = "Check your email for the password reset link."


def _form_error(exc: BackendRequestError) -> str:
    """Message for the sign-in form; backend text only for rejected requests."""
    if exc.status_code is None or exc.status_code >= 500:
        return UNREACHABLE
    return exc.message


def _auth_page_url() -> str:
    """Where links in confirmation and reset emails lead."""
    public_url = get_app_config().application.server.public_url.rstrip("/")
    return f"{public_url}{AUTH_PATH}"


def render_auth(
    request: Request,
    browser: BrowserContext,
    *,
    error: str | None = None,
    notice: str | None = None,
    email: str = "",
    status_code: int = 200,
) -> HTMLResponse:
    """Render the sign-in screen."""
    app_config = get_app_config()
    features = app_config.features
    context: dict[str, Any] = {
        "app_name": app_config.application.name,
        "app_description": app_config.application.description,
        "providers": app_config.supabase.auth.providers,
        "password_enabled": features.auth_password_enabled,
        "signup_enabled": features.auth_password_enabled and features.auth_signup_enabled,
        "error": error,
        "notice": notice,
        "email": email,
        "toasts": browser.notifications.drain(),
    }
    return templates.TemplateResponse(request, "auth.html", context, status_code=status_code)


@router.get("/auth", response_class=HTMLResponse, summary="Sign-in screen")
async def auth_page(request: Request, browser: Browser, session: CurrentSession) -> Response:
    """Show the sign-in form, or forward signed-in browsers to their notes."""
    redirect = guard(session, AUTH_PATH)
    if redirect is not None:
        return redirect
    return render_auth(request, browser)


@router.post("/auth/sign-in", summary="Sign in with email and password")
async def sign_in(
    request: Request,
    browser: Browser,
    session: CurrentSession,
    email: Annotated[str, Form()],
    password: Annotated[str, Form()],
) -> Response:
    redirect = guard(session, AUTH_PATH)
    if redirect is not None:
        return redirect
    if not get_app_config().features.auth_password_enabled:
        raise NotFoundError("Password sign-in is disabled")

    try:
        await browser.auth.sign_in_with_password(email, password)
    except BackendRequestError as e:
        return render_auth(request, browser, error=_form_error(e), email=email, status_code=400)

    return RedirectResponse(AUTH_PATH, status_code=303)


@router.post("/auth/sign-up", summary="Create an account")
async def sign_up(
    request: Request,
    browser: Browser,
    session: CurrentSession,
    email: Annotated[str, Form()],
    password: Annotated[str, Form()],
) -> Response:
    redirect = guard(session, AUTH_PATH)
    if redirect is not None:
        return redirect
    features = get_app_config().features
    if not (features.auth_password_enabled and features.auth_signup_enabled):
        raise NotFoundError("Sign-up is disabled")

    try:
        new_session = await browser.auth.sign_up(email, password, redirect_to=_auth_page_url())
    except BackendRequestError as e:
        return render_auth(request, browser, error=_form_error(e), email=email, status_code=400)

    if new_session is None:
        return render_auth(request, browser, notice=CONFIRM_EMAIL, email=email)
    return RedirectResponse(AUTH_PATH, status_code=303)


@router.post("/auth/recover", summary="Email a password reset link")
async def recover(
    request: Request,
    browser: Browser,
    session: CurrentSession,
    email: Annotated[str, Form()],
) -> Response:
    redirect = guard(session, AUTH_PATH)
    if redirect is not None:
        return redirect
    if not get_app_config().features.auth_password_enabled:
        raise NotFoundError("Password sign-in is disabled")

    try:
        await browser.auth.reset_password_for_email(email, redirect_to=_auth_page_url())
    except BackendRequestError as e:
        return render_auth(request, browser, error=_form_error(e), email=email, status_code=400)

    return render_auth(request, browser, notice=RESET_EMAIL, email=email)


@router.get("/auth/oauth/{provider}", summary="Start a federated sign-in")
async def oauth_sign_in(provider: str, browser: Browser, session: CurrentSession) -> RedirectResponse:
    redirect = guard(session, AUTH_PATH)
    if redirect is not None:
        return redirect
    if provider not in get_app_config().supabase.auth.providers:
        raise NotFoundError(f"Unknown sign-in provider: {provider}")

    authorize_url = browser.auth.sign_in_with_oauth(provider, redirect_to=get_oauth_redirect_url())
    logger.info("Federated sign-in started", extra={"provider": provider})
    return RedirectResponse(authorize_url, status_code=303)


@router.get("/auth/callback", summary="Finish a federated sign-in")
async def oauth_callback(
    request: Request,
    browser: Browser,
    session: CurrentSession,
    code: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
) -> Response:
    redirect = guard(session, AUTH_PATH)
    if redirect is not None:
        return redirect
    if error or error_description:
        logger.warning("Federated sign-in refused", extra={"error": error})
        return render_auth(request, browser, error=error_description or error, status_code=400)

    if not code:
        return render_auth(request, browser, error="Sign-in did not complete.", status_code=400)

    try:
        await browser.auth.exchange_code_for_session(code)
    except BackendRequestError as e:
        return render_auth(request, browser, error=_form_error(e), status_code=400)
    except AuthenticationError as e:
        return render_auth(request, browser, error=e.message, status_code=400)

    return RedirectResponse(AUTH_PATH, status_code=303)
