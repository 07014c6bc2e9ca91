"""
Security Utilities.

Browser cookie signing, PKCE helpers, and access token inspection.
"""

import base64
import hashlib
import secrets
from typing import Any

from jose import JWTError, jwt

from notebookweb.backend.core.config import get_app_config, get_settings
from notebookweb.backend.core.logging import get_logger

logger = get_logger(__name__)

BROWSER_TOKEN_TYPE = "browser"


def new_browser_id() -> str:
    """Generate an unguessable browser context identifier."""
    return secrets.token_urlsafe(24)


def encode_browser_cookie(browser_id: str) -> str:
    """
    Sign a browser id for storage in the browser cookie.

    The cookie only names the server-side context. Backend tokens never
    leave the server.
    """
    settings = get_settings()
    cookie_config = get_app_config().security.cookie
    return jwt.encode(
        {"sid": browser_id, "type": BROWSER_TOKEN_TYPE},
        settings.session_secret,
        algorithm=cookie_config.algorithm,
    )


def decode_browser_cookie(value: str | None) -> str | None:
    """
    Verify a browser cookie and return its browser id.

    Returns:
        The browser id, or None if the cookie is missing or tampered with
    """
    if not value:
        return None

    settings = get_settings()
    cookie_config = get_app_config().security.cookie
    try:
        payload = jwt.decode(
            value,
            settings.session_secret,
            algorithms=[cookie_config.algorithm],
        )
    except JWTError as e:
        logger.warning("Browser cookie rejected", extra={"error": str(e)})
        return None

    if payload.get("type") != BROWSER_TOKEN_TYPE:
        return None
    return payload.get("sid")


def generate_code_verifier() -> str:
    """Generate a PKCE code verifier (RFC 7636, 43-128 URL-safe chars)."""
    return secrets.token_urlsafe(64)


def code_challenge_for(verifier: str) -> str:
    """Derive the S256 PKCE code challenge for a verifier."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def read_token_claims(token: str) -> dict[str, Any]:
    """
    Read the claims of a backend access token without verifying it.

    The backend verifies its own tokens on every request; the client only
    needs `exp` and `sub` for bookkeeping.

    Returns:
        Claims dict, empty if the token is not a readable JWT
    """
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return {}
