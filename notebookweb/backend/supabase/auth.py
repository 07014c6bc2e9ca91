"""
Auth Client.

Client side of the backend's auth service for one browser. Holds that
browser's session, performs sign-in/sign-up/sign-out and token refresh,
and pushes every session transition to subscribers.

The session lifecycle belongs to this client: it is created on sign-in,
replaced on refresh, and removed on sign-out or when a refresh proves the
session is no longer valid. Consumers never set it; they subscribe.

Usage:
    auth = AuthClient(backend, refresh_margin_seconds=60)
    subscription = auth.on_auth_state_change(
        lambda event, session: print(event, session)
    )

    await auth.sign_in_with_password("ada@example.com", "secret")
    session = await auth.get_session()
    await auth.sign_out()

    subscription.unsubscribe()
"""

import asyncio
import itertools
from collections.abc import Callable
from urllib.parse import urlencode

from notebookweb.backend.core.exceptions import AuthenticationError, BackendRequestError
from notebookweb.backend.core.logging import get_logger, log_with_source
from notebookweb.backend.core.security import code_challenge_for, generate_code_verifier
from notebookweb.backend.schemas.session import AuthChangeEvent, Session
from notebookweb.backend.supabase.client import SupabaseClient

logger = get_logger(__name__)

AuthStateListener = Callable[[AuthChangeEvent, Session | None], None]

# Logout answers that mean the session is already gone server-side
SESSION_GONE_STATUSES = frozenset({401, 403, 404})


class Subscription:
    """Handle returned by AuthClient.on_auth_state_change."""

    def __init__(self, remove: Callable[[], None]) -> None:
        self._remove = remove

    def unsubscribe(self) -> None:
        self._remove()


class AuthClient:
    """
    Per-browser auth client.

    Args:
        backend: Shared backend HTTP client
        refresh_margin_seconds: Refresh the access token when it expires
            within this many seconds
    """

    def __init__(self, backend: SupabaseClient, refresh_margin_seconds: int = 60) -> None:
        self._backend = backend
        self._refresh_margin = refresh_margin_seconds
        self._session: Session | None = None
        self._listeners: dict[int, AuthStateListener] = {}
        self._keys = itertools.count(1)
        self._code_verifier: str | None = None
        # Refresh tokens are single use; concurrent requests must share one refresh
        self._refresh_lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    def on_auth_state_change(self, listener: AuthStateListener) -> Subscription:
        """
        Subscribe to session transitions.

        The listener is called immediately with INITIAL_SESSION and the
        current value, then with every later transition.
        """
        key = next(self._keys)
        self._listeners[key] = listener
        listener(AuthChangeEvent.INITIAL_SESSION, self._session)
        return Subscription(lambda: self._remove_listener(key))

    def _remove_listener(self, key: int) -> None:
        self._listeners.pop(key, None)

    def _notify(self, event: AuthChangeEvent, session: Session | None) -> None:
        log_with_source(
            logger, "auth", "info", "Auth state changed",
            auth_event=event.value,
            user_id=session.user_id if session else None,
        )
        for listener in list(self._listeners.values()):
            listener(event, session)

    def _save_session(self, session: Session, event: AuthChangeEvent) -> None:
        self._session = session
        self._notify(event, session)

    def _remove_session(self) -> None:
        if self._session is None:
            return
        self._session = None
        self._notify(AuthChangeEvent.SIGNED_OUT, None)

    # -------------------------------------------------------------------------
    # Session access
    # -------------------------------------------------------------------------

    @property
    def session(self) -> Session | None:
        """The current session as last stored, without refreshing."""
        return self._session

    async def get_session(self) -> Session | None:
        """
        Get the current session, refreshing it if it is about to expire.

        A refresh rejected by the backend ends the session (SIGNED_OUT).
        If the backend cannot be reached, a still-valid session is kept.
        """
        session = self._session
        if session is None or not session.expires_within(self._refresh_margin):
            return session

        async with self._refresh_lock:
            session = self._session
            if session is None or not session.expires_within(self._refresh_margin):
                return session
            try:
                return await self._refresh(session)
            except BackendRequestError as e:
                if e.status_code is None and not session.expires_within(0):
                    logger.warning(
                        "Token refresh unreachable, keeping current session",
                        extra={"user_id": session.user_id, "error": e.message},
                    )
                    return session
                logger.info(
                    "Session expired",
                    extra={"user_id": session.user_id, "error": e.message},
                )
                self._remove_session()
                return None

    async def refresh_session(self) -> Session:
        """
        Exchange the refresh token for a new session.

        Raises:
            AuthenticationError: If there is no session to refresh
            BackendRequestError: If the backend rejects the refresh
        """
        async with self._refresh_lock:
            session = self._session
            if session is None:
                raise AuthenticationError("No session to refresh")
            return await self._refresh(session)

    async def _refresh(self, session: Session) -> Session:
        response = await self._backend.request(
            "POST",
            "/auth/v1/token",
            operation="refresh_session",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": session.refresh_token},
        )
        refreshed = Session.model_validate(response.json())
        self._save_session(refreshed, AuthChangeEvent.TOKEN_REFRESHED)
        return refreshed

    # -------------------------------------------------------------------------
    # Sign in / sign up
    # -------------------------------------------------------------------------

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """
        Sign in with email and password.

        Raises:
            BackendRequestError: If the credentials are rejected or the
                backend cannot be reached
        """
        response = await self._backend.request(
            "POST",
            "/auth/v1/token",
            operation="sign_in_with_password",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = Session.model_validate(response.json())
        self._save_session(session, AuthChangeEvent.SIGNED_IN)
        return session

    async def sign_up(
        self,
        email: str,
        password: str,
        redirect_to: str | None = None,
    ) -> Session | None:
        """
        Create an account.

        Returns:
            The new session when the backend signs the user in immediately,
            None when the account still needs email confirmation
        """
        params = {"redirect_to": redirect_to} if redirect_to else None
        response = await self._backend.request(
            "POST",
            "/auth/v1/signup",
            operation="sign_up",
            params=params,
            json={"email": email, "password": password},
        )
        body = response.json()
        if not body.get("access_token"):
            logger.info("Sign-up awaiting email confirmation")
            return None

        session = Session.model_validate(body)
        self._save_session(session, AuthChangeEvent.SIGNED_IN)
        return session

    async def reset_password_for_email(self, email: str, redirect_to: str | None = None) -> None:
        """
        Ask the backend to email a password reset link.

        The session is untouched. The backend answers the same way whether
        or not the address has an account.
        """
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._backend.request(
            "POST",
            "/auth/v1/recover",
            operation="reset_password_for_email",
            params=params,
            json={"email": email},
        )
        logger.info("Password reset requested")

    def sign_in_with_oauth(self, provider: str, redirect_to: str) -> str:
        """
        Start a federated sign-in with PKCE.

        Returns:
            The backend authorize URL to send the browser to. The code
            verifier stays with this client until the callback arrives.
        """
        verifier = generate_code_verifier()
        self._code_verifier = verifier

        query = urlencode({
            "provider": provider,
            "redirect_to": redirect_to,
            "code_challenge": code_challenge_for(verifier),
            "code_challenge_method": "s256",
        })
        return f"{self._backend.url}/auth/v1/authorize?{query}"

    async def exchange_code_for_session(self, auth_code: str) -> Session:
        """
        Finish a federated sign-in by exchanging the callback code.

        Raises:
            AuthenticationError: If no federated sign-in was started here
            BackendRequestError: If the backend rejects the code
        """
        verifier = self._code_verifier
        if verifier is None:
            raise AuthenticationError("No sign-in in progress for this browser")
        self._code_verifier = None

        response = await self._backend.request(
            "POST",
            "/auth/v1/token",
            operation="exchange_code_for_session",
            params={"grant_type": "pkce"},
            json={"auth_code": auth_code, "code_verifier": verifier},
        )
        session = Session.model_validate(response.json())
        self._save_session(session, AuthChangeEvent.SIGNED_IN)
        return session

    # -------------------------------------------------------------------------
    # Sign out
    # -------------------------------------------------------------------------

    async def sign_out(self) -> None:
        """
        Terminate the session on the backend, then locally.

        Raises:
            BackendRequestError: If the backend could not terminate the
                session; the local session is kept in that case
        """
        session = self._session
        if session is None:
            return

        try:
            await self._backend.request(
                "POST",
                "/auth/v1/logout",
                operation="sign_out",
                access_token=session.access_token,
            )
        except BackendRequestError as e:
            if e.status_code not in SESSION_GONE_STATUSES:
                raise
            logger.info(
                "Session already ended on backend",
                extra={"user_id": session.user_id, "status_code": e.status_code},
            )

        self._remove_session()
