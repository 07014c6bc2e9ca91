"""
Session Provider.

Mirrors one auth client's session for the rest of the application. The
value changes only when the auth client pushes a transition (sign-in,
sign-out, token refresh, expiry); there is no polling and no setter.
"""

import itertools
from collections.abc import Callable

from notebookweb.backend.core.logging import get_logger
from notebookweb.backend.schemas.session import AuthChangeEvent, Session
from notebookweb.backend.supabase.auth import AuthClient, AuthStateListener

logger = get_logger(__name__)


class SessionProvider:
    """
    Read-only view of the current session for one browser.

    Usage:
        sessions = SessionProvider(auth)
        unsubscribe = sessions.subscribe(on_change)

        session = await sessions.current()  # may refresh an expiring token
        sessions.session                    # last mirrored value
    """

    def __init__(self, auth: AuthClient) -> None:
        self._auth = auth
        self._session: Session | None = None
        self._subscribers: dict[int, AuthStateListener] = {}
        self._keys = itertools.count(1)
        self._subscription = auth.on_auth_state_change(self._on_auth_change)

    def _on_auth_change(self, event: AuthChangeEvent, session: Session | None) -> None:
        self._session = session
        for subscriber in list(self._subscribers.values()):
            subscriber(event, session)

    @property
    def session(self) -> Session | None:
        """The mirrored session value."""
        return self._session

    async def current(self) -> Session | None:
        """
        Bring the mirror up to date and return it.

        Asks the auth client for its session, which refreshes or expires
        it as needed; any resulting transition reaches the mirror through
        the subscription before this returns.
        """
        await self._auth.get_session()
        return self._session

    def subscribe(self, subscriber: AuthStateListener) -> Callable[[], None]:
        """
        Receive every later session transition.

        Returns:
            A callable that removes the subscription
        """
        key = next(self._keys)
        self._subscribers[key] = subscriber

        def unsubscribe() -> None:
            self._subscribers.pop(key, None)

        return unsubscribe

    def close(self) -> None:
        """Detach from the auth client and drop all subscribers."""
        self._subscription.unsubscribe()
        self._subscribers.clear()
