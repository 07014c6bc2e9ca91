"""
Browser Contexts.

Server-side state for each browser: its auth client and session provider,
its pending toasts, and its notes screen. Browsers are told apart by a
signed cookie (see core.security); backend tokens stay here.

The registry is owned by the application (app.state.browsers) and handed
to request handlers explicitly. It lives in process memory, so the server
runs as a single process.
"""

import time

from notebookweb.backend.core.logging import get_logger
from notebookweb.backend.core.security import new_browser_id
from notebookweb.backend.schemas.session import Session
from notebookweb.backend.services.note import NoteService
from notebookweb.backend.services.notes_screen import NotesScreen
from notebookweb.backend.services.notifications import Notifications
from notebookweb.backend.services.session import SessionProvider
from notebookweb.backend.supabase.auth import AuthClient
from notebookweb.backend.supabase.client import SupabaseClient

logger = get_logger(__name__)


class BrowserContext:
    """Everything the server keeps for one browser."""

    def __init__(
        self,
        browser_id: str,
        backend: SupabaseClient,
        notes_table: str = "notes",
        refresh_margin_seconds: int = 60,
    ) -> None:
        self.id = browser_id
        self._backend = backend
        self._notes_table = notes_table
        self.auth = AuthClient(backend, refresh_margin_seconds=refresh_margin_seconds)
        self.sessions = SessionProvider(self.auth)
        self.notifications = Notifications()
        self._screen: NotesScreen | None = None
        self.last_seen = time.monotonic()

    def touch(self) -> None:
        self.last_seen = time.monotonic()

    def note_service(self, session: Session) -> NoteService:
        """Note service bound to the given session."""
        return NoteService(self._backend, session, table=self._notes_table)

    def notes_screen(self) -> NotesScreen:
        """
        The current notes screen, created on first use.

        A screen torn down by sign-out or expiry is replaced by a fresh one
        (empty list, empty form) the next time it is needed.
        """
        if self._screen is None or not self._screen.active:
            self._screen = NotesScreen(
                auth=self.auth,
                sessions=self.sessions,
                notifications=self.notifications,
                note_service_factory=self.note_service,
            )
        return self._screen

    def close(self) -> None:
        if self._screen is not None:
            self._screen.teardown()
            self._screen = None
        self.sessions.close()


class BrowserRegistry:
    """
    Browser contexts by browser id.

    Contexts idle for longer than idle_ttl_seconds are dropped the next
    time the registry is used. At max_contexts, creating a context first
    drops the least recently seen one.
    """

    def __init__(
        self,
        backend: SupabaseClient,
        notes_table: str = "notes",
        refresh_margin_seconds: int = 60,
        idle_ttl_seconds: int = 86400,
        max_contexts: int = 10000,
    ) -> None:
        self.backend = backend
        self._notes_table = notes_table
        self._refresh_margin = refresh_margin_seconds
        self._idle_ttl = idle_ttl_seconds
        self._max_contexts = max_contexts
        self._contexts: dict[str, BrowserContext] = {}

    def __len__(self) -> int:
        return len(self._contexts)

    def get(self, browser_id: str | None) -> BrowserContext | None:
        if browser_id is None:
            return None
        return self._contexts.get(browser_id)

    def create(self) -> BrowserContext:
        if len(self._contexts) >= self._max_contexts:
            self._evict_least_recent()
        context = BrowserContext(
            new_browser_id(),
            self.backend,
            notes_table=self._notes_table,
            refresh_margin_seconds=self._refresh_margin,
        )
        self._contexts[context.id] = context
        logger.debug("Browser context created", extra={"browser_id": context.id})
        return context

    def resolve(self, browser_id: str | None) -> tuple[BrowserContext, bool]:
        """
        Find the context for a browser id, creating one if needed.

        Returns:
            Tuple of (context, created)
        """
        self.prune()
        context = self.get(browser_id)
        created = context is None
        if context is None:
            context = self.create()
        context.touch()
        return context, created

    def prune(self) -> int:
        """Drop idle contexts. Returns how many were dropped."""
        cutoff = time.monotonic() - self._idle_ttl
        stale = [bid for bid, ctx in self._contexts.items() if ctx.last_seen < cutoff]
        for browser_id in stale:
            self._contexts.pop(browser_id).close()
        if stale:
            logger.info("Idle browser contexts dropped", extra={"count": len(stale)})
        return len(stale)

    def _evict_least_recent(self) -> None:
        browser_id = min(self._contexts, key=lambda bid: self._contexts[bid].last_seen)
        self._contexts.pop(browser_id).close()
        logger.info(
            "Browser context evicted at capacity",
            extra={"browser_id": browser_id, "max_contexts": self._max_contexts},
        )

    def close(self) -> None:
        for context in self._contexts.values():
            context.close()
        self._contexts.clear()
