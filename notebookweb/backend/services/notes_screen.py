"""
Notes Screen.

State and operations of the signed-in screen: the note list, the new-note
form, and the four backend actions (list, create, delete, sign out).

Rules:
- Every successful mutation re-fetches the whole list; nothing is patched
  in place and nothing is removed optimistically.
- Every failed backend call produces exactly one error toast and changes
  nothing else. There are no retries.
- Fetches are numbered when issued. A response older than the last
  applied one is discarded, so overlapping re-fetches cannot roll the
  list back.
- The render after a create, delete or sign-out does not fetch. That
  operation already re-fetched, or failed and left the list alone.
- The screen lives until its session goes away. After teardown, late
  responses are ignored and produce no toasts.
"""

from collections.abc import Callable

from notebookweb.backend.core.exceptions import BackendRequestError
from notebookweb.backend.core.lifetime import Lifetime
from notebookweb.backend.core.logging import get_logger
from notebookweb.backend.schemas.note import Note, NoteCreate
from notebookweb.backend.schemas.session import AuthChangeEvent, Session
from notebookweb.backend.services.note import NoteService
from notebookweb.backend.services.notifications import Notifications
from notebookweb.backend.services.session import SessionProvider
from notebookweb.backend.supabase.auth import AuthClient

logger = get_logger(__name__)

FETCH_FAILED = "Failed to fetch notes"
CREATE_FAILED = "Failed to create note"
DELETE_FAILED = "Failed to delete note"
SIGN_OUT_FAILED = "Failed to sign out"
CREATED = "Note created successfully"
DELETED = "Note deleted successfully"

NoteServiceFactory = Callable[[Session], NoteService]


class NotesScreen:
    """
    The notes screen for one browser.

    Args:
        auth: Auth client, used only to request sign-out
        sessions: Session provider the screen reads and watches
        notifications: Toast queue of the browser
        note_service_factory: Builds a NoteService for a session
    """

    def __init__(
        self,
        auth: AuthClient,
        sessions: SessionProvider,
        notifications: Notifications,
        note_service_factory: NoteServiceFactory,
    ) -> None:
        self._auth = auth
        self._sessions = sessions
        self._notifications = notifications
        self._note_service_factory = note_service_factory

        self.notes: list[Note] = []
        self.title = ""
        self.content = ""

        self.lifetime = Lifetime("notes-screen")
        self._issued_fetches = 0
        self._applied_fetch = 0
        self._operated_since_render = False
        self._unsubscribe = sessions.subscribe(self._on_auth_change)

    @property
    def active(self) -> bool:
        return not self.lifetime.cancelled

    def _on_auth_change(self, event: AuthChangeEvent, session: Session | None) -> None:
        if session is None:
            self.teardown()

    def teardown(self) -> None:
        """End the screen's lifetime. In-flight responses will be ignored."""
        if self.lifetime.cancelled:
            return
        self.lifetime.cancel()
        self._unsubscribe()
        logger.debug("Notes screen torn down", extra={"lifetime_id": self.lifetime.id})

    def _service(self) -> NoteService | None:
        session = self._sessions.session
        if session is None:
            return None
        return self._note_service_factory(session)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def mount(self) -> None:
        """
        Show the screen.

        Fetches the list unless an operation ran since the screen was last
        shown. That operation already settled the list: it re-fetched after
        a success, and a failure leaves the list as it was.
        """
        if self._operated_since_render:
            self._operated_since_render = False
            return
        await self.list_notes()

    async def list_notes(self) -> bool:
        """
        Fetch the user's notes, newest first.

        Returns:
            True if the response was applied to the screen
        """
        service = self._service()
        if service is None or not self.active:
            return False

        self._issued_fetches += 1
        fetch_id = self._issued_fetches

        try:
            notes = await service.list_notes()
        except BackendRequestError:
            if self.active:
                self._notifications.error(FETCH_FAILED)
            return False

        if not self.active:
            logger.debug("Discarding notes fetched after teardown", extra={"fetch_id": fetch_id})
            return False

        if fetch_id <= self._applied_fetch:
            logger.debug(
                "Discarding superseded notes fetch",
                extra={"fetch_id": fetch_id, "applied_fetch": self._applied_fetch},
            )
            return False

        self._applied_fetch = fetch_id
        self.notes = notes
        return True

    async def create_note(self, title: str, content: str) -> bool:
        """
        Submit the new-note form.

        The typed values become the form state first, so a failed submit
        leaves them in place for another try. Blank input is dropped
        without a request or a toast.

        Returns:
            True if the note was stored
        """
        self._operated_since_render = True
        self.title = title
        self.content = content

        if not title.strip() or not content.strip():
            return False

        service = self._service()
        if service is None or not self.active:
            return False

        try:
            await service.create_note(NoteCreate(title=title, content=content))
        except BackendRequestError:
            if self.active:
                self._notifications.error(CREATE_FAILED)
            return False

        if not self.active:
            return False

        self._notifications.success(CREATED)
        self.title = ""
        self.content = ""
        await self.list_notes()
        return True

    async def delete_note(self, note_id: str) -> bool:
        """
        Delete a note. It stays listed until the re-fetch completes.

        Returns:
            True if the backend deleted the note
        """
        self._operated_since_render = True
        service = self._service()
        if service is None or not self.active:
            return False

        try:
            await service.delete_note(note_id)
        except BackendRequestError:
            if self.active:
                self._notifications.error(DELETE_FAILED)
            return False

        if not self.active:
            return False

        self._notifications.success(DELETED)
        await self.list_notes()
        return True

    async def sign_out(self) -> bool:
        """
        Ask the backend to end the session.

        Navigation is not handled here: the resulting SIGNED_OUT transition
        tears the screen down and the route guard sends the browser to the
        sign-in page.

        Returns:
            True if the session ended
        """
        self._operated_since_render = True
        try:
            await self._auth.sign_out()
        except BackendRequestError:
            if self.active:
                self._notifications.error(SIGN_OUT_FAILED)
            return False
        return True
