"""
Note Service.

Note operations for one signed-in user. The owner id attached on insert
comes from the session; the backend decides what the user may see.
"""

from notebookweb.backend.repositories.note import NoteRepository
from notebookweb.backend.schemas.note import Note, NoteCreate
from notebookweb.backend.schemas.session import Session
from notebookweb.backend.services.base import BaseService
from notebookweb.backend.supabase.client import SupabaseClient


class NoteService(BaseService):
    """
    Service for note business logic.

    All methods raise BackendRequestError when the backend call fails.
    """

    def __init__(
        self,
        backend: SupabaseClient,
        session: Session,
        table: str = "notes",
    ) -> None:
        super().__init__()
        self._session = session
        self.repo = NoteRepository(backend, session.access_token, table=table)

    async def list_notes(self) -> list[Note]:
        """List the user's notes, newest first."""
        notes = await self.repo.get_all_newest_first()
        self._log_debug("Notes listed", user_id=self._session.user_id, count=len(notes))
        return notes

    async def create_note(self, data: NoteCreate) -> Note | None:
        """
        Create a note owned by the session's user.

        Returns:
            The stored note, if the backend returned it
        """
        self._log_operation("Creating note", user_id=self._session.user_id)
        note = await self.repo.create(
            title=data.title,
            content=data.content,
            user_id=self._session.user_id,
        )
        if note is not None:
            self._log_debug("Note created", note_id=note.id)
        return note

    async def delete_note(self, note_id: str) -> None:
        """Delete a note by id."""
        self._log_operation("Deleting note", user_id=self._session.user_id, note_id=note_id)
        await self.repo.delete(note_id)
