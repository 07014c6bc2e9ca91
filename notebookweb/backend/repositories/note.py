"""
Note Repository.

Data access layer for the notes table. Visibility and ownership are
enforced by the backend; nothing here filters by user.
"""

from notebookweb.backend.repositories.base import BaseRepository
from notebookweb.backend.schemas.note import Note


class NoteRepository(BaseRepository):
    """Repository for the notes table."""

    table = "notes"

    async def get_all_newest_first(self) -> list[Note]:
        """
        Get every note visible to the current user.

        Returns:
            Notes in descending created_at order, as the backend returned them
        """
        response = await self._request(
            "GET",
            "list_notes",
            params={"select": "*", "order": "created_at.desc"},
        )
        return [Note.model_validate(row) for row in response.json()]

    async def create(self, title: str, content: str, user_id: str) -> Note | None:
        """
        Insert one note.

        Returns:
            The stored note, or None if the backend returned no representation
        """
        response = await self._request(
            "POST",
            "create_note",
            json=[{"title": title, "content": content, "user_id": user_id}],
            headers={"Prefer": "return=representation"},
        )
        rows = response.json() if response.content else []
        if not rows:
            return None
        return Note.model_validate(rows[0])

    async def delete(self, note_id: str) -> None:
        """Delete the note with the given id."""
        await self._request(
            "DELETE",
            "delete_note",
            params={"id": f"eq.{note_id}"},
        )
