"""
Base Repository.

Base class for repositories backed by a PostgREST table. Each instance is
bound to one user's access token, so every query runs under that user's
row-level security policy.
"""

from typing import Any

import httpx

from notebookweb.backend.supabase.client import SupabaseClient


class BaseRepository:
    """
    Base repository for one backend table.

    Subclasses should set the table name or pass it in:

        class NoteRepository(BaseRepository):
            table = "notes"
    """

    table: str

    def __init__(
        self,
        backend: SupabaseClient,
        access_token: str,
        table: str | None = None,
    ) -> None:
        self.backend = backend
        self.access_token = access_token
        if table is not None:
            self.table = table

    @property
    def path(self) -> str:
        return f"/rest/v1/{self.table}"

    async def _request(
        self,
        method: str,
        operation: str,
        **kwargs: Any,
    ) -> httpx.Response:
        return await self.backend.request(
            method,
            self.path,
            operation=operation,
            access_token=self.access_token,
            **kwargs,
        )
