"""
Notes API Endpoints.

JSON access to the signed-in browser's notes. Same backend calls as the
Notes Screen, without screen state: failures surface as 502 responses in
the standard error envelope.
"""

from fastapi import APIRouter

from notebookweb.backend.core.dependencies import AuthenticatedSession, Browser, RequestId
from notebookweb.backend.schemas.base import ApiResponse, ResponseMetadata
from notebookweb.backend.schemas.note import Note, NoteCreate

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[list[Note]],
    summary="List notes",
    description="All notes of the signed-in user, newest first.",
)
async def list_notes(
    browser: Browser,
    session: AuthenticatedSession,
    request_id: RequestId,
) -> ApiResponse[list[Note]]:
    notes = await browser.note_service(session).list_notes()
    return ApiResponse(data=notes, metadata=ResponseMetadata(request_id=request_id))


@router.post(
    "",
    response_model=ApiResponse[Note],
    status_code=201,
    summary="Create a note",
    description="Create a note owned by the signed-in user. Title and content are required.",
)
async def create_note(
    data: NoteCreate,
    browser: Browser,
    session: AuthenticatedSession,
    request_id: RequestId,
) -> ApiResponse[Note]:
    note = await browser.note_service(session).create_note(data)
    return ApiResponse(data=note, metadata=ResponseMetadata(request_id=request_id))


@router.delete(
    "/{note_id}",
    status_code=204,
    summary="Delete a note",
    description="Permanently delete a note.",
)
async def delete_note(
    note_id: str,
    browser: Browser,
    session: AuthenticatedSession,
) -> None:
    await browser.note_service(session).delete_note(note_id)
