# Pydantic schemas package
from notebookweb.backend.schemas.base import (
    ApiResponse,
    ErrorDetail,
    ErrorResponse,
    ResponseMetadata,
)
from notebookweb.backend.schemas.note import Note, NoteCreate
from notebookweb.backend.schemas.session import AuthChangeEvent, Session, SessionInfo, User

__all__ = [
    "ApiResponse",
    "AuthChangeEvent",
    "ErrorDetail",
    "ErrorResponse",
    "Note",
    "NoteCreate",
    "ResponseMetadata",
    "Session",
    "SessionInfo",
    "User",
]
