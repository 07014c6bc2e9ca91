"""
API Version 1 Router.

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from notebookweb.backend.api.v1.endpoints import notes, session

router = APIRouter()

router.include_router(session.router, prefix="/session", tags=["session"])
router.include_router(notes.router, prefix="/notes", tags=["notes"])
