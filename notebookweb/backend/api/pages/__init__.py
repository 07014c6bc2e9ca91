"""
Page Router.

Aggregates the server-rendered screens.
"""

from fastapi import APIRouter

from notebookweb.backend.api.pages import auth, notes

router = APIRouter()

router.include_router(auth.router, tags=["auth"])
router.include_router(notes.router, tags=["notes"])
