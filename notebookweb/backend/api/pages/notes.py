"""
Notes Screen pages.

GET / shows the screen; the form posts run one screen operation each and
answer with a see-other redirect back to /. None of them navigate on
their own: after sign-out the route guard on / does the redirecting.
"""

from typing import Annotated

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from notebookweb.backend.api.guard import HOME_PATH, guard
from notebookweb.backend.core.config import get_app_config
from notebookweb.backend.core.dependencies import Browser, CurrentSession
from notebookweb.frontend import templates

router = APIRouter()


def _back_home() -> RedirectResponse:
    return RedirectResponse(HOME_PATH, status_code=303)


@router.get("/", response_class=HTMLResponse, summary="Notes screen")
async def notes_page(request: Request, browser: Browser, session: CurrentSession) -> Response:
    redirect = guard(session, HOME_PATH)
    if redirect is not None:
        return redirect

    screen = browser.notes_screen()
    await screen.mount()

    return templates.TemplateResponse(
        request,
        "notes.html",
        {
            "app_name": get_app_config().application.name,
            "user": session.user,
            "notes": screen.notes,
            "title": screen.title,
            "content": screen.content,
            "toasts": browser.notifications.drain(),
        },
    )


@router.post("/notes", summary="Create a note")
async def create_note(
    browser: Browser,
    session: CurrentSession,
    title: Annotated[str, Form()] = "",
    content: Annotated[str, Form()] = "",
) -> Response:
    redirect = guard(session, HOME_PATH)
    if redirect is not None:
        return redirect

    await browser.notes_screen().create_note(title, content)
    return _back_home()


@router.post("/notes/{note_id}/delete", summary="Delete a note")
async def delete_note(note_id: str, browser: Browser, session: CurrentSession) -> Response:
    redirect = guard(session, HOME_PATH)
    if redirect is not None:
        return redirect

    await browser.notes_screen().delete_note(note_id)
    return _back_home()


@router.post("/sign-out", summary="Sign out")
async def sign_out(browser: Browser, session: CurrentSession) -> Response:
    redirect = guard(session, HOME_PATH)
    if redirect is not None:
        return redirect

    await browser.notes_screen().sign_out()
    return _back_home()
