"""
Route Guard.

Decides where a browser belongs from its session alone:
- no session on the protected path goes to the sign-in page
- a session on the sign-in page goes to the notes page
"""

from fastapi.responses import RedirectResponse

from notebookweb.backend.schemas.session import Session

HOME_PATH = "/"
AUTH_PATH = "/auth"


def redirect_for(session: Session | None, path: str) -> str | None:
    """
    Redirect target for a path, or None to render it.

    Args:
        session: Current session, None if signed out
        path: HOME_PATH (protected) or AUTH_PATH
    """
    if path == AUTH_PATH:
        return HOME_PATH if session is not None else None
    return None if session is not None else AUTH_PATH


def guard(session: Session | None, path: str) -> RedirectResponse | None:
    """See-other redirect for redirect_for, or None."""
    target = redirect_for(session, path)
    if target is None:
        return None
    return RedirectResponse(target, status_code=303)
