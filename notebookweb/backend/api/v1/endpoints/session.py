"""
Session API Endpoint.

Reports whether the browser is signed in. Token material is never
returned.
"""

from fastapi import APIRouter

from notebookweb.backend.core.dependencies import CurrentSession, RequestId
from notebookweb.backend.schemas.base import ApiResponse, ResponseMetadata
from notebookweb.backend.schemas.session import SessionInfo

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[SessionInfo],
    summary="Current session",
)
async def get_session(session: CurrentSession, request_id: RequestId) -> ApiResponse[SessionInfo]:
    if session is None:
        info = SessionInfo(authenticated=False)
    else:
        info = SessionInfo(
            authenticated=True,
            user_id=session.user_id,
            email=session.user.email,
            expires_at=session.expires_at,
        )
    return ApiResponse(data=info, metadata=ResponseMetadata(request_id=request_id))
