"""
Session Schemas.

The backend's representation of an authenticated principal. Token
material is opaque to this application apart from its expiry.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from notebookweb.backend.core.security import read_token_claims
from notebookweb.backend.core.utils import epoch_seconds


class AuthChangeEvent(str, Enum):
    """Session transitions pushed by the auth client to its subscribers."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


class User(BaseModel):
    """Authenticated user as reported by the backend."""

    id: str
    email: str | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")

    @property
    def display_name(self) -> str:
        return self.user_metadata.get("full_name") or self.email or self.id


class Session(BaseModel):
    """An authenticated session issued by the backend."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    expires_at: int | None = None
    user: User

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def _fill_expires_at(self) -> "Session":
        if self.expires_at is None:
            if self.expires_in is not None:
                self.expires_at = epoch_seconds() + self.expires_in
            else:
                exp = read_token_claims(self.access_token).get("exp")
                if isinstance(exp, int):
                    self.expires_at = exp
        return self

    @property
    def user_id(self) -> str:
        return self.user.id

    def expires_within(self, seconds: int) -> bool:
        """True if the access token expires in `seconds` or less."""
        if self.expires_at is None:
            return False
        return self.expires_at - epoch_seconds() <= seconds


class SessionInfo(BaseModel):
    """Session state exposed by the JSON API. No token material."""

    authenticated: bool
    user_id: str | None = None
    email: str | None = None
    expires_at: int | None = None
