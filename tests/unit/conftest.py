"""
Unit Test Fixtures.

Fixtures for unit tests. The backend is the in-memory fake from the root
conftest; note services are AsyncMocks so screen behaviour can be driven
step by step.
"""

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from notebookweb.backend.services.note import NoteService
from notebookweb.backend.services.notes_screen import NotesScreen
from notebookweb.backend.services.notifications import Notifications
from notebookweb.backend.services.session import SessionProvider
from notebookweb.backend.supabase.auth import AuthClient

TEST_EMAIL = "ada@example.com"
TEST_PASSWORD = "correct-horse-battery-staple"


# =============================================================================
# Auth Fixtures
# =============================================================================


@pytest.fixture
def auth(backend) -> AuthClient:
    """Auth client for one browser, signed out."""
    return AuthClient(backend, refresh_margin_seconds=60)


@pytest.fixture
def registered_user(fake_backend) -> dict:
    """A user known to the fake backend."""
    return fake_backend.add_user(TEST_EMAIL, TEST_PASSWORD, full_name="Ada Lovelace")


@pytest.fixture
async def signed_in_auth(auth: AuthClient, registered_user: dict) -> AuthClient:
    """Auth client with a live session."""
    await auth.sign_in_with_password(TEST_EMAIL, TEST_PASSWORD)
    return auth


@pytest.fixture
def record_events() -> Callable:
    """
    Listener that records (event, session) pairs.

    Usage:
        listener = record_events()
        auth.on_auth_state_change(listener)
        assert listener.events == [...]
    """

    def factory():
        events: list = []

        def listener(event, session):
            events.append((event, session))

        listener.events = events
        return listener

    return factory


# =============================================================================
# Screen Fixtures
# =============================================================================


@pytest.fixture
def mock_note_service() -> AsyncMock:
    """
    Mock NoteService.

    list_notes returns an empty list unless told otherwise.
    """
    service = AsyncMock(spec=NoteService)
    service.list_notes.return_value = []
    service.create_note.return_value = None
    service.delete_note.return_value = None
    return service


@pytest.fixture
def notifications() -> Notifications:
    return Notifications()


@pytest.fixture
def sessions(signed_in_auth: AuthClient) -> SessionProvider:
    return SessionProvider(signed_in_auth)


@pytest.fixture
def note_service_factory(mock_note_service: AsyncMock) -> MagicMock:
    return MagicMock(return_value=mock_note_service)


@pytest.fixture
def screen(
    signed_in_auth: AuthClient,
    sessions: SessionProvider,
    notifications: Notifications,
    note_service_factory: MagicMock,
) -> NotesScreen:
    """Notes screen of a signed-in browser."""
    return NotesScreen(
        auth=signed_in_auth,
        sessions=sessions,
        notifications=notifications,
        note_service_factory=note_service_factory,
    )
