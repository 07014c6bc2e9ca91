"""
Integration Test Fixtures.

The full application (middleware, routers, templates, exception handlers)
runs in-process against the in-memory fake backend from the root
conftest. Each AsyncClient keeps its own cookie jar, so one client is one
browser.
"""

from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from notebookweb.backend.main import create_app
from notebookweb.backend.supabase.client import SupabaseClient

TEST_EMAIL = "ada@example.com"
TEST_PASSWORD = "correct-horse-battery-staple"


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
async def app(backend: SupabaseClient) -> AsyncGenerator[FastAPI, None]:
    """Application wired to the fake backend."""
    application = create_app(backend=backend)
    yield application
    application.state.browsers.close()


@pytest.fixture
def new_browser(app: FastAPI) -> Callable[[], AsyncClient]:
    """
    Factory for additional browsers against the same app.

    Clients are closed by the caller (use `async with`).
    """

    def factory() -> AsyncClient:
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    return factory


@pytest.fixture
async def client(new_browser) -> AsyncGenerator[AsyncClient, None]:
    """
    One browser, signed out.

    Usage:
        async def test_home_redirects(client: AsyncClient):
            response = await client.get("/")
            assert response.status_code == 303
    """
    async with new_browser() as browser:
        yield browser


@pytest.fixture
def registered_user(fake_backend) -> dict[str, Any]:
    return fake_backend.add_user(TEST_EMAIL, TEST_PASSWORD, full_name="Ada Lovelace")


@pytest.fixture
def sign_in() -> Callable:
    """Submit the password sign-in form from a browser."""

    async def submit(browser: AsyncClient, email: str = TEST_EMAIL, password: str = TEST_PASSWORD):
        return await browser.post("/auth/sign-in", data={"email": email, "password": password})

    return submit


@pytest.fixture
async def signed_in_client(client: AsyncClient, registered_user, sign_in) -> AsyncClient:
    """The client browser, signed in as the registered user."""
    response = await sign_in(client)
    assert response.status_code == 303
    return client


# =============================================================================
# API Response Assertion Helpers
# =============================================================================


class ApiAssertions:
    """Helper class for API response assertions."""

    @staticmethod
    def assert_success(response: Any, expected_status: int = 200) -> dict[str, Any]:
        """
        Assert API response is successful.

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is True, f"Response not successful: {data}"
        return data

    @staticmethod
    def assert_error(
        response: Any,
        expected_status: int,
        expected_code: str | None = None,
    ) -> dict[str, Any]:
        """
        Assert API response is an error.

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is False, f"Response should be error: {data}"
        assert data.get("error") is not None, f"Missing error details: {data}"

        if expected_code:
            actual_code = data["error"].get("code")
            assert actual_code == expected_code, (
                f"Expected error code {expected_code}, got {actual_code}"
            )

        return data

    @staticmethod
    def assert_validation_error(
        response: Any,
        field: str | None = None,
    ) -> dict[str, Any]:
        """Assert API response is a validation error (422)."""
        data = ApiAssertions.assert_error(response, 422, "VAL_REQUEST_INVALID")

        if field:
            errors = data["error"].get("details", {}).get("validation_errors", [])
            fields = [e.get("field", "") for e in errors]
            assert any(field in f for f in fields), (
                f"Expected validation error for field '{field}', "
                f"got errors for: {fields}"
            )

        return data


@pytest.fixture
def api() -> ApiAssertions:
    """Provide API assertion helpers."""
    return ApiAssertions()
