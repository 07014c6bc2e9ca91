"""
Supabase HTTP Client.

Shared async HTTP client for the managed backend (GoTrue auth under
/auth/v1, PostgREST data under /rest/v1). Every request carries the
project's anon key; data requests also carry the user's access token so
row-level security applies on the server.

All failures, whether the request never got a response or the backend
rejected it, surface as BackendRequestError.
"""

from typing import Any

import httpx

from notebookweb.backend.core.config import get_app_config, get_settings
from notebookweb.backend.core.exceptions import BackendRequestError
from notebookweb.backend.core.logging import get_logger

logger = get_logger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of a GoTrue or PostgREST error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {response.status_code}"


class SupabaseClient:
    """
    HTTP client for backend communication.

    Usage:
        client = SupabaseClient(url, anon_key)
        response = await client.request(
            "GET", "/rest/v1/notes",
            operation="list_notes",
            access_token=session.access_token,
            params={"select": "*"},
        )
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            url: Supabase project URL
            anon_key: Public anon key of the project
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the underlying HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.url,
                timeout=self.timeout,
                headers={"apikey": self.anon_key},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        access_token: str | None = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Make a request to the backend.

        Args:
            method: HTTP method
            path: Path under the project URL (e.g. /auth/v1/token)
            operation: Name of the calling operation, for logs and errors
            access_token: User access token, sent as a bearer credential
            headers: Extra request headers
            **kwargs: Additional arguments for httpx

        Returns:
            The successful (2xx) response

        Raises:
            BackendRequestError: On transport failure or non-2xx status
        """
        client = await self._get_client()

        request_headers = dict(headers or {})
        if access_token:
            request_headers["Authorization"] = f"Bearer {access_token}"

        logger.debug(
            "Backend request",
            extra={"operation": operation, "method": method, "path": path},
        )

        try:
            response = await client.request(method, path, headers=request_headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(
                "Backend request failed",
                extra={"operation": operation, "method": method, "path": path, "error": str(e)},
            )
            raise BackendRequestError(
                f"{operation} failed: {e}",
                operation=operation,
            ) from e

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "Backend rejected request",
                extra={
                    "operation": operation,
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "error": message,
                },
            )
            raise BackendRequestError(
                message,
                status_code=response.status_code,
                operation=operation,
            )

        logger.debug(
            "Backend response",
            extra={"operation": operation, "status_code": response.status_code},
        )
        return response


def create_supabase_client(
    transport: httpx.AsyncBaseTransport | None = None,
) -> SupabaseClient:
    """Build a client from supabase.yaml, application.yaml and config/.env."""
    app_config = get_app_config()
    return SupabaseClient(
        url=app_config.supabase.url,
        anon_key=get_settings().supabase_anon_key,
        timeout=float(app_config.application.timeouts.external_api),
        transport=transport,
    )
