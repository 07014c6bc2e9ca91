"""
Health Check Endpoints.

Endpoints:
- /health: Liveness check (process running)
- /health/ready: Readiness check (backend auth service reachable)
"""

import asyncio
from typing import Any

from fastapi import APIRouter, HTTPException, Request

from notebookweb.backend.core.exceptions import BackendRequestError
from notebookweb.backend.core.logging import get_logger
from notebookweb.backend.core.utils import utc_now
from notebookweb.backend.supabase.client import SupabaseClient

router = APIRouter()
logger = get_logger(__name__)

READY_TIMEOUT_SECONDS = 5


async def check_backend(backend: SupabaseClient) -> dict[str, Any]:
    """
    Check that the backend auth service answers.

    Returns:
        Dict with status, latency, and optional error message
    """
    start = utc_now()
    try:
        async with asyncio.timeout(READY_TIMEOUT_SECONDS):
            await backend.request("GET", "/auth/v1/health", operation="health_check")
    except (BackendRequestError, TimeoutError) as e:
        logger.warning("Backend health check failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e) or "timeout"}

    latency_ms = int((utc_now() - start).total_seconds() * 1000)
    return {"status": "healthy", "latency_ms": latency_ms}


@router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Liveness check.

    Returns 200 if the process is running. No dependency checks.
    """
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check(request: Request) -> dict[str, Any]:
    """
    Readiness check.

    Returns 503 if the backend cannot be reached.
    """
    checks = {"backend": await check_backend(request.app.state.backend)}

    if checks["backend"]["status"] != "healthy":
        logger.warning("Readiness check failed", extra={"checks": checks})
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "checks": checks,
                "timestamp": utc_now().isoformat(),
            },
        )

    return {
        "status": "healthy",
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }
