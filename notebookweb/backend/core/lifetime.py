"""
Screen Lifetimes.

A Lifetime is a cancellation token tied to one screen instance. Requests
started by the screen keep running after teardown, but their responses
must check the token before touching screen state.

Usage:
    lifetime = Lifetime("notes-screen")

    result = await repo.list_notes()
    if lifetime.cancelled:
        return  # screen is gone, drop the late response

    lifetime.cancel()  # on teardown
"""

import itertools

from notebookweb.backend.core.logging import get_logger

logger = get_logger(__name__)

_ids = itertools.count(1)


class Lifetime:
    """Cancellation token for the active lifetime of a screen."""

    def __init__(self, owner: str) -> None:
        self.owner = owner
        self.id = next(_ids)
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Mark the lifetime over. Idempotent."""
        if self._cancelled:
            return
        self._cancelled = True
        logger.debug(
            "Lifetime cancelled",
            extra={"owner": self.owner, "lifetime_id": self.id},
        )

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"Lifetime({self.owner!r}, id={self.id}, {state})"
