"""
Notification Service.

Transient toast notifications for one browser. A toast is shown on the
next page render and then dropped; the page dismisses it on its own
after a few seconds.

Usage:
    notifications = Notifications()
    notifications.error("Failed to fetch notes")

    toasts = notifications.drain()  # at render time
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from notebookweb.backend.core.logging import get_logger
from notebookweb.backend.core.utils import utc_now

logger = get_logger(__name__)

MAX_PENDING_TOASTS = 20


class ToastLevel(str, Enum):
    """Toast categories, used for styling."""

    SUCCESS = "success"
    ERROR = "error"


@dataclass
class Toast:
    """A single transient notification."""

    level: ToastLevel
    message: str
    created_at: datetime = field(default_factory=utc_now)


class Notifications:
    """Pending toasts for one browser, oldest first."""

    def __init__(self, max_pending: int = MAX_PENDING_TOASTS) -> None:
        self._pending: deque[Toast] = deque(maxlen=max_pending)

    def success(self, message: str) -> None:
        self._push(ToastLevel.SUCCESS, message)

    def error(self, message: str) -> None:
        self._push(ToastLevel.ERROR, message)

    def _push(self, level: ToastLevel, message: str) -> None:
        self._pending.append(Toast(level=level, message=message))
        logger.debug("Toast queued", extra={"level": level.value, "toast": message})

    @property
    def pending(self) -> list[Toast]:
        """Toasts not yet shown, without consuming them."""
        return list(self._pending)

    def drain(self) -> list[Toast]:
        """Take every pending toast. Each toast is returned exactly once."""
        toasts = list(self._pending)
        self._pending.clear()
        return toasts
