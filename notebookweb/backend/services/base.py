"""
Base Service.

Base class for services. Services orchestrate repositories and implement
the rules the screens and the API share.

Usage:
    from notebookweb.backend.services.base import BaseService

    class NoteService(BaseService):
        def __init__(self, backend: SupabaseClient, session: Session) -> None:
            super().__init__()
            self.repo = NoteRepository(backend, session.access_token)
"""

from typing import Any

from notebookweb.backend.core.logging import get_logger


class BaseService:
    """
    Base class for all services.

    Provides a logger named after the concrete service module and
    helpers that tag log records with the service name.
    """

    def __init__(self) -> None:
        self._logger = get_logger(self.__class__.__module__)

    def _log_operation(
        self,
        operation: str,
        **context: Any,
    ) -> None:
        """Log a service operation with context."""
        self._logger.info(
            operation,
            extra={"service": self.__class__.__name__, **context},
        )

    def _log_debug(
        self,
        message: str,
        **context: Any,
    ) -> None:
        """Log debug information."""
        self._logger.debug(
            message,
            extra={"service": self.__class__.__name__, **context},
        )
