from __future__ import annotations

from fastapi import status


class AuditError(Exception):
    """Base error raised by the audit engine; carries its HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgument(AuditError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(AuditError):
    status_code = status.HTTP_404_NOT_FOUND


class DependencyUnavailable(AuditError):
    """Inventory could not be read; the caller may retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class PersistenceFailure(AuditError):
    """The audit run could not be stored."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
