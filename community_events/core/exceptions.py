"""
Domain errors raised by the event store and the registration engine.

Every error carries a machine-readable ``kind`` and the HTTP status the API
layer answers with. Handlers in ``community_events.api.errors`` turn them into
``{"success": false, "error": kind, "message": ...}`` responses.
"""

from typing import Optional

from fastapi import status


class DomainError(Exception):
    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    """Event or registration does not exist."""

    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidStateError(DomainError):
    """Event not published, registration closed, or transition not allowed."""

    kind = "invalid_state"
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(DomainError):
    """Duplicate registration for an email, or slug collision."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class ValidationError(DomainError):
    kind = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, errors: Optional[dict] = None):
        super().__init__(message)
        self.errors = errors or {}


class DataIntegrityFault(DomainError):
    """
    The attendee counter disagrees with the registrations it summarises.
    Always logged and counted; indicates the atomic counter contract was broken.
    """

    kind = "data_integrity_fault"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ServerFault(DomainError):
    kind = "server_fault"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
