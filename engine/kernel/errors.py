"""
EPK Kernel — Errors

Every failure the service surfaces derives from EPKError. The HTTP layer
maps each class to a status code and a user-facing rendering.
"""

from __future__ import annotations


class EPKError(Exception):
    """Base class for surfaced failures."""

    status_code = 500
    message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class StoreUnavailable(EPKError):
    """Document store unreachable or misconfigured."""

    status_code = 503
    message = "The profile database is unavailable."


class NotFound(EPKError):
    """No document for a public id (or no item for an id)."""

    status_code = 404
    message = "Not found."


class ValidationRejected(EPKError):
    """Local input rejected: oversized upload, malformed PIN, bad field value."""

    status_code = 422
    message = "Invalid input."


class SaveInProgress(ValidationRejected):
    """A save for this draft is already outstanding."""

    status_code = 409
    message = "A save is already in progress."


class WriteFailed(EPKError):
    """A save, upload or increment did not reach the store."""

    status_code = 502
    message = "Could not save changes."


class AuthRejected(EPKError):
    """Identity-provider sign-in or session verification failed."""

    status_code = 401
    message = "Authentication failed. Please try again."

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code
