"""Error taxonomy shared by the compile pipeline and the site handlers.

Every error carries the HTTP status it maps to and the message returned to the
caller as ``{"status": message}``.
"""
from __future__ import annotations


class DevsiteError(Exception):
    """Base class for failures reported to API callers."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(DevsiteError):
    status_code = 400
    default_message = "Error decoding request body"


class Unauthorized(DevsiteError):
    status_code = 401
    default_message = "Source not confirmed"


class NotConfirmed(Unauthorized):
    """Confirmation failure on the collaborator endpoints, reported as 406."""

    status_code = 406


class NotFound(DevsiteError):
    status_code = 404
    default_message = "Not found"


class WorkspaceCreateFailed(DevsiteError):
    default_message = "Cannot create build directory"


class WorkspaceWriteFailed(DevsiteError):
    default_message = "Cannot write contents to file for compile"


class ProcessError(DevsiteError):
    default_message = "Running compiler failed"


class ProcessTimeout(ProcessError):
    status_code = 504
    default_message = "Compiler did not finish in time"


class HarvestError(DevsiteError):
    """Raised when the compiler's result artifact violates its contract."""


class ResultMissing(HarvestError):
    status_code = 404
    default_message = "Result file does not exist"


class ResultUnreadable(HarvestError):
    default_message = "Reading result file failed"


class ResultMalformed(HarvestError):
    default_message = "Parsing result file failed"


class StoreError(DevsiteError):
    default_message = "Persistence operation failed"


class UpstreamError(DevsiteError):
    """Raised when a third-party HTTP service fails or answers unexpectedly."""

    default_message = "Upstream service request failed"


__all__ = [
    "BadRequest",
    "DevsiteError",
    "HarvestError",
    "NotConfirmed",
    "NotFound",
    "ProcessError",
    "ProcessTimeout",
    "ResultMalformed",
    "ResultMissing",
    "ResultUnreadable",
    "StoreError",
    "Unauthorized",
    "UpstreamError",
    "WorkspaceCreateFailed",
    "WorkspaceWriteFailed",
]
