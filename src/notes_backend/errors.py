"""Error kinds raised by the note and attachment services.

They are HTTPException subclasses, so the gateway maps them straight onto the
unified ErrorResponse shape (see error_handlers.py) without per-route handling.
"""

from __future__ import annotations

from fastapi import HTTPException, status


class InvalidArgument(HTTPException):
    error_code = "invalid_argument"

    def __init__(self, detail: str = "invalid argument") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotFound(HTTPException):
    error_code = "not_found"

    def __init__(self, detail: str = "not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class PayloadTooLarge(HTTPException):
    error_code = "payload_too_large"

    def __init__(self, detail: str = "attachment too large") -> None:
        super().__init__(status_code=status.HTTP_413_CONTENT_TOO_LARGE, detail=detail)


class StorageFailure(HTTPException):
    """Persistence I/O failed; safe to retry. Never carries internal detail."""

    error_code = "storage_failure"

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="storage temporarily unavailable, please retry",
        )
