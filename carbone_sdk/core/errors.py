"""
Error taxonomy for the Carbone SDK.

Every failure surfaced to callers is a CarboneError. The condition is
carried as a CarboneErrorKind tag, and failures that originate from an
HTTP status are additionally tagged with an HttpFailure variant so that
callers (and the render orchestrator) never branch on message text.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class CarboneErrorKind(str, Enum):
    INVALID_ARGUMENT = "invalid_argument"
    FILE_READ_ERROR = "file_read_error"
    HASHING_FAILED = "hashing_failed"
    INVALID_TOKEN = "invalid_token"
    UPLOAD_FAILED = "upload_failed"
    RENDER_FAILED = "render_failed"
    MALFORMED_RESPONSE = "malformed_response"
    SERVICE_ERROR = "service_error"
    IO_READ_ERROR = "io_read_error"


class HttpFailure(str, Enum):
    """
    Tagged variant over transport failures.

    Only two statuses carry meaning for the SDK; everything else is OTHER.
    """

    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    OTHER = "other"

    @classmethod
    def from_status(cls, status_code: int) -> "HttpFailure":
        if status_code == 404:
            return cls.NOT_FOUND
        if status_code == 401:
            return cls.UNAUTHORIZED
        return cls.OTHER


class CarboneError(Exception):
    """
    The single exception type raised by the SDK.

    Usage:
        raise CarboneError(
            CarboneErrorKind.RENDER_FAILED,
            "render_id empty or invalid",
        )
    """

    def __init__(
        self,
        kind: CarboneErrorKind,
        message: str,
        *,
        http_status: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.http_status = http_status
        self.failure: Optional[HttpFailure] = (
            HttpFailure.from_status(http_status)
            if http_status is not None
            else None
        )
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"CarboneError(kind={self.kind.value!r}, "
            f"message={self.message!r}, http_status={self.http_status!r})"
        )

    def to_dict(self) -> dict:
        """Structured form for logs."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "http_status": self.http_status,
        }
