"""Domain errors – every way an analysis attempt can end badly."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    SERVER_REJECTION = "server_rejection"
    TRANSPORT_FAILURE = "transport_failure"
    MALFORMED_RESPONSE = "malformed_response"


class AnalysisError(Exception):
    """User-facing failure of one analysis attempt: a short message plus optional detail."""

    kind: ErrorKind = ErrorKind.SERVER_REJECTION

    def __init__(self, message: str, detail: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "detail": self.detail}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnalysisError):
            return NotImplemented
        return (self.kind, self.message, self.detail) == (other.kind, other.message, other.detail)

    def __hash__(self) -> int:
        return hash((self.kind, self.message, self.detail))


class ValidationError(AnalysisError):
    kind = ErrorKind.VALIDATION

    def __init__(self, reason: str, message: str, detail: str = "") -> None:
        super().__init__(message, detail)
        self.reason = reason


class ServerRejection(AnalysisError):
    kind = ErrorKind.SERVER_REJECTION

    def __init__(self, message: str, detail: str = "", status_code: int = 0) -> None:
        super().__init__(message, detail)
        self.status_code = status_code


class TransportFailure(AnalysisError):
    kind = ErrorKind.TRANSPORT_FAILURE


class MalformedResponse(AnalysisError):
    kind = ErrorKind.MALFORMED_RESPONSE

    def __init__(self, message: str, detail: str = "", status_code: int = 0) -> None:
        super().__init__(message, detail)
        self.status_code = status_code


class ServiceUnreachable(Exception):
    """Raised by service adapters when no HTTP response was obtained."""


class UnreadableReply(Exception):
    """Raised by service adapters when a response arrived but its body could not be decoded."""
