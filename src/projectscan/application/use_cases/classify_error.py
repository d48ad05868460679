"""Use-case: ClassifyError – turn a raw failure into a typed, user-facing error."""

from __future__ import annotations

import json
from typing import Any

from projectscan.application.ports import ServiceReply
from projectscan.application.use_cases.validate_input import Rejected
from projectscan.domain.errors import (
    MalformedResponse,
    ServerRejection,
    TransportFailure,
    ValidationError,
)

CONNECTION_MESSAGE = "Cannot connect to the analysis server"


def decode_body(text: str) -> tuple[bool, Any]:
    """Return ``(parsed, value)``; ``parsed`` is False when *text* is not JSON."""
    try:
        return True, json.loads(text)
    except (ValueError, TypeError, RecursionError):
        return False, None


def _split(message: str, detail: str) -> tuple[str, str]:
    # "main error\n\nhint" in one string carries its own detail.
    if not detail and "\n\n" in message:
        head, _, tail = message.partition("\n\n")
        return head.strip(), tail.strip()
    return message, detail


class ClassifyError:
    """Build the error for a failed attempt.

    Every constructor returns (never raises) an ``AnalysisError`` subclass;
    the caller decides what to do with it.
    """

    def __init__(self, service_location: str = "") -> None:
        self._location = service_location

    @staticmethod
    def from_rejection(rejected: Rejected) -> ValidationError:
        return ValidationError(rejected.reason, rejected.message, rejected.detail)

    def from_reply(self, reply: ServiceReply) -> ServerRejection | MalformedResponse:
        generic = f"Analysis failed: {reply.status_code}"
        parsed, body = decode_body(reply.text)
        if not parsed:
            return MalformedResponse(
                generic,
                "The server response could not be read.",
                status_code=reply.status_code,
            )

        if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"].strip():
            detail = ""
            for key in ("user_tip", "details"):
                value = body.get(key)
                if isinstance(value, str) and value.strip():
                    detail = value.strip()
                    break
            message, detail = _split(body["error"].strip(), detail)
            return ServerRejection(message, detail, status_code=reply.status_code)

        return ServerRejection(generic, status_code=reply.status_code)

    @staticmethod
    def from_unreadable_success(reply: ServiceReply) -> MalformedResponse:
        return MalformedResponse(
            f"Analysis failed: {reply.status_code}",
            "The server reported success but its response could not be read.",
            status_code=reply.status_code,
        )

    @staticmethod
    def from_undecodable(fault: BaseException) -> MalformedResponse:
        return MalformedResponse(
            "Analysis failed: unreadable response",
            f"The server response could not be decoded ({fault}).",
        )

    def from_fault(self, fault: BaseException) -> TransportFailure:
        # The underlying fault text is never shown: it is not actionable.
        where = f"at {self._location}" if self._location else "and reachable"
        return TransportFailure(
            CONNECTION_MESSAGE,
            f"Please make sure the backend is running {where}. "
            "Check that the server is started and accessible.",
        )
