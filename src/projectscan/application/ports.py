"""Application ports – abstract interfaces that infrastructure must implement.

These are the boundaries of the application layer. Domain and application code
depend only on these abstractions, never on concrete infrastructure.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Callable

from projectscan.domain.entities import FileCandidate
from projectscan.domain.value_objects import Timestamp


@dataclass(frozen=True)
class ServiceReply:
    """Raw HTTP reply from the analysis service, body still undecoded."""

    status_code: int
    text: str
    reason_phrase: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


# ---------------------------------------------------------------------------
# Analysis service
# ---------------------------------------------------------------------------
class AnalysisService(abc.ABC):
    """Port: remote service that analyzes an uploaded archive."""

    @abc.abstractmethod
    async def analyze(
        self,
        candidate: FileCandidate,
        *,
        on_dispatched: Callable[[], None] | None = None,
    ) -> ServiceReply:
        """Upload *candidate* and return the reply.

        *on_dispatched* is called once the request body is built and about to
        go on the wire. Raises ``ServiceUnreachable`` when no reply is obtained
        and ``UnreadableReply`` when the reply body cannot be decoded.
        """
        ...

    @abc.abstractmethod
    def describe(self) -> str:
        """Human-readable location of the service (used in error details)."""
        ...


# ---------------------------------------------------------------------------
# Health probe
# ---------------------------------------------------------------------------
class HealthProbe(abc.ABC):
    """Port: liveness / capability check against the analysis service."""

    @abc.abstractmethod
    async def check(self) -> ServiceReply:
        """Raises ``ServiceUnreachable`` or ``UnreadableReply`` like ``AnalysisService.analyze``."""
        ...


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------
class Clock(abc.ABC):
    """Port: provides current time (makes testing deterministic)."""

    @abc.abstractmethod
    def now(self) -> Timestamp:
        ...


# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
class Logger(abc.ABC):
    """Port: structured logging with secret redaction."""

    @abc.abstractmethod
    def info(self, msg: str, **kw: Any) -> None:
        ...

    @abc.abstractmethod
    def warn(self, msg: str, **kw: Any) -> None:
        ...

    @abc.abstractmethod
    def error(self, msg: str, **kw: Any) -> None:
        ...

    @abc.abstractmethod
    def debug(self, msg: str, **kw: Any) -> None:
        ...
