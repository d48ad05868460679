"""Domain state for one upload attempt and for the service status facet."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from projectscan.domain.entities import AnalysisResult, FileCandidate
from projectscan.domain.errors import AnalysisError
from projectscan.domain.value_objects import Timestamp


class Phase(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    AWAITING_RESPONSE = "awaiting_response"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def in_flight(self) -> bool:
        return self in (Phase.VALIDATING, Phase.SUBMITTING, Phase.AWAITING_RESPONSE)

    @property
    def terminal(self) -> bool:
        return self in (Phase.SUCCEEDED, Phase.FAILED)


PHASE_PROGRESS: dict[Phase, int] = {
    Phase.IDLE: 0,
    Phase.VALIDATING: 5,
    Phase.SUBMITTING: 25,
    Phase.AWAITING_RESPONSE: 60,
    Phase.SUCCEEDED: 100,
    Phase.FAILED: 0,
}


@dataclass(frozen=True)
class UploadSession:
    """Snapshot of one upload attempt.

    Build instances through the classmethods so that ``error`` only exists
    in FAILED and ``result`` only in SUCCEEDED.
    """

    phase: Phase = Phase.IDLE
    candidate: FileCandidate | None = None
    error: AnalysisError | None = None
    result: AnalysisResult | None = None
    progress: int = 0
    dragging: bool = False

    @classmethod
    def idle(cls, dragging: bool = False) -> "UploadSession":
        return cls(dragging=dragging)

    @classmethod
    def working(cls, phase: Phase, candidate: FileCandidate, dragging: bool = False) -> "UploadSession":
        if not phase.in_flight:
            raise ValueError(f"{phase.value} is not an in-flight phase")
        return cls(phase=phase, candidate=candidate, progress=PHASE_PROGRESS[phase], dragging=dragging)

    @classmethod
    def failed(
        cls, candidate: FileCandidate | None, error: AnalysisError, dragging: bool = False
    ) -> "UploadSession":
        return cls(
            phase=Phase.FAILED,
            candidate=candidate,
            error=error,
            progress=PHASE_PROGRESS[Phase.FAILED],
            dragging=dragging,
        )

    @classmethod
    def succeeded(
        cls, candidate: FileCandidate, result: AnalysisResult, dragging: bool = False
    ) -> "UploadSession":
        return cls(
            phase=Phase.SUCCEEDED,
            candidate=candidate,
            result=result,
            progress=PHASE_PROGRESS[Phase.SUCCEEDED],
            dragging=dragging,
        )

    def with_dragging(self, dragging: bool) -> "UploadSession":
        return replace(self, dragging=dragging)

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "file": self.candidate.name if self.candidate else None,
            "progress": self.progress,
            "dragging": self.dragging,
            "error": self.error.to_dict() if self.error else None,
        }


class Connection(str, Enum):
    UNKNOWN = "unknown"
    CONNECTED = "connected"
    UNREACHABLE = "unreachable"


class AIStatus(str, Enum):
    UNKNOWN = "unknown"
    ENABLED = "enabled"
    DISABLED = "disabled"


@dataclass(frozen=True)
class ServiceStatus:
    """Liveness and AI availability of the analysis service, rebuilt on every probe."""

    connection: Connection = Connection.UNKNOWN
    ai: AIStatus = AIStatus.UNKNOWN
    reason: str | None = None
    checked_at: Timestamp | None = None

    @property
    def reachable(self) -> bool:
        return self.connection is Connection.CONNECTED

    def to_dict(self) -> dict[str, Any]:
        return {
            "connection": self.connection.value,
            "ai": self.ai.value,
            "reason": self.reason,
            "checked_at": self.checked_at.iso() if self.checked_at else None,
        }
