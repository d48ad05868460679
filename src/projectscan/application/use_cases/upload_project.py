"""Use-case: UploadProject – the upload/analysis state machine.

IDLE -> VALIDATING -> SUBMITTING -> AWAITING_RESPONSE -> SUCCEEDED | FAILED

SUCCEEDED and FAILED hold until ``reset()`` / ``dismiss()``. ``submit`` is only
honoured from IDLE, so at most one analyze request is ever in flight. The
drag flag is tracked alongside and never changes the phase.
"""

from __future__ import annotations

import asyncio
from typing import Callable

from projectscan.application.ports import AnalysisService, Logger
from projectscan.application.use_cases.classify_error import ClassifyError, decode_body
from projectscan.application.use_cases.normalize_result import normalize
from projectscan.application.use_cases.validate_input import Rejected, ValidateInput
from projectscan.domain.entities import FileCandidate
from projectscan.domain.errors import (
    AnalysisError,
    ServiceUnreachable,
    UnreadableReply,
    ValidationError,
)
from projectscan.domain.upload_state import Phase, UploadSession

Listener = Callable[[UploadSession], None]


class UploadProject:
    """Drive one archive at a time through validation, upload and normalization."""

    def __init__(
        self,
        service: AnalysisService,
        logger: Logger,
        validator: ValidateInput | None = None,
        classifier: ClassifyError | None = None,
    ) -> None:
        self._service = service
        self._log = logger
        self._validator = validator or ValidateInput()
        self._classifier = classifier or ClassifyError(service.describe())
        self._session = UploadSession.idle()
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------
    @property
    def session(self) -> UploadSession:
        return self._session

    @property
    def phase(self) -> Phase:
        return self._session.phase

    @property
    def can_submit(self) -> bool:
        """False while the submit control must be disabled."""
        return self._session.phase is Phase.IDLE

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with every new session; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Drag feedback
    # ------------------------------------------------------------------
    def drag_enter(self) -> None:
        self._set(self._session.with_dragging(True))

    def drag_leave(self) -> None:
        self._set(self._session.with_dragging(False))

    async def drop(self, candidates: list[FileCandidate]) -> bool:
        self.drag_leave()
        if not candidates:
            return False
        return await self.submit(candidates[0])

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    async def submit(self, candidate: FileCandidate) -> bool:
        """Start an analysis attempt. Returns False when the call is ignored."""
        if not self.can_submit:
            self._log.debug(
                "Ignoring submit: an attempt is already active",
                phase=self._session.phase.value,
                file=candidate.name,
            )
            return False

        self._enter(Phase.VALIDATING, candidate)
        verdict = self._validator.execute(candidate)
        if isinstance(verdict, Rejected):
            self._log.warn(f"Rejected {candidate.name}: {verdict.reason}")
            self._fail(candidate, self._classifier.from_rejection(verdict))
            return True

        self._enter(Phase.SUBMITTING, candidate)

        def dispatched() -> None:
            if self._session.phase is Phase.SUBMITTING:
                self._enter(Phase.AWAITING_RESPONSE, candidate)

        try:
            reply = await self._service.analyze(candidate, on_dispatched=dispatched)
        except ServiceUnreachable as exc:
            self._log.error(f"Analyze request failed: {exc}")
            self._fail(candidate, self._classifier.from_fault(exc))
            return True
        except OSError as exc:
            self._fail(
                candidate,
                ValidationError("file unreadable", "Could not read the selected file", str(exc)),
            )
            return True
        except UnreadableReply as exc:
            self._log.error(f"Analyze response could not be decoded: {exc}")
            self._fail(candidate, self._classifier.from_undecodable(exc))
            return True
        except asyncio.CancelledError:
            self._log.warn(f"Analysis of {candidate.name} cancelled")
            self._set(UploadSession.idle(self._session.dragging))
            raise
        except Exception as exc:
            self._log.error(f"Analyze request failed unexpectedly: {exc.__class__.__name__}: {exc}")
            self._fail(candidate, self._classifier.from_fault(exc))
            return True

        if not reply.ok:
            self._log.error(f"Analyze returned HTTP {reply.status_code}")
            self._fail(candidate, self._classifier.from_reply(reply))
            return True

        parsed, payload = decode_body(reply.text)
        if not parsed:
            self._fail(candidate, self._classifier.from_unreadable_success(reply))
            return True

        try:
            result = normalize(payload)
        except Exception as exc:
            self._log.error(f"Analysis result could not be normalized: {exc.__class__.__name__}")
            self._fail(candidate, self._classifier.from_undecodable(exc))
            return True
        self._log.info(
            f"Analysis complete: score={result.health_score}, issues={result.total_issues}"
        )
        self._set(UploadSession.succeeded(candidate, result, self._session.dragging))
        return True

    def dismiss(self) -> bool:
        """FAILED -> IDLE, clearing the error."""
        if self._session.phase is not Phase.FAILED:
            return False
        self._set(UploadSession.idle(self._session.dragging))
        return True

    def reset(self) -> bool:
        """SUCCEEDED -> IDLE, discarding the held result."""
        if self._session.phase is not Phase.SUCCEEDED:
            return False
        self._set(UploadSession.idle(self._session.dragging))
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _enter(self, phase: Phase, candidate: FileCandidate) -> None:
        self._set(UploadSession.working(phase, candidate, self._session.dragging))

    def _fail(self, candidate: FileCandidate, error: AnalysisError) -> None:
        self._set(UploadSession.failed(candidate, error, self._session.dragging))

    def _set(self, session: UploadSession) -> None:
        if session == self._session:
            return
        if session.phase is not self._session.phase:
            self._log.debug(f"Upload phase: {self._session.phase.value} -> {session.phase.value}")
        self._session = session
        for listener in list(self._listeners):
            listener(session)
