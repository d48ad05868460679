"""Tests for the upload/analysis state machine."""

from __future__ import annotations

import asyncio
import json

import pytest

from projectscan.application.ports import ServiceReply
from projectscan.application.use_cases.upload_project import UploadProject
from projectscan.application.use_cases.validate_input import ValidateInput
from projectscan.domain.entities import FileCandidate
from projectscan.domain.errors import (
    MalformedResponse,
    ServerRejection,
    TransportFailure,
    UnreadableReply,
    ValidationError,
)
from projectscan.domain.upload_state import Phase, UploadSession
from projectscan.domain.value_objects import ByteSize

from conftest import AI_RESPONSE, FakeAnalysisService, unreachable


def _make_uc(logger, **service_kw):
    service = FakeAnalysisService(**service_kw)
    return UploadProject(service, logger), service


async def _until(predicate, attempts: int = 50) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


class TestValidationPath:
    @pytest.mark.asyncio
    async def test_non_zip_fails_without_network(self, logger):
        uc, service = _make_uc(logger)
        started = await uc.submit(FileCandidate(name="project.rar", byte_size=10))

        assert started is True
        assert uc.phase is Phase.FAILED
        assert isinstance(uc.session.error, ValidationError)
        assert uc.session.error.message.startswith("Please upload a ZIP file")
        assert service.calls == []

    @pytest.mark.asyncio
    async def test_oversize_uses_configured_ceiling(self, logger):
        service = FakeAnalysisService()
        uc = UploadProject(service, logger, validator=ValidateInput(ByteSize.from_megabytes(1)))
        await uc.submit(FileCandidate(name="big.zip", byte_size=ByteSize.from_megabytes(1).value + 1))

        assert uc.session.error.reason == "file too large"
        assert service.calls == []

    @pytest.mark.asyncio
    async def test_dismiss_returns_to_idle(self, logger):
        uc, _ = _make_uc(logger)
        await uc.submit(FileCandidate(name="empty.zip", byte_size=0))
        assert uc.phase is Phase.FAILED

        assert uc.dismiss() is True
        assert uc.session == UploadSession.idle()
        assert uc.dismiss() is False


class TestSuccessPath:
    @pytest.mark.asyncio
    async def test_phases_in_order(self, logger, zip_candidate):
        uc, service = _make_uc(logger)
        seen: list[Phase] = []
        uc.subscribe(lambda s: seen.append(s.phase))

        await uc.submit(zip_candidate)

        assert seen == [
            Phase.VALIDATING,
            Phase.SUBMITTING,
            Phase.AWAITING_RESPONSE,
            Phase.SUCCEEDED,
        ]
        assert service.calls == [zip_candidate]
        assert uc.session.progress == 100
        assert uc.session.error is None
        assert uc.session.result.health_score == 62

    @pytest.mark.asyncio
    async def test_result_is_normalized(self, logger, zip_candidate):
        uc, _ = _make_uc(logger, reply=ServiceReply(200, json.dumps(AI_RESPONSE)))
        await uc.submit(zip_candidate)
        assert uc.session.result.ai_enhanced is True
        assert uc.session.result.priority_breakdown.major == 5

    @pytest.mark.asyncio
    async def test_empty_object_succeeds_with_defaults(self, logger, zip_candidate):
        uc, _ = _make_uc(logger, reply=ServiceReply(200, "{}"))
        await uc.submit(zip_candidate)
        assert uc.phase is Phase.SUCCEEDED
        assert uc.session.result.health_score == 0

    @pytest.mark.asyncio
    async def test_terminal_until_reset(self, logger, zip_candidate):
        uc, service = _make_uc(logger)
        await uc.submit(zip_candidate)

        assert await uc.submit(zip_candidate) is False
        assert len(service.calls) == 1
        assert uc.dismiss() is False

        assert uc.reset() is True
        assert uc.phase is Phase.IDLE
        assert uc.session.result is None
        assert await uc.submit(zip_candidate) is True
        assert len(service.calls) == 2


class TestFailurePath:
    @pytest.mark.asyncio
    async def test_server_rejection(self, logger, zip_candidate):
        body = json.dumps({"error": "Invalid archive", "details": "Central directory missing"})
        uc, _ = _make_uc(logger, reply=ServiceReply(422, body))
        await uc.submit(zip_candidate)

        assert uc.phase is Phase.FAILED
        assert isinstance(uc.session.error, ServerRejection)
        assert uc.session.error.detail == "Central directory missing"
        assert uc.session.result is None

    @pytest.mark.asyncio
    async def test_malformed_success_body(self, logger, zip_candidate):
        uc, _ = _make_uc(logger, reply=ServiceReply(200, "<html>"))
        await uc.submit(zip_candidate)
        assert isinstance(uc.session.error, MalformedResponse)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["Failed to fetch", "NetworkError", "[Errno 111] Connection refused"])
    async def test_transport_failure_message_is_fixed(self, logger, zip_candidate, text):
        uc, _ = _make_uc(logger, fault=unreachable(text))
        await uc.submit(zip_candidate)

        error = uc.session.error
        assert isinstance(error, TransportFailure)
        assert error.message == "Cannot connect to the analysis server"
        assert text not in error.detail
        assert ("ERROR", f"Analyze request failed: {text}") in logger.lines

    @pytest.mark.asyncio
    async def test_unreadable_file(self, logger):
        uc, _ = _make_uc(logger, fault=FileNotFoundError("gone"))
        await uc.submit(FileCandidate(name="gone.zip", byte_size=5, path="/nope/gone.zip"))
        assert uc.session.error.reason == "file unreadable"

    @pytest.mark.asyncio
    async def test_unexpected_service_error_ends_the_attempt(self, logger, zip_candidate):
        uc, service = _make_uc(logger, fault=RuntimeError("boom"))
        assert await uc.submit(zip_candidate) is True

        assert uc.phase is Phase.FAILED
        assert isinstance(uc.session.error, TransportFailure)
        assert ("ERROR", "Analyze request failed unexpectedly: RuntimeError: boom") in logger.lines

        assert uc.dismiss() is True
        assert await uc.submit(zip_candidate) is True
        assert len(service.calls) == 2

    @pytest.mark.asyncio
    async def test_undecodable_reply(self, logger, zip_candidate):
        uc, _ = _make_uc(logger, fault=UnreadableReply("Error -3 while decompressing data"))
        await uc.submit(zip_candidate)

        assert uc.phase is Phase.FAILED
        assert isinstance(uc.session.error, MalformedResponse)
        assert uc.can_submit is False
        assert uc.dismiss() is True
        assert uc.can_submit is True

    @pytest.mark.asyncio
    async def test_deeply_nested_success_body(self, logger, zip_candidate):
        body = "[" * 100_000 + "]" * 100_000
        uc, _ = _make_uc(logger, reply=ServiceReply(200, body))
        await uc.submit(zip_candidate)

        assert uc.phase is Phase.FAILED
        assert isinstance(uc.session.error, MalformedResponse)


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_second_submit_is_ignored_while_in_flight(self, logger, zip_candidate):
        gate = asyncio.Event()
        uc, service = _make_uc(logger, gate=gate)

        first = asyncio.create_task(uc.submit(zip_candidate))
        await _until(lambda: uc.phase is Phase.AWAITING_RESPONSE)
        assert uc.can_submit is False

        other = FileCandidate(name="other.zip", byte_size=10)
        assert await uc.submit(other) is False
        assert uc.phase is Phase.AWAITING_RESPONSE
        assert service.calls == [zip_candidate]

        gate.set()
        assert await first is True
        assert uc.phase is Phase.SUCCEEDED
        assert uc.session.candidate == zip_candidate

    @pytest.mark.asyncio
    async def test_cancel_returns_to_idle(self, logger, zip_candidate):
        uc, _ = _make_uc(logger, gate=asyncio.Event())
        task = asyncio.create_task(uc.submit(zip_candidate))
        await _until(lambda: uc.phase is Phase.AWAITING_RESPONSE)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert uc.phase is Phase.IDLE


class TestDragging:
    @pytest.mark.asyncio
    async def test_drag_flag_is_orthogonal(self, logger, zip_candidate):
        uc, _ = _make_uc(logger)
        uc.drag_enter()
        assert uc.session.dragging is True
        assert uc.phase is Phase.IDLE

        assert await uc.drop([zip_candidate, FileCandidate(name="b.zip", byte_size=1)]) is True
        assert uc.session.dragging is False
        assert uc.phase is Phase.SUCCEEDED

    @pytest.mark.asyncio
    async def test_empty_drop(self, logger):
        uc, service = _make_uc(logger)
        uc.drag_enter()
        assert await uc.drop([]) is False
        assert uc.session.dragging is False
        assert service.calls == []

    def test_unsubscribe(self, logger):
        uc, _ = _make_uc(logger)
        seen = []
        unsubscribe = uc.subscribe(seen.append)
        uc.drag_enter()
        unsubscribe()
        uc.drag_leave()
        assert len(seen) == 1

    def test_unsubscribe_twice_is_harmless(self, logger):
        uc, _ = _make_uc(logger)
        unsubscribe = uc.subscribe(lambda s: None)
        unsubscribe()
        unsubscribe()
        uc.drag_enter()
        assert uc.session.dragging is True
