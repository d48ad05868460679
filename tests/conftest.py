"""Shared test fixtures and fakes for projectscan tests."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from projectscan.application.ports import (
    AnalysisService,
    Clock,
    HealthProbe,
    Logger,
    ServiceReply,
)
from projectscan.domain.entities import FileCandidate
from projectscan.domain.errors import ServiceUnreachable
from projectscan.domain.value_objects import Timestamp

MB = 1024 * 1024


# ---------------------------------------------------------------------------
# Sample responses (several historical shapes of the analyze endpoint)
# ---------------------------------------------------------------------------
LEGACY_RESPONSE: dict[str, Any] = {
    "health_score": 62,
    "issues": [
        {
            "title": "Missing lockfile",
            "description": "package.json has no matching package-lock.json",
            "severity": "high",
            "file": "package.json",
            "solution": "Run npm install to generate a lockfile.",
            "commands": ["npm install"],
        },
        {
            "title": "Unpinned dependency",
            "description": "react is declared as *",
            "severity": "medium",
            "file": "project-root",
            "fix": "Pin react to a version range.",
        },
        {
            "title": "Console statements",
            "description": "console.log left in production code",
            "severity": "low",
            "file": "src/App.jsx",
        },
    ],
    "project_stats": {"total_files": 41, "package_files": 1, "config_files": 3},
    "timestamp": "2026-03-01T12:30:00Z",
}

AI_RESPONSE: dict[str, Any] = {
    "health_score": 88,
    "llm_enhanced": True,
    "llm_available": True,
    "summary": {"priority_breakdown": {"1": 0, "2": 5, "3": 1}},
    "issues": [
        {
            "title": "Outdated Vite config",
            "description": "vite.config.js uses a removed option",
            "priority": 2,
            "severity": "low",
            "llm_enhanced": True,
            "root_cause": "The project was generated with Vite 2.",
            "detailed_solution": "Replace `server.force` with `optimizeDeps.force`.",
            "solution": "Update the Vite config.",
            "prevention": "Run npm outdated regularly.",
            "commands": ["npm install vite@latest", 42, ""],
        }
    ],
    "project_stats": {
        "total_files": 120,
        "skipped_files": 4,
        "tech_stack": ["react", "vite"],
        "security_warnings": [
            {"type": "skipped_files", "message": "Some files were skipped", "files": ["a.exe", "b.sh"]}
        ],
    },
    "performance": {"analysis_time": 3.25, "files_processed": 118, "early_termination": False},
}


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------
class RecordingLogger(Logger):
    """Logger that keeps every line in memory."""

    def __init__(self) -> None:
        self.lines: list[tuple[str, str]] = []

    def info(self, msg: str, **kw: Any) -> None:
        self.lines.append(("INFO", msg))

    def warn(self, msg: str, **kw: Any) -> None:
        self.lines.append(("WARN", msg))

    def error(self, msg: str, **kw: Any) -> None:
        self.lines.append(("ERROR", msg))

    def debug(self, msg: str, **kw: Any) -> None:
        self.lines.append(("DEBUG", msg))


class FixedClock(Clock):
    def __init__(self) -> None:
        self.value = Timestamp(datetime(2026, 1, 1, tzinfo=timezone.utc))

    def now(self) -> Timestamp:
        return self.value


class FakeAnalysisService(AnalysisService):
    """Analysis service double.

    Returns *reply* (or raises *fault*). When *gate* is set, the call blocks
    until the event is released so tests can observe in-flight states.
    """

    def __init__(
        self,
        reply: ServiceReply | None = None,
        fault: BaseException | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.reply = reply or ServiceReply(200, json.dumps(LEGACY_RESPONSE))
        self.fault = fault
        self.gate = gate
        self.calls: list[FileCandidate] = []

    def describe(self) -> str:
        return "http://analysis.test"

    async def analyze(
        self,
        candidate: FileCandidate,
        *,
        on_dispatched: Callable[[], None] | None = None,
    ) -> ServiceReply:
        self.calls.append(candidate)
        if on_dispatched is not None:
            on_dispatched()
        if self.gate is not None:
            await self.gate.wait()
        if self.fault is not None:
            raise self.fault
        return self.reply


class FakeHealthProbe(HealthProbe):
    """Health probe double that replays a script of outcomes.

    Each entry is a ``ServiceReply``, an exception to raise, or a float
    number of seconds to hang before answering 200. The last entry repeats.
    """

    def __init__(self, *script: Any) -> None:
        self.script = list(script) or [ServiceReply(200, "{}")]
        self.calls = 0
        self.cancelled = 0

    async def check(self) -> ServiceReply:
        step = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1
        if isinstance(step, BaseException):
            raise step
        if isinstance(step, float):
            try:
                await asyncio.sleep(step)
            except asyncio.CancelledError:
                self.cancelled += 1
                raise
            return ServiceReply(200, "{}")
        return step


def healthy(**payload: Any) -> ServiceReply:
    return ServiceReply(200, json.dumps(payload), "OK")


def unreachable(text: str = "All connection attempts failed") -> ServiceUnreachable:
    return ServiceUnreachable(text)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def zip_candidate():
    return FileCandidate(name="project.zip", byte_size=2 * MB, path="/tmp/project.zip")


@pytest.fixture
def zip_file(tmp_path):
    """A small real archive on disk."""
    path = tmp_path / "project.zip"
    path.write_bytes(b"PK\x03\x04" + b"\x00" * 60)
    return path
