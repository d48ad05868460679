"""Infrastructure: Wall-clock implementation."""

from __future__ import annotations

from projectscan.application.ports import Clock as ClockPort
from projectscan.domain.value_objects import Timestamp


class WallClock(ClockPort):
    """Real wall-clock time, used to stamp health probes."""

    def now(self) -> Timestamp:
        return Timestamp.now()
