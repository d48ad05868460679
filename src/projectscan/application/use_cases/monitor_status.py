"""Use-case: MonitorStatus – poll service liveness and AI availability.

Probes once on start, then re-probes every ``interval`` seconds for as long
as the last probe failed. Each probe is bounded by ``timeout``; on expiry the
in-flight request is cancelled and counted as a failure. Failures only
downgrade the status, they are never raised to the caller.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from projectscan.application.ports import Clock, HealthProbe, Logger
from projectscan.application.use_cases.classify_error import decode_body
from projectscan.domain.errors import ServiceUnreachable, UnreadableReply
from projectscan.domain.upload_state import AIStatus, Connection, ServiceStatus

DEFAULT_TIMEOUT = 5.0
DEFAULT_INTERVAL = 10.0

TIMEOUT_REASON = "Request timeout - backend is not responding"
NETWORK_REASON = "Network error - backend may not be running"
UNREADABLE_REASON = "Health endpoint returned an unreadable response"

StatusListener = Callable[[ServiceStatus], None]


def ai_status_from(payload: Any) -> AIStatus:
    """Read the AI facet from either the nested ``llm`` block or the flat flags."""
    if not isinstance(payload, dict):
        return AIStatus.DISABLED
    llm = payload.get("llm") if isinstance(payload.get("llm"), dict) else {}
    available = llm.get("available") is True or payload.get("llm_available") is True
    working = llm.get("model_working") is True or payload.get("llm_model_available") is True
    return AIStatus.ENABLED if available and working else AIStatus.DISABLED


class MonitorStatus:
    """Lifecycle object owning the polling task."""

    def __init__(
        self,
        probe: HealthProbe,
        clock: Clock,
        logger: Logger,
        *,
        interval: float = DEFAULT_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._probe = probe
        self._clock = clock
        self._log = logger
        self._interval = interval
        self._timeout = timeout
        self._status = ServiceStatus()
        self._task: asyncio.Task[None] | None = None
        self._listeners: list[StatusListener] = []

    @property
    def status(self) -> ServiceStatus:
        return self._status

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Schedule the polling loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Cancel the polling loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> "MonitorStatus":
        self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.stop()

    async def retry(self) -> ServiceStatus:
        """Probe right away, regardless of the schedule."""
        return await self.probe_once()

    # ------------------------------------------------------------------
    # Probing
    # ------------------------------------------------------------------
    async def probe_once(self) -> ServiceStatus:
        try:
            reply = await asyncio.wait_for(self._probe.check(), timeout=self._timeout)
        except asyncio.TimeoutError:
            return self._fail(TIMEOUT_REASON)
        except ServiceUnreachable as exc:
            self._log.debug(f"Health probe transport error: {exc}")
            return self._fail(NETWORK_REASON)
        except UnreadableReply:
            return self._fail(UNREADABLE_REASON)
        except Exception as exc:
            return self._fail(str(exc) or exc.__class__.__name__)

        if not reply.ok:
            return self._fail(f"HTTP {reply.status_code}: {reply.reason_phrase}".rstrip(": "))

        parsed, payload = decode_body(reply.text)
        if not parsed:
            return self._fail(UNREADABLE_REASON)

        status = ServiceStatus(
            connection=Connection.CONNECTED,
            ai=ai_status_from(payload),
            checked_at=self._clock.now(),
        )
        if not self._status.reachable:
            self._log.info(f"Analysis service connected (AI {status.ai.value})")
        return self._update(status)

    async def _run(self) -> None:
        await self._tick()
        while True:
            await asyncio.sleep(self._interval)
            if not self._status.reachable:
                await self._tick()

    async def _tick(self) -> None:
        # A failing probe or listener must not end the polling loop.
        try:
            await self.probe_once()
        except Exception as exc:
            self._log.error(f"Health probe crashed: {exc.__class__.__name__}: {exc}")

    def _fail(self, reason: str) -> ServiceStatus:
        self._log.warn(f"Analysis service unreachable: {reason}")
        # The AI facet is unknown while the service itself cannot be reached.
        return self._update(
            ServiceStatus(
                connection=Connection.UNREACHABLE,
                ai=AIStatus.UNKNOWN,
                reason=reason,
                checked_at=self._clock.now(),
            )
        )

    def _update(self, status: ServiceStatus) -> ServiceStatus:
        self._status = status
        for listener in list(self._listeners):
            listener(status)
        return status
