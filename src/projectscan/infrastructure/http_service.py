"""Infrastructure: analysis service client over httpx.

One ``httpx.AsyncClient`` serves both endpoints. The analyze call has no
timeout (large archives take a while); the health probe is bounded by the
caller's cancellation timer instead of an httpx timeout.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx

from projectscan.application.ports import AnalysisService, HealthProbe, ServiceReply
from projectscan.domain.entities import FileCandidate
from projectscan.domain.errors import ServiceUnreachable, UnreadableReply
from projectscan.domain.value_objects import Url
from projectscan.infrastructure.config import redact_secrets

ANALYZE_PATH = "/api/analyze"
HEALTH_PATH = "/api/health"
ARCHIVE_MIME = "application/zip"


async def _send(client: httpx.AsyncClient, request: httpx.Request) -> httpx.Response:
    try:
        return await client.send(request)
    except httpx.DecodingError as exc:
        raise UnreadableReply(str(exc) or exc.__class__.__name__) from exc
    except httpx.RequestError as exc:
        # Transport errors and redirect loops: no usable response was obtained.
        raise ServiceUnreachable(str(exc) or exc.__class__.__name__) from exc


def _reply(response: httpx.Response) -> ServiceReply:
    return ServiceReply(
        status_code=response.status_code,
        text=response.text,
        reason_phrase=response.reason_phrase,
    )


class HttpAnalysisService(AnalysisService, HealthProbe):
    """Talks to ``{base_url}/api/analyze`` and ``{base_url}/api/health``."""

    def __init__(
        self,
        base_url: Url,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        user_agent: str = "projectscan/0.1",
    ) -> None:
        self._base = base_url
        self._transport = transport
        self._user_agent = user_agent
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HttpAnalysisService":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(None),
                headers={"User-Agent": self._user_agent, "Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def describe(self) -> str:
        return redact_secrets(str(self._base))

    # ------------------------------------------------------------------
    # Port implementation
    # ------------------------------------------------------------------
    async def analyze(
        self,
        candidate: FileCandidate,
        *,
        on_dispatched: Callable[[], None] | None = None,
    ) -> ServiceReply:
        client = self._ensure_client()
        with open(candidate.path, "rb") as archive:
            request = client.build_request(
                "POST",
                self._base.join(ANALYZE_PATH),
                files={"file": (candidate.name, archive, ARCHIVE_MIME)},
            )
            if on_dispatched is not None:
                on_dispatched()
            response = await _send(client, request)
        return _reply(response)

    async def check(self) -> ServiceReply:
        client = self._ensure_client()
        response = await _send(client, client.build_request("GET", self._base.join(HEALTH_PATH)))
        return _reply(response)
