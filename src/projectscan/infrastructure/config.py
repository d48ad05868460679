"""Configuration loader – reads .env and environment variables with secret redaction."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from projectscan.domain.value_objects import ByteSize, Url

DEFAULT_BACKEND_URL = "http://localhost:5000"

# Patterns that should NEVER be printed/logged
_SECRET_PATTERNS = [
    re.compile(r"(://[^/\s:@]+:)[^/\s@]+(@)"),
    re.compile(r"((?:token|api_key|apikey|access_token)=)[^&\s]+", re.IGNORECASE),
    re.compile(r"(Authorization:\s*Bearer\s+)\S+", re.IGNORECASE),
]


def redact_secrets(text: str) -> str:
    """Mask credentials embedded in URLs, query strings and headers."""
    result = text
    for pat in _SECRET_PATTERNS:
        result = pat.sub(
            lambda m: m.group(1) + "***REDACTED***" + (m.group(2) if m.re.groups > 1 else ""),
            result,
        )
    return result


@dataclass(frozen=True)
class Settings:
    backend_url: Url
    max_upload: ByteSize
    health_timeout: float
    poll_interval: float


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def load_config(env_path: str | None = None) -> Settings:
    """Load configuration from .env file and environment variables."""
    if env_path:
        load_dotenv(env_path)
    else:
        # Walk up to find .env
        cwd = Path.cwd()
        for d in [cwd, *cwd.parents]:
            candidate = d / ".env"
            if candidate.exists():
                load_dotenv(candidate)
                break

    return Settings(
        backend_url=Url(os.environ.get("BACKEND_URL") or DEFAULT_BACKEND_URL),
        max_upload=ByteSize.from_megabytes(_float_env("MAX_UPLOAD_MB", 400)),
        health_timeout=_float_env("HEALTH_TIMEOUT_SECONDS", 5.0),
        poll_interval=_float_env("HEALTH_POLL_INTERVAL_SECONDS", 10.0),
    )
