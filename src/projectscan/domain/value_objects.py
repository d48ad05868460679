"""Domain value objects – small immutable types with validation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

_SIZE_UNITS = ("B", "KB", "MB", "GB")
_KIB = 1024


@dataclass(frozen=True)
class Url:
    """Validated base URL of the analysis service."""

    value: str

    def __post_init__(self) -> None:
        if not self.value.startswith(("http://", "https://")):
            raise ValueError(f"Invalid URL: {self.value!r}")

    def join(self, path: str) -> str:
        return f"{self.value.rstrip('/')}/{path.lstrip('/')}"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Timestamp:
    """UTC timestamp value object."""

    dt: datetime

    @classmethod
    def now(cls) -> "Timestamp":
        return cls(dt=datetime.now(timezone.utc))

    @classmethod
    def from_iso(cls, iso: str) -> "Timestamp":
        text = iso.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return cls(dt=dt)

    @classmethod
    def from_epoch(cls, seconds: float) -> "Timestamp":
        return cls(dt=datetime.fromtimestamp(seconds, tz=timezone.utc))

    def iso(self) -> str:
        return self.dt.isoformat()

    def __str__(self) -> str:
        return self.iso()


@dataclass(frozen=True)
class ByteSize:
    """A byte count with human-readable renderings."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"Negative byte size: {self.value}")

    @classmethod
    def from_megabytes(cls, mb: float) -> "ByteSize":
        return cls(value=int(mb * _KIB * _KIB))

    @property
    def megabytes(self) -> float:
        return self.value / (_KIB * _KIB)

    def human(self) -> str:
        """Binary-prefix rendering, e.g. ``1.5 KB`` or ``400 MB``."""
        if self.value == 0:
            return "0 B"
        size = float(self.value)
        unit = 0
        while size >= _KIB and unit < len(_SIZE_UNITS) - 1:
            size /= _KIB
            unit += 1
        text = f"{size:.2f}".rstrip("0").rstrip(".")
        return f"{text} {_SIZE_UNITS[unit]}"

    def as_mb(self) -> str:
        """One-decimal megabytes, e.g. ``400.0MB``."""
        return f"{self.megabytes:.1f}MB"

    def __str__(self) -> str:
        return self.human()
