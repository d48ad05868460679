"""Domain entities – the canonical analysis report, pure data, no IO."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

from projectscan.domain.value_objects import ByteSize, Timestamp

NO_SPECIFIC_FILE = "project-root"
NO_SOLUTION = "No solution provided."


class SeverityRank(IntEnum):
    """Three-level issue ranking; lower value is more urgent."""

    CRITICAL = 1
    MAJOR = 2
    MINOR = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


class HealthBand(str, Enum):
    """Presentation bucket for a 0-100 health score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_ATTENTION = "needs_attention"
    CRITICAL = "critical"

    @classmethod
    def for_score(cls, score: int) -> "HealthBand":
        if score >= 80:
            return cls.EXCELLENT
        if score >= 60:
            return cls.GOOD
        if score >= 40:
            return cls.NEEDS_ATTENTION
        return cls.CRITICAL

    @property
    def message(self) -> str:
        return {
            HealthBand.EXCELLENT: "Excellent! Your project is in great shape.",
            HealthBand.GOOD: "Good! Some improvements can be made.",
            HealthBand.NEEDS_ATTENTION: "Needs attention. Review the issues below.",
            HealthBand.CRITICAL: "Requires immediate fixes. Critical issues found.",
        }[self]

    @property
    def color(self) -> str:
        # Needs-attention shares red with critical.
        return {
            HealthBand.EXCELLENT: "green",
            HealthBand.GOOD: "yellow",
        }.get(self, "red")


@dataclass(frozen=True)
class FileCandidate:
    """A file offered for upload. Only name and size are used for validation."""

    name: str
    byte_size: int
    path: str = ""

    @property
    def size(self) -> ByteSize:
        return ByteSize(max(self.byte_size, 0))


@dataclass(frozen=True)
class Issue:
    """A single problem reported by the analysis service."""

    title: str = ""
    description: str = ""
    severity: SeverityRank = SeverityRank.MAJOR
    location: str | None = None
    solution_text: str = NO_SOLUTION
    is_ai_enhanced: bool = False
    root_cause: str | None = None
    prevention_tips: str | None = None
    commands: tuple[str, ...] = ()

    @property
    def solution_heading(self) -> str:
        return "Detailed Solution" if self.is_ai_enhanced else "Solution"

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "severity": self.severity.label,
            "priority": int(self.severity),
            "location": self.location,
            "solution": self.solution_text,
            "ai_enhanced": self.is_ai_enhanced,
            "root_cause": self.root_cause,
            "prevention": self.prevention_tips,
            "commands": list(self.commands),
        }


@dataclass(frozen=True)
class SecurityWarning:
    """A notice about files the service refused to inspect."""

    type: str = ""
    message: str = ""
    files: tuple[str, ...] = ()

    @property
    def title(self) -> str:
        return "Skipped Files" if self.type == "skipped_files" else self.type

    def hidden_file_count(self, skipped_files: int) -> int:
        """How many skipped files are not listed in ``files``."""
        return max(skipped_files - len(self.files), 0) if self.files else 0

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "message": self.message, "files": list(self.files)}


@dataclass(frozen=True)
class ProjectStats:
    total_files: int = 0
    package_files: int = 0
    config_files: int = 0
    skipped_files: int = 0
    total_size_bytes: int = 0
    extracted_size_bytes: int = 0
    tech_stack: tuple[str, ...] = ()
    security_warnings: tuple[SecurityWarning, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_files": self.total_files,
            "package_files": self.package_files,
            "config_files": self.config_files,
            "skipped_files": self.skipped_files,
            "total_size_bytes": self.total_size_bytes,
            "extracted_size_bytes": self.extracted_size_bytes,
            "tech_stack": list(self.tech_stack),
            "security_warnings": [w.to_dict() for w in self.security_warnings],
        }


@dataclass(frozen=True)
class PerformanceMetrics:
    duration_seconds: float | None = None
    files_processed: int | None = None
    early_termination: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration_seconds": self.duration_seconds,
            "files_processed": self.files_processed,
            "early_termination": self.early_termination,
        }


@dataclass(frozen=True)
class PriorityBreakdown:
    critical: int = 0
    major: int = 0
    minor: int = 0

    @classmethod
    def count(cls, issues: tuple[Issue, ...] | list[Issue]) -> "PriorityBreakdown":
        ranks = [i.severity for i in issues]
        return cls(
            critical=ranks.count(SeverityRank.CRITICAL),
            major=ranks.count(SeverityRank.MAJOR),
            minor=ranks.count(SeverityRank.MINOR),
        )

    def get(self, rank: SeverityRank) -> int:
        return {
            SeverityRank.CRITICAL: self.critical,
            SeverityRank.MAJOR: self.major,
            SeverityRank.MINOR: self.minor,
        }[rank]

    def to_dict(self) -> dict[str, int]:
        return {"Critical": self.critical, "Major": self.major, "Minor": self.minor}


@dataclass(frozen=True)
class AnalysisResult:
    """Canonical analysis report, independent of the response schema variant."""

    health_score: int = 0
    issues: tuple[Issue, ...] = ()
    priority_breakdown: PriorityBreakdown = field(default_factory=PriorityBreakdown)
    project_stats: ProjectStats = field(default_factory=ProjectStats)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    ai_enhanced: bool = False
    ai_available: bool = False
    timestamp: Timestamp | None = None

    @property
    def health_band(self) -> HealthBand:
        return HealthBand.for_score(self.health_score)

    @property
    def total_issues(self) -> int:
        return len(self.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "health_score": self.health_score,
            "health_band": self.health_band.value,
            "issues": [i.to_dict() for i in self.issues],
            "priority_breakdown": self.priority_breakdown.to_dict(),
            "project_stats": self.project_stats.to_dict(),
            "performance": self.performance.to_dict(),
            "ai_enhanced": self.ai_enhanced,
            "ai_available": self.ai_available,
            "timestamp": self.timestamp.iso() if self.timestamp else None,
        }
