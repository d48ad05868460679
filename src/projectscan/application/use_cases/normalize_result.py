"""Use-case: NormalizeResult – map any analysis response onto the canonical model.

The analysis service has changed its response shape several times: fields
were renamed, severities were sent as numbers or as words, and most
containers became optional. Everything that reads a response goes through
``normalize`` so the rest of the client only ever sees ``AnalysisResult``.

Aliases are tried in a fixed order and the first present value wins. The
function is total over JSON values and performs no I/O.
"""

from __future__ import annotations

import math
from typing import Any

from projectscan.domain.entities import (
    NO_SOLUTION,
    NO_SPECIFIC_FILE,
    AnalysisResult,
    Issue,
    PerformanceMetrics,
    PriorityBreakdown,
    ProjectStats,
    SecurityWarning,
    SeverityRank,
)
from projectscan.domain.value_objects import Timestamp

_MB = 1024 * 1024

SEVERITY_WORDS: dict[str, SeverityRank] = {
    "high": SeverityRank.CRITICAL,
    "critical": SeverityRank.CRITICAL,
    "medium": SeverityRank.MAJOR,
    "major": SeverityRank.MAJOR,
    "low": SeverityRank.MINOR,
    "minor": SeverityRank.MINOR,
}

SOLUTION_KEYS = ("detailed_solution", "solution", "fix")

_BREAKDOWN_KEYS: dict[SeverityRank, tuple[Any, ...]] = {
    SeverityRank.CRITICAL: ("1", 1, "critical", "Critical"),
    SeverityRank.MAJOR: ("2", 2, "major", "Major"),
    SeverityRank.MINOR: ("3", 3, "minor", "Minor"),
}


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------
def _first(d: dict[Any, Any], *keys: Any) -> Any:
    for key in keys:
        if d.get(key) is not None:
            return d[key]
    return None


def _as_mapping(value: Any) -> dict[Any, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _as_count(value: Any) -> int:
    number = _as_number(value)
    return max(int(number), 0) if number is not None else 0


def _as_optional_count(value: Any) -> int | None:
    return None if _as_number(value) is None else _as_count(value)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def _as_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def _optional_text(value: Any) -> str | None:
    text = _as_text(value).strip()
    return text or None


# ---------------------------------------------------------------------------
# Field resolution
# ---------------------------------------------------------------------------
def _rank_from_number(value: Any) -> SeverityRank | None:
    number = _as_number(value)
    if number is None or not number.is_integer():
        return None
    try:
        return SeverityRank(int(number))
    except ValueError:
        return None


def resolve_severity(item: dict[str, Any]) -> SeverityRank:
    """Explicit numeric ``priority`` first, then ``severity``, else MAJOR."""
    rank = _rank_from_number(item.get("priority"))
    if rank is not None:
        return rank
    severity = item.get("severity")
    if isinstance(severity, str):
        rank = SEVERITY_WORDS.get(severity.strip().lower())
    else:
        rank = _rank_from_number(severity)
    return rank or SeverityRank.MAJOR


def resolve_solution(item: dict[str, Any]) -> str:
    for key in SOLUTION_KEYS:
        value = item.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return NO_SOLUTION


def _resolve_location(item: dict[str, Any]) -> str | None:
    location = _optional_text(_first(item, "file", "location", "path"))
    return None if location == NO_SPECIFIC_FILE else location


def _resolve_commands(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    return tuple(c for c in _as_list(value) if isinstance(c, str) and c.strip())


def normalize_issue(raw: Any) -> Issue:
    if isinstance(raw, str):
        raw = {"title": raw}
    item = _as_mapping(raw)
    enhanced = _as_bool(_first(item, "llm_enhanced", "ai_enhanced"))
    return Issue(
        title=_as_text(_first(item, "title", "name")),
        description=_as_text(_first(item, "description", "message")),
        severity=resolve_severity(item),
        location=_resolve_location(item),
        solution_text=resolve_solution(item),
        is_ai_enhanced=enhanced,
        root_cause=_optional_text(item.get("root_cause")) if enhanced else None,
        prevention_tips=_optional_text(_first(item, "prevention", "prevention_tips")) if enhanced else None,
        commands=_resolve_commands(item.get("commands")),
    )


def _supplied_breakdown(raw: dict[str, Any]) -> PriorityBreakdown | None:
    summary = _as_mapping(raw.get("summary"))
    for candidate in (summary.get("priority_breakdown"), raw.get("priority_breakdown")):
        if isinstance(candidate, dict):
            counts = {rank: _as_count(_first(candidate, *keys)) for rank, keys in _BREAKDOWN_KEYS.items()}
            return PriorityBreakdown(
                critical=counts[SeverityRank.CRITICAL],
                major=counts[SeverityRank.MAJOR],
                minor=counts[SeverityRank.MINOR],
            )
    return None


def _size_bytes(stats: dict[str, Any], byte_keys: tuple[str, ...], mb_key: str) -> int:
    value = _first(stats, *byte_keys)
    if value is not None:
        return _as_count(value)
    mb = _as_number(stats.get(mb_key))
    return max(int(mb * _MB), 0) if mb is not None else 0


def _tech_stack(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    if isinstance(value, dict):
        return tuple(str(k) for k, v in value.items() if v)
    return tuple(str(v) for v in _as_list(value) if isinstance(v, str) and v.strip())


def _security_warning(value: Any) -> SecurityWarning:
    if isinstance(value, str):
        return SecurityWarning(message=value)
    w = _as_mapping(value)
    files = tuple(str(f) for f in _as_list(w.get("files")) if f is not None)
    return SecurityWarning(type=_as_text(w.get("type")), message=_as_text(w.get("message")), files=files)


def normalize_stats(value: Any) -> ProjectStats:
    stats = _as_mapping(value)
    return ProjectStats(
        total_files=_as_count(stats.get("total_files")),
        package_files=_as_count(stats.get("package_files")),
        config_files=_as_count(stats.get("config_files")),
        skipped_files=_as_count(stats.get("skipped_files")),
        total_size_bytes=_size_bytes(stats, ("total_size_bytes", "total_size"), "total_size_mb"),
        extracted_size_bytes=_size_bytes(
            stats, ("extracted_size_bytes", "extracted_size"), "extracted_size_mb"
        ),
        tech_stack=_tech_stack(_first(stats, "tech_stack", "technologies", "frameworks")),
        security_warnings=tuple(_security_warning(w) for w in _as_list(stats.get("security_warnings"))),
    )


def normalize_performance(value: Any) -> PerformanceMetrics:
    perf = _as_mapping(value)
    early = _first(perf, "early_termination", "early_terminated", "terminated_early")
    return PerformanceMetrics(
        duration_seconds=_as_number(_first(perf, "duration_seconds", "analysis_time", "duration")),
        files_processed=_as_optional_count(_first(perf, "files_processed", "files_analyzed")),
        early_termination=None if early is None else _as_bool(early),
    )


def _timestamp(value: Any) -> Timestamp | None:
    try:
        if isinstance(value, str) and value.strip():
            return Timestamp.from_iso(value)
        number = _as_number(value) if not isinstance(value, str) else None
        if number is not None:
            # Millisecond epochs are common from JS-based backends.
            return Timestamp.from_epoch(number / 1000 if number > 1e11 else number)
    except (ValueError, OverflowError, OSError):
        return None
    return None


def _health_score(raw: dict[str, Any]) -> int:
    number = _as_number(_first(raw, "health_score", "healthScore"))
    if number is None:
        return 0
    return min(max(int(round(number)), 0), 100)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def normalize(raw: Any) -> AnalysisResult:
    """Build the canonical ``AnalysisResult`` from a decoded JSON payload."""
    payload = _as_mapping(raw)
    issues = tuple(normalize_issue(i) for i in _as_list(payload.get("issues")))

    breakdown = _supplied_breakdown(payload)
    if breakdown is None:
        breakdown = PriorityBreakdown.count(issues)

    enhanced_flag = _first(payload, "llm_enhanced", "ai_enhanced")
    if enhanced_flag is None:
        ai_enhanced = any(i.is_ai_enhanced for i in issues)
    else:
        ai_enhanced = _as_bool(enhanced_flag)

    return AnalysisResult(
        health_score=_health_score(payload),
        issues=issues,
        priority_breakdown=breakdown,
        project_stats=normalize_stats(_first(payload, "project_stats", "stats")),
        performance=normalize_performance(_first(payload, "performance", "performance_metrics")),
        ai_enhanced=ai_enhanced,
        ai_available=_as_bool(_first(payload, "llm_available", "ai_available")),
        timestamp=_timestamp(payload.get("timestamp")),
    )

