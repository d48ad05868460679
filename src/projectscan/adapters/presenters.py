"""Presenters – format use-case results for terminal or JSON output."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from projectscan.domain.entities import AnalysisResult, Issue, SeverityRank
from projectscan.domain.errors import AnalysisError
from projectscan.domain.upload_state import AIStatus, Connection, ServiceStatus
from projectscan.domain.value_objects import ByteSize

console = Console()

SEVERITY_STYLE: dict[SeverityRank, str] = {
    SeverityRank.CRITICAL: "red bold",
    SeverityRank.MAJOR: "yellow",
    SeverityRank.MINOR: "blue",
}


def _json_out(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _count_cell(count: int, style: str) -> str:
    return f"[green]{count}[/green]" if count == 0 else f"[{style}]{count}[/{style}]"


# ---------------------------------------------------------------------------
# Analysis result
# ---------------------------------------------------------------------------
def present_result(result: AnalysisResult, *, as_json: bool = False) -> None:
    if as_json:
        _json_out(result.to_dict())
        return

    band = result.health_band
    console.print("\n[bold]Analysis Results[/bold]")
    if result.ai_enhanced:
        console.print("[green]🧠 AI-Powered Analysis Enabled[/green]")
    console.print(
        f"\n[bold]Project Health Score:[/bold] [{band.color} bold]{result.health_score}[/] / 100"
    )
    console.print(f"  {band.message}\n")

    stats = result.project_stats
    summary = Table(show_lines=True)
    for column in ("Total Files", "Package Files", "Config Files", "Total Issues", "Critical", "Major", "Minor"):
        summary.add_column(column, justify="center")
    breakdown = result.priority_breakdown
    summary.add_row(
        str(stats.total_files),
        str(stats.package_files),
        str(stats.config_files),
        _count_cell(result.total_issues, "white"),
        _count_cell(breakdown.critical, "red"),
        _count_cell(breakdown.major, "yellow"),
        _count_cell(breakdown.minor, "blue"),
    )
    console.print(summary)

    if stats.tech_stack:
        console.print(f"[bold]Tech stack:[/bold] {escape(', '.join(stats.tech_stack))}")
    if stats.total_size_bytes:
        console.print(f"[bold]Archive size:[/bold] {ByteSize(stats.total_size_bytes).human()}")

    if stats.security_warnings:
        console.print("\n[yellow bold]Security Notice[/yellow bold]")
        for warning in stats.security_warnings:
            console.print(f"  [yellow]{escape(warning.title)}[/yellow]: {escape(warning.message)}")
            for name in warning.files:
                console.print(f"    [dim]{escape(name)}[/dim]  (potentially unsafe file type)")
            hidden = warning.hidden_file_count(stats.skipped_files)
            if hidden:
                console.print(f"    ... and {hidden} more files")

    if not result.issues:
        console.print("\n[green bold]🎉 No issues found![/green bold] Your project follows best practices.")
    else:
        noun = "issue" if result.total_issues == 1 else "issues"
        console.print(f"\n[bold]Detected Issues[/bold] ({result.total_issues} {noun} found)")
        for index, issue in enumerate(result.issues, 1):
            _present_issue(index, issue)

    perf = result.performance
    if perf.duration_seconds is not None:
        line = f"Analyzed in {perf.duration_seconds:.1f}s"
        if perf.files_processed is not None:
            line += f", {perf.files_processed} files processed"
        if perf.early_termination:
            line += " (stopped early)"
        console.print(f"\n[dim]{line}[/dim]")
    if result.timestamp:
        local = result.timestamp.dt.astimezone()
        console.print(f"[dim]Analysis completed {local:%Y-%m-%d %H:%M:%S}[/dim]")
    console.print()


def _present_issue(index: int, issue: Issue) -> None:
    style = SEVERITY_STYLE[issue.severity]
    badge = f"[{style}]{issue.severity.label.upper()}[/{style}]"
    ai = "  [green](AI Enhanced)[/green]" if issue.is_ai_enhanced else ""
    console.print(f"\n{index}. {badge} [bold]{escape(issue.title)}[/bold]{ai}")
    if issue.description:
        console.print(f"   [red]Problem:[/red] {escape(issue.description)}")
    if issue.location:
        console.print(f"   [bold]Location:[/bold] {escape(issue.location)}")
    if issue.root_cause:
        console.print(f"   [blue]Root Cause:[/blue] {escape(issue.root_cause)}")
    console.print(f"   [green]{issue.solution_heading}:[/green] {escape(issue.solution_text)}")
    for command in issue.commands:
        console.print(f"     [green]$[/green] {escape(command)}")
    if issue.prevention_tips:
        console.print(f"   [magenta]Prevention Tips:[/magenta] {escape(issue.prevention_tips)}")


# ---------------------------------------------------------------------------
# Failure
# ---------------------------------------------------------------------------
def present_failure(error: AnalysisError, *, as_json: bool = False) -> None:
    if as_json:
        _json_out({"error": error.to_dict()})
        return
    console.print(f"\n[red bold]{escape(error.message)}[/red bold]")
    if error.detail:
        console.print(f"[red]{escape(error.detail)}[/red]")


# ---------------------------------------------------------------------------
# Service status
# ---------------------------------------------------------------------------
def present_status(status: ServiceStatus, backend_url: str, *, as_json: bool = False) -> None:
    if as_json:
        _json_out({"backend_url": backend_url, **status.to_dict()})
        return

    if status.connection is Connection.CONNECTED:
        line = "[green]● Service Ready[/green]"
    elif status.connection is Connection.UNREACHABLE:
        line = "[red]✗ Service Unavailable[/red]"
    else:
        line = "[yellow]… Checking Status[/yellow]"
    if status.ai is AIStatus.ENABLED:
        line += "  |  [green]AI Active[/green]"
    elif status.ai is AIStatus.DISABLED:
        line += "  |  [yellow]AI Unavailable[/yellow]"
    console.print(line)

    if status.connection is Connection.UNREACHABLE:
        console.print(f"  [red]Backend Unreachable[/red]: {escape(status.reason or 'The backend service is currently unavailable.')}")
        console.print(f"  [dim]URL: {escape(backend_url)}[/dim]")
        console.print("  [dim]Please ensure the backend server is running.[/dim]")
