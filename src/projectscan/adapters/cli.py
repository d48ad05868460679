"""CLI adapter – parses arguments, dispatches to use cases, formats output."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import textwrap

from projectscan.adapters.command_spec import COMMAND_SPEC
from projectscan.adapters import presenters


# ---------------------------------------------------------------------------
# Help text
# ---------------------------------------------------------------------------
HELP_TEXT = textwrap.dedent("""\
    projectscan – upload a zipped project for analysis and read the report.

    Usage:
      projectscan <command> [options]

    Commands:
      help [cmd]      Show help (or help for a specific command)
      spec            Output machine-readable command spec (JSON)
      status          Check that the analysis service is reachable
      analyze         Upload a .zip archive and show the report
      show            Render a saved analysis response
      watch           Poll the analysis service until interrupted

    Examples:
      projectscan status
      projectscan analyze my-app.zip
      projectscan analyze my-app.zip --json > report.json
      projectscan show report.json

    Configuration (.env or environment):
      BACKEND_URL                    default http://localhost:5000
      MAX_UPLOAD_MB                  default 400
      HEALTH_TIMEOUT_SECONDS         default 5
      HEALTH_POLL_INTERVAL_SECONDS   default 10

    For detailed help:  projectscan help <command>
""")

COMMAND_HELP: dict[str, str] = {
    "help": "Usage: projectscan help [<command>]\n\nShow general help or help for a specific command.",
    "spec": "Usage: projectscan spec\n\nOutputs the full machine-readable command spec as JSON.",
    "status": (
        "Usage: projectscan status [--json] [--verbose]\n\n"
        "Runs one health probe against {BACKEND_URL}/api/health and reports:\n"
        "  - whether the service answered within HEALTH_TIMEOUT_SECONDS\n"
        "  - whether AI-enhanced analysis is available\n"
        "  --json   Output as JSON"
    ),
    "analyze": (
        "Usage: projectscan analyze <archive.zip> [--max-mb N] [--json] [--verbose]\n\n"
        "Validate the archive (extension, not empty, size limit), upload it to\n"
        "{BACKEND_URL}/api/analyze and render the normalized report.\n"
        "  archive    Path to the zipped project\n"
        "  --max-mb   Size ceiling in MB (default: MAX_UPLOAD_MB or 400)\n"
        "  --json     Output the report or the error as JSON"
    ),
    "show": (
        "Usage: projectscan show <report.json> [--json]\n\n"
        "Normalize a saved analysis response and render it.\n"
        "  --json   Output the normalized report as JSON"
    ),
    "watch": (
        "Usage: projectscan watch [--interval SECONDS] [--verbose]\n\n"
        "Probe the service now, then keep re-probing while it is unreachable.\n"
        "Prints every status change. Stop with Ctrl-C.\n"
        "  --interval   Seconds between probes (default: HEALTH_POLL_INTERVAL_SECONDS)"
    ),
}


# ---------------------------------------------------------------------------
# Build container (lazy import to avoid circular deps)
# ---------------------------------------------------------------------------
def _build_container(verbose: bool = False, quiet: bool = False) -> dict:
    """Build the dependency container from config."""
    from projectscan.infrastructure.config import load_config
    from projectscan.infrastructure.logger import ConsoleLogger
    from projectscan.infrastructure.clock import WallClock
    from projectscan.infrastructure.http_service import HttpAnalysisService

    config = load_config()
    logger = ConsoleLogger(verbose=verbose, quiet=quiet)
    return {
        "config": config,
        "logger": logger,
        "clock": WallClock(),
        "service": HttpAnalysisService(config.backend_url),
    }


def _monitor(c: dict, interval: float | None = None):
    from projectscan.application.use_cases.monitor_status import MonitorStatus

    config = c["config"]
    return MonitorStatus(
        probe=c["service"],
        clock=c["clock"],
        logger=c["logger"],
        interval=interval or config.poll_interval,
        timeout=config.health_timeout,
    )


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------
def cmd_help(args: argparse.Namespace) -> None:
    if args.command:
        text = COMMAND_HELP.get(args.command)
        if text:
            print(text)
        else:
            print(f"Unknown command: {args.command}")
            print(HELP_TEXT)
    else:
        print(HELP_TEXT)


def cmd_spec(_args: argparse.Namespace) -> None:
    print(json.dumps(COMMAND_SPEC, indent=2))


def cmd_status(args: argparse.Namespace) -> None:
    c = _build_container(verbose=args.verbose, quiet=args.json)

    async def probe():
        async with c["service"]:
            return await _monitor(c).probe_once()

    status = asyncio.run(probe())
    presenters.present_status(status, c["service"].describe(), as_json=args.json)
    if not status.reachable:
        sys.exit(1)


def cmd_analyze(args: argparse.Namespace) -> None:
    from projectscan.application.use_cases.upload_project import UploadProject
    from projectscan.application.use_cases.validate_input import ValidateInput
    from projectscan.domain.upload_state import Phase
    from projectscan.domain.value_objects import ByteSize
    from projectscan.infrastructure.local_archive import candidate_from_path

    c = _build_container(verbose=args.verbose, quiet=args.json)
    candidate = candidate_from_path(args.archive)
    max_size = ByteSize.from_megabytes(args.max_mb) if args.max_mb else c["config"].max_upload
    logger = c["logger"]

    async def run():
        async with c["service"] as service:
            uc = UploadProject(service, logger, validator=ValidateInput(max_size))
            monitor = _monitor(c)
            if not args.json:
                spinner = presenters.console.status("Analyzing your project…")
                spinner.start()

                def show_phase(session):
                    label = session.phase.value.replace("_", " ").capitalize()
                    spinner.update(f"{label}… {session.progress}%")

                uc.subscribe(show_phase)
            try:
                async with monitor:
                    logger.info(f"Uploading {candidate.name} to {service.describe()}")
                    await uc.submit(candidate)
            finally:
                if not args.json:
                    spinner.stop()
            return uc.session, monitor.status

    session, status = asyncio.run(run())
    if session.phase is Phase.SUCCEEDED and session.result is not None:
        presenters.present_result(session.result, as_json=args.json)
        if not args.json and status.reachable:
            presenters.present_status(status, c["service"].describe())
        return

    if session.error is not None:
        presenters.present_failure(session.error, as_json=args.json)
    sys.exit(1)


def cmd_show(args: argparse.Namespace) -> None:
    from projectscan.application.use_cases.normalize_result import normalize

    try:
        with open(args.report, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{args.report} is not valid JSON: {exc}") from exc
    presenters.present_result(normalize(raw), as_json=args.json)


def cmd_watch(args: argparse.Namespace) -> None:
    c = _build_container(verbose=args.verbose)
    url = c["service"].describe()

    async def watch():
        async with c["service"]:
            monitor = _monitor(c, interval=args.interval)
            monitor.subscribe(lambda s: presenters.present_status(s, url))
            async with monitor:
                await asyncio.Event().wait()

    try:
        asyncio.run(watch())
    except KeyboardInterrupt:
        print("Stopped.", file=sys.stderr)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="projectscan",
        description="projectscan CLI",
        add_help=False,
    )
    sub = parser.add_subparsers(dest="command")

    # help
    p_help = sub.add_parser("help", add_help=False)
    p_help.add_argument("command", nargs="?", default=None)
    p_help.set_defaults(func=cmd_help)

    # spec
    p_spec = sub.add_parser("spec", add_help=False)
    p_spec.set_defaults(func=cmd_spec)

    # status
    p_status = sub.add_parser("status", add_help=False)
    p_status.add_argument("--json", action="store_true", default=False)
    p_status.add_argument("--verbose", action="store_true", default=False)
    p_status.set_defaults(func=cmd_status)

    # analyze
    p_analyze = sub.add_parser("analyze", add_help=False)
    p_analyze.add_argument("archive", type=str)
    p_analyze.add_argument("--max-mb", type=float, default=None)
    p_analyze.add_argument("--json", action="store_true", default=False)
    p_analyze.add_argument("--verbose", action="store_true", default=False)
    p_analyze.set_defaults(func=cmd_analyze)

    # show
    p_show = sub.add_parser("show", add_help=False)
    p_show.add_argument("report", type=str)
    p_show.add_argument("--json", action="store_true", default=False)
    p_show.set_defaults(func=cmd_show)

    # watch
    p_watch = sub.add_parser("watch", add_help=False)
    p_watch.add_argument("--interval", type=float, default=None)
    p_watch.add_argument("--verbose", action="store_true", default=False)
    p_watch.set_defaults(func=cmd_watch)

    return parser


def run_cli(argv: list[str] | None = None) -> None:
    """Parse args and dispatch to the appropriate command handler."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        print(HELP_TEXT)
        return

    if hasattr(args, "func"):
        try:
            args.func(args)
        except Exception as exc:
            from projectscan.infrastructure.config import redact_secrets
            print(f"ERROR: {redact_secrets(str(exc))}", file=sys.stderr)
            sys.exit(1)
    else:
        print(HELP_TEXT)
