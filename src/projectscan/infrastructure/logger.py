"""Infrastructure: stderr logger with a level threshold and secret redaction."""

from __future__ import annotations

import sys
from typing import Any, TextIO

from projectscan.application.ports import Logger as LoggerPort
from projectscan.infrastructure.config import redact_secrets

LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}


class ConsoleLogger(LoggerPort):
    """Writes ``[LEVEL] msg (k=v ...)`` lines for every level at or above the threshold.

    ``verbose`` lowers the threshold to DEBUG; ``quiet`` raises it to WARN so
    that ``--json`` output on stdout is the only chatter besides problems.
    """

    def __init__(self, verbose: bool = False, quiet: bool = False, stream: TextIO | None = None) -> None:
        if verbose:
            self._threshold = LEVELS["DEBUG"]
        elif quiet:
            self._threshold = LEVELS["WARN"]
        else:
            self._threshold = LEVELS["INFO"]
        self._stream = stream

    def enabled(self, level: str) -> bool:
        return LEVELS[level] >= self._threshold

    def _emit(self, level: str, msg: str, **kw: Any) -> None:
        if not self.enabled(level):
            return
        line = f"[{level}] {redact_secrets(msg)}"
        if kw:
            line += " (" + " ".join(f"{k}={redact_secrets(str(v))}" for k, v in kw.items()) + ")"
        print(line, file=self._stream or sys.stderr)

    def debug(self, msg: str, **kw: Any) -> None:
        self._emit("DEBUG", msg, **kw)

    def info(self, msg: str, **kw: Any) -> None:
        self._emit("INFO", msg, **kw)

    def warn(self, msg: str, **kw: Any) -> None:
        self._emit("WARN", msg, **kw)

    def error(self, msg: str, **kw: Any) -> None:
        self._emit("ERROR", msg, **kw)
