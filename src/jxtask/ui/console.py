# console.py
# User-facing output of the jxtask CLI. The Task document goes to stdout,
# everything else to stderr.

from __future__ import annotations

import sys
import traceback
from typing import Iterable, Optional, TextIO


class Console:
    """Reporter for Task generation."""

    def __init__(self, debug: bool = False, out: TextIO | None = None, err: TextIO | None = None):
        """
        Args:
            debug: show debug lines and full tracebacks
            out: stream for the Task document (stdout when None)
            err: stream for diagnostics (stderr when None)
        """
        self.debug = debug
        self._out = out
        self._err = err

    # resolved on every call
    def _stdout(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    def _stderr(self) -> TextIO:
        return self._err if self._err is not None else sys.stderr

    def _emit(self, line: str = "") -> None:
        print(line, file=self._stderr())

    # ------------------------------------------------------------------
    # Task output
    # ------------------------------------------------------------------

    def print_task(self, text: str) -> None:
        """Write a rendered Task document to stdout."""
        self._stdout().write(text if text.endswith("\n") else text + "\n")

    def print_task_generated(self, path: str, step_count: int) -> None:
        self.print_info(f"generated Task at {path} ({step_count} steps)")

    def print_missing_templates(self, names: Iterable[str], default: str) -> None:
        """Warn about container names compiled against the default pod template."""
        names = sorted(names)
        if not names:
            return
        self.print_warning(
            f"missing pod templates for containers: {', '.join(names)} "
            f"(used the {default} pod template instead)"
        )

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Report a failed command.

        Args:
            title: short headline, e.g. "Invalid configuration"
            message: what went wrong
            details: extra context lines (file, url, hint, ...)
            suggestion: how to fix it
        """
        self._emit()
        self._emit(f"ERROR: {title}")
        self._emit(message)
        for line in details or []:
            self._emit(f"  {line}")
        if suggestion:
            self._emit()
            self._emit(suggestion)

    def print_exception(self, exc: BaseException) -> None:
        if not self.debug:
            self._emit(f"Error: {exc}")
            return
        self.print_traceback(exc)

    def print_traceback(self, exc: BaseException) -> None:
        """Full traceback of exc, in debug mode only."""
        if self.debug:
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=self._stderr())

    def print_warning(self, message: str) -> None:
        self._emit(f"WARNING: {message}")

    def print_info(self, message: str) -> None:
        self._emit(message)

    def print_debug(self, message: str) -> None:
        if self.debug:
            self._emit(f"[DEBUG] {message}")


_console: Optional[Console] = None


def get_console() -> Console:
    """Return the process-wide console, creating a default one on first use."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    global _console
    _console = console
