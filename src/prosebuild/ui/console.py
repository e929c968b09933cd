"""Console output formatting utilities for prosebuild."""

from __future__ import annotations

import sys
import time
from typing import Optional


def _fmt_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    return f"{seconds:.2f} s"


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def _stamp(self) -> str:
        return time.strftime("[%H:%M:%S]")

    def print_workflow(self, source: str, task_count: int) -> None:
        """Print which workflow was loaded."""
        print(f"{self._stamp()} Using workflow {source} ({task_count} tasks)")

    def print_plan(self, order: list[str]) -> None:
        """Print the resolved execution plan (debug only)."""
        self.print_debug("plan: " + " -> ".join(order))

    def print_task_start(self, name: str) -> None:
        print(f"{self._stamp()} Starting '{name}'...")

    def print_task_done(self, name: str, seconds: float) -> None:
        print(f"{self._stamp()} Finished '{name}' after {_fmt_duration(seconds)}")

    def print_task_failed(self, name: str, seconds: float, reason: str) -> None:
        """
        Print failure message for a task.

        Args:
            name: Task name
            seconds: Time spent before the failure
            reason: Failure reason/error message
        """
        print(
            f"{self._stamp()} '{name}' errored after {_fmt_duration(seconds)}",
            file=sys.stderr,
        )
        if self.debug:
            print(f"Error details: {reason}", file=sys.stderr)
        else:
            # first line only outside debug mode
            error_line = reason.split("\n")[0] if reason else "Unknown error"
            print(f"Error: {error_line}", file=sys.stderr)

    def print_watch_started(self, groups: list[str]) -> None:
        print(f"{self._stamp()} Watching: {', '.join(groups)}")

    def print_watch_trigger(self, group: str, tasks: list[str]) -> None:
        print(f"{self._stamp()} Change in {group}: re-running {', '.join(tasks)}")

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for task, status in results.items():
            status_display = "SUCCESS" if status.startswith("ok") else status.upper()
            print(f"  {task}: {status_display}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
