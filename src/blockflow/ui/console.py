"""Console output formatting utilities for blockflow."""

from __future__ import annotations

import shlex
import sys
from typing import Iterable, Optional, Sequence


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show [DEBUG] lines and full stack traces
        """
        self.debug = debug

    def print_run_started(self, workflow: str, step_count: int, dry_run: bool) -> None:
        """Print workflow run start information."""
        print("\nRUN STARTED")
        print(f"Workflow: {workflow}")
        print(f"Steps: {step_count}")
        if dry_run:
            print("Mode: dry-run")
        print()

    def print_step(self, step_id: str, block: str) -> None:
        """Print step start message."""
        print(f"STEP: {step_id} ({block})")

    def print_command(self, tag: str, argv: Sequence[str], dry_run: bool = False) -> None:
        """Echo a resolved command line, shell-quoted for copy/paste."""
        marker = " [dry-run]" if dry_run else ""
        print(f"[{tag}]{marker} {shlex.join(argv)}", flush=True)

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for step, status in results.items():
            status_display = status.upper() if status != "ok" else "SUCCESS"
            print(f"  {step}: {status_display}")

    def print_catalog(self, title: str, entries: Iterable[tuple[str, str, list[str]]]) -> None:
        """
        Print a catalog listing.

        Args:
            title: Heading line, e.g. "Available blocks:"
            entries: (name, description, extra detail lines) per item
        """
        print(title)
        for name, description, details in entries:
            print(f"  - {name}")
            if description:
                print(f"    {description}")
            for detail in details:
                print(f"      {detail}")

    def print_usage(self, lines: Iterable[str], examples: Iterable[str]) -> None:
        print("Usage:")
        for line in lines:
            print(f"  {line}")
        print("")
        print("Examples:")
        for line in examples:
            print(f"  {line}")
        print("")

    def print_error(self, tag: str, message: str) -> None:
        """Print a failure as exactly one line on stderr."""
        first_line = message.splitlines()[0] if message else "Unknown error"
        print(f"[{tag}] {first_line}", file=sys.stderr)

    def print_exception(self, tag: str, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        self.print_error(tag, str(exc))
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)

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
