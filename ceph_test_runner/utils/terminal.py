"""Centralized terminal formatting utilities for ceph-test-runner."""

import os
import re

from colorama import Fore, Style, init

from ceph_test_runner.core.types import RunResults

# autoreset=True means colors reset after each print
init(autoreset=True)


class TerminalColors:
    """Centralized color scheme for consistent terminal output."""

    # Semantic color mapping for different message types
    ERROR = Fore.RED
    WARNING = Fore.YELLOW
    SUCCESS = Fore.GREEN
    RESET = Style.RESET_ALL

    # Check if colors should be disabled (for CI/CD environments)
    NO_COLOR = os.environ.get("NO_COLOR") is not None

    # Regex pattern to match ANSI escape sequences
    ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")

    @classmethod
    def strip_ansi(cls, text: str) -> str:
        """Remove all ANSI escape sequences from text."""
        return cls.ANSI_ESCAPE_PATTERN.sub("", text)

    @classmethod
    def _wrap(cls, color: str, text: str) -> str:
        if cls.NO_COLOR:
            return text
        return f"{color}{text}{cls.RESET}"

    @classmethod
    def error(cls, text: str) -> str:
        """Format error text in red."""
        return cls._wrap(cls.ERROR, text)

    @classmethod
    def warning(cls, text: str) -> str:
        """Format warning text in yellow."""
        return cls._wrap(cls.WARNING, text)

    @classmethod
    def success(cls, text: str) -> str:
        """Format success text in green."""
        return cls._wrap(cls.SUCCESS, text)

    @classmethod
    def header(cls, text: str, width: int = 70, char: str = "=") -> str:
        """Format a header with separators."""
        separator = char * width
        return f"{separator}\n{text}\n{separator}"

    @classmethod
    def format_run_summary(cls, results: RunResults) -> str:
        """One line summary of a run: 'N suites, N passed, N failed.'

        Counts are colored only when greater than zero, labels never are.
        """
        passed = str(results.passed)
        failed = str(results.failed)
        if results.passed > 0:
            passed = cls.success(passed)
        if results.failed > 0:
            failed = cls.error(failed)
        return f"{results.total} suites, {passed} passed, {failed} failed."

    @classmethod
    def format_failures(cls, results: RunResults) -> str:
        """List the failed suites of a run, one per line."""
        lines = []
        for outcome in results.failures:
            lines.append(
                f"  {cls.error('FAILED')} {outcome.binary.name} "
                f"({outcome.pass_type.value}): {outcome.error}"
            )
        return "\n".join(lines)


# Single instance for use across the codebase
terminal = TerminalColors()
