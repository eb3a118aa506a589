"""
Verbosity
=========
Process-wide output level for the harness, fixed before any test runs.

Levels:
    0 — quiet: nothing written to the harness console
    1 — echo every assembled command line before launch
    2 — additionally stream child stdout/stderr to the console

The controller is a frozen value passed to each component at construction.
Components read it, never change it, so concurrently running tests need no
locking around it.
"""
import sys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, TextIO

from harness.core.errors import ConfigurationError
from harness.utils.streams import write_text


class VerbosityLevel(IntEnum):
    QUIET = 0
    COMMANDS = 1
    STREAM = 2

    @classmethod
    def parse(cls, value: Any) -> "VerbosityLevel":
        """Accept 0/1/2 as int or numeric string."""
        if isinstance(value, VerbosityLevel):
            return value
        try:
            return cls(int(str(value).strip()))
        except ValueError:
            raise ConfigurationError(
                f"Invalid verbosity level: {value!r}. Expected one of 0, 1, 2"
            )


@dataclass(frozen=True)
class VerbosityController:
    level: VerbosityLevel = VerbosityLevel.QUIET
    console: TextIO = field(default_factory=lambda: sys.stdout)
    error_console: TextIO = field(default_factory=lambda: sys.stderr)

    @property
    def echo_commands(self) -> bool:
        return self.level >= VerbosityLevel.COMMANDS

    @property
    def tee_output(self) -> bool:
        return self.level >= VerbosityLevel.STREAM

    def echo(self, message: str) -> None:
        """Print a line at level 1 and above."""
        if self.echo_commands:
            self._print(message)

    def debug(self, message: str) -> None:
        """Print a line at level 2 only."""
        if self.tee_output:
            self._print(message)

    def _print(self, message: str) -> None:
        write_text(self.console, message + "\n")
