"""
Command Outcome Model
=====================
Result of one external process invocation, produced by ProcessRunner.

Fields:
    command           — full argv, executable first
    returncode        — exit status (0 = success); -1 if killed before exit
    output            — raw stdout bytes when a sink was attached, else None
    stderr            — raw stderr bytes (also streamed to the console at level 2)
    duration_seconds  — wall clock time from launch to exit
    working_directory — cwd the process ran in, None for the harness cwd

There is no partial/streaming outcome: one is only built after the
process has exited.
"""
import shlex
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass
class CommandOutcome:
    command: Tuple[str, ...]
    returncode: int = -1
    output: Optional[bytes] = None
    stderr: Optional[bytes] = None
    duration_seconds: float = 0.0
    working_directory: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command_line(self) -> str:
        return format_command_line(self.command)


def format_command_line(command) -> str:
    """Render argv as a copy-pasteable shell command line."""
    return shlex.join(str(part) for part in command)
