"""
Harness Errors
==============
Typed failures raised by the harness core.

Every error is returned to the immediate caller. Nothing in the core logs
and swallows these; cleanup failures are the only thing reported best-effort.

Taxonomy:
    LaunchError            — executable missing or not launchable
    ExecutionError         — process ran and exited non-zero
    CommandTimeoutError    — process exceeded the configured timeout
    OutputValidationError  — captured output broke an invariant
    FilesystemError        — fixture directory/file creation or write failed
    ConfigurationError     — a required tool location or setting is unusable
"""
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from harness.models.command_outcome import CommandOutcome


# Max bytes of captured stderr carried into an ExecutionError message
_STDERR_TAIL_BYTES = 2048


class HarnessError(Exception):
    """Base class for every failure raised by the harness."""


class LaunchError(HarnessError):
    def __init__(self, command_line: str, reason: str) -> None:
        self.command_line = command_line
        self.reason = reason
        super().__init__(f"Cannot launch `{command_line}`: {reason}")


class ExecutionError(HarnessError):
    """
    The process started but exited with a non-zero status.

    Carries the full CommandOutcome so tests can inspect captured output.
    """

    def __init__(self, outcome: "CommandOutcome", message: Optional[str] = None) -> None:
        self.outcome = outcome
        self.returncode = outcome.returncode
        self.command_line = outcome.command_line
        if message is None:
            message = f"`{self.command_line}` exited with status {self.returncode}"
            tail = _stderr_tail(outcome.stderr)
            if tail:
                message = f"{message}\n--- stderr ---\n{tail}"
        super().__init__(message)


class CommandTimeoutError(ExecutionError):
    def __init__(self, outcome: "CommandOutcome", timeout: float) -> None:
        self.timeout = timeout
        super().__init__(
            outcome,
            f"`{outcome.command_line}` did not finish within {timeout:g}s and was killed",
        )


class OutputValidationError(HarnessError, LookupError):
    """Captured output of an external command failed validation."""


class FilesystemError(HarnessError):
    """Fixture directory or file could not be created or written."""


class ConfigurationError(HarnessError):
    """A required setting or external tool location could not be resolved."""


def _stderr_tail(stderr: Optional[bytes]) -> str:
    if not stderr:
        return ""
    tail = stderr[-_STDERR_TAIL_BYTES:]
    return tail.decode("utf-8", errors="replace").strip()
