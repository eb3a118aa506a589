"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    HARNESS_VERBOSITY        — 0 quiet, 1 echo commands, 2 stream output (default: 0)
    ROCKER_BINARY            — Explicit path to the rocker executable
    DOCKER_BINARY            — Container runtime CLI (default: docker)
    HARNESS_TMP_DIRNAME      — Fixture base directory under $HOME (default: .rocker-integ-tmp)
    HARNESS_SCRATCH_DIR      — Directory for single temp files (default: system temp dir)
    HARNESS_COMMAND_TIMEOUT  — Seconds before a child process is killed (default: unset)
    HARNESS_LOG_DIR          — Directory for the dated log file (default: unset, console only)

Timeout Philosophy:
    External commands block their caller until they exit. Leaving
    HARNESS_COMMAND_TIMEOUT unset keeps that behavior. Setting it bounds every
    single invocation; a hung rocker or docker process is then killed and
    reported as a CommandTimeoutError instead of stalling the whole run.

Fixture Location:
    Fixtures live under the user's home directory so that docker-machine /
    VirtualBox style runtimes, which only share $HOME with the VM, can still
    see the build context.
"""
import os
import tempfile
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from harness.core.constants import DOCKER_BINARY_NAME
from harness.core.errors import ConfigurationError
from harness.core.verbosity import VerbosityLevel

load_dotenv()

HARNESS_VERBOSITY = os.getenv("HARNESS_VERBOSITY", "0")
ROCKER_BINARY = os.getenv("ROCKER_BINARY")
DOCKER_BINARY = os.getenv("DOCKER_BINARY", DOCKER_BINARY_NAME)
HARNESS_TMP_DIRNAME = os.getenv("HARNESS_TMP_DIRNAME", ".rocker-integ-tmp")
HARNESS_SCRATCH_DIR = os.getenv("HARNESS_SCRATCH_DIR", tempfile.gettempdir())
HARNESS_COMMAND_TIMEOUT = os.getenv("HARNESS_COMMAND_TIMEOUT")
HARNESS_LOG_DIR = os.getenv("HARNESS_LOG_DIR")


@dataclass(frozen=True)
class HarnessSettings:
    """
    Snapshot of the harness configuration, taken once at startup.

    Fields
    ------
    verbosity : VerbosityLevel
        Output routing level shared by every component.
    rocker_binary : str | None
        Explicit rocker location. None defers to the resolver chain.
    docker_binary : str
        Container runtime CLI name or path.
    tmp_dirname : str
        Name of the hidden fixture directory under $HOME.
    scratch_dir : str
        Where single temp files (inline build files) are written.
    command_timeout : float | None
        Per-command timeout in seconds; None blocks until exit.
    log_dir : str | None
        Directory for the dated log file; None logs to console only.
    """
    verbosity: VerbosityLevel = VerbosityLevel.QUIET
    rocker_binary: Optional[str] = None
    docker_binary: str = DOCKER_BINARY_NAME
    tmp_dirname: str = ".rocker-integ-tmp"
    scratch_dir: str = tempfile.gettempdir()
    command_timeout: Optional[float] = None
    log_dir: Optional[str] = None

    @classmethod
    def from_env(cls, verbosity=None) -> "HarnessSettings":
        """
        Build settings from the environment (and .env file).

        ``verbosity`` overrides HARNESS_VERBOSITY, e.g. from a pytest option.
        """
        level = VerbosityLevel.parse(HARNESS_VERBOSITY if verbosity is None else verbosity)
        return cls(
            verbosity=level,
            rocker_binary=ROCKER_BINARY or None,
            docker_binary=DOCKER_BINARY,
            tmp_dirname=HARNESS_TMP_DIRNAME,
            scratch_dir=HARNESS_SCRATCH_DIR,
            command_timeout=parse_timeout(HARNESS_COMMAND_TIMEOUT),
            log_dir=HARNESS_LOG_DIR or None,
        )


def parse_timeout(raw: Optional[str]) -> Optional[float]:
    """Parse a timeout in seconds. Empty, None or 0 mean no timeout."""
    if raw is None or not str(raw).strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid command timeout: {raw!r} (expected seconds)")
    if value < 0:
        raise ConfigurationError(f"Command timeout must not be negative, got: {value:g}")
    return value or None
