"""
Process Runner
==============
Launches an external executable, waits for it, and routes its output
according to the harness verbosity level.

BOUNDARY RULES:
    - Runner ONLY launches and observes processes.
    - Runner NEVER retries. One failed command is terminal for that call.
    - Runner NEVER interprets output; validation belongs to the caller.

OUTPUT ROUTING:
    level 0 — stdout to the caller's sink (if any), nothing to the console
    level 1 — as level 0, plus `Running: <command line>` before launch
    level 2 — as level 1, stdout tee'd to sink + console (console only
              without a sink), stderr forwarded to the error console

    Below level 2 stderr is captured so that a failure can report it
    without re-running at a higher verbosity.

BLOCKING:
    Every call blocks until the child exits. With no timeout configured a
    hung child blocks its caller indefinitely. With a timeout the child and
    everything it spawned are killed and CommandTimeoutError is raised.

    Each child leads its own process group (POSIX). Kills target the group,
    so grandchildren holding the output pipes die with it.
"""
import logging
import os
import signal
import subprocess
import threading
import time
from typing import IO, List, Optional

from harness.core.errors import CommandTimeoutError, ExecutionError, LaunchError
from harness.core.verbosity import VerbosityController
from harness.models.command_outcome import CommandOutcome, format_command_line
from harness.utils.streams import fan_out

logger = logging.getLogger(__name__)

# Upper bound on waiting for the stderr reader once the child is gone
STDERR_DRAIN_TIMEOUT = 5.0


class ProcessRunner:
    """
    Synchronous process launcher shared by BuildInvoker and ImageInspector.

    Usage:
        runner = ProcessRunner(VerbosityController(VerbosityLevel.COMMANDS))
        buf = io.BytesIO()
        runner.run("docker", "images", "-q", "alpine", sink=buf)
    """

    def __init__(
        self,
        verbosity: Optional[VerbosityController] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.verbosity = verbosity or VerbosityController()
        self.timeout = timeout

    def run(self, executable, *args, cwd=None, sink: Optional[IO] = None) -> CommandOutcome:
        """
        Run ``executable`` with ``args`` and wait for it to exit.

        Parameters
        ----------
        executable : str | Path
            Name on $PATH or path of the program to launch.
        *args : str
            Arguments, passed through in order.
        cwd : str | Path | None
            Working directory for the child. None keeps the harness cwd.
        sink : IO | None
            Writable text or binary stream receiving the child's stdout.

        Returns
        -------
        CommandOutcome
            Successful outcome; ``output`` holds the bytes sent to ``sink``.

        Raises
        ------
        LaunchError
            The executable (or cwd) does not exist or cannot be executed.
        ExecutionError
            The process exited with a non-zero status.
        CommandTimeoutError
            A timeout is configured and the process exceeded it.
        """
        command = (str(executable),) + tuple(str(arg) for arg in args)
        command_line = format_command_line(command)
        outcome = CommandOutcome(
            command=command,
            working_directory=str(cwd) if cwd is not None else None,
        )

        self.verbosity.echo(f"Running: {command_line}")
        if cwd is not None:
            self.verbosity.debug(f"CWD: {cwd}")

        stdout_targets = self._stdout_targets(sink)
        stderr_targets = [self.verbosity.error_console] if self.verbosity.tee_output else []

        logger.info("Running command | cmd=%s | cwd=%s", command_line, outcome.working_directory or ".")
        start_time = time.monotonic()

        try:
            process = subprocess.Popen(
                command,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE if stdout_targets else subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            logger.error("Launch failed | cmd=%s | error=%s", command_line, e)
            raise LaunchError(command_line, e.strerror or str(e)) from e

        stdout_chunks: Optional[List[bytes]] = [] if sink is not None else None
        stderr_chunks: List[bytes] = []
        timed_out = threading.Event()

        stderr_thread = threading.Thread(
            target=_pump,
            args=(process.stderr, stderr_targets, stderr_chunks),
            name=f"stderr-{process.pid}",
            daemon=True,
        )
        stderr_thread.start()

        timer = None
        if self.timeout:
            timer = threading.Timer(self.timeout, _kill, args=(process, timed_out))
            timer.daemon = True
            timer.start()

        try:
            if process.stdout is not None:
                _pump(process.stdout, stdout_targets, stdout_chunks)
            outcome.returncode = process.wait()
            stderr_thread.join()
        finally:
            if timer is not None:
                timer.cancel()
            if process.poll() is None:
                # Caller-side failure (e.g. sink write error) mid-stream
                _terminate(process)
                process.wait()
            stderr_thread.join(STDERR_DRAIN_TIMEOUT)
            if stderr_thread.is_alive():
                logger.warning("stderr reader still running | cmd=%s", command_line)
            for pipe in (process.stdout, process.stderr):
                if pipe is not None:
                    pipe.close()

        outcome.duration_seconds = round(time.monotonic() - start_time, 3)
        outcome.stderr = b"".join(stderr_chunks)
        if stdout_chunks is not None:
            outcome.output = b"".join(stdout_chunks)

        if timed_out.is_set() and outcome.returncode != 0:
            logger.error("Command timed out | cmd=%s | timeout=%ss", command_line, self.timeout)
            raise CommandTimeoutError(outcome, self.timeout)

        if outcome.returncode != 0:
            logger.error(
                "Command failed | cmd=%s | exit=%d | time=%.2fs",
                command_line, outcome.returncode, outcome.duration_seconds,
            )
            raise ExecutionError(outcome)

        logger.info(
            "Command complete | exit=0 | time=%.2fs | cmd=%s",
            outcome.duration_seconds, command_line,
        )
        return outcome

    def _stdout_targets(self, sink: Optional[IO]) -> List[IO]:
        targets = []
        if sink is not None:
            targets.append(sink)
        if self.verbosity.tee_output:
            targets.append(self.verbosity.console)
        return targets


def _pump(pipe: IO[bytes], targets: List[IO], chunks: Optional[List[bytes]]) -> None:
    """Copy ``pipe`` line by line into every target until EOF."""
    for line in iter(pipe.readline, b""):
        if chunks is not None:
            chunks.append(line)
        fan_out(line, targets)


def _kill(process: subprocess.Popen, timed_out: threading.Event) -> None:
    timed_out.set()
    _terminate(process)


def _terminate(process: subprocess.Popen) -> None:
    """SIGKILL the child's whole process group, or just the child where groups are unavailable."""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except (AttributeError, ProcessLookupError, PermissionError):
        process.kill()
