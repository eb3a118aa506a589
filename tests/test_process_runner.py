"""
Unit Tests — Process Runner
===========================
Output routing per verbosity level, failure taxonomy, working directory
and timeout handling.

Real child processes are launched through the current Python interpreter,
so no rocker or docker binary is required.
"""
import io
import subprocess
import sys
import threading
import time
from unittest.mock import patch

import pytest

from harness.core.errors import (
    CommandTimeoutError,
    ExecutionError,
    LaunchError,
)
from harness.core.verbosity import VerbosityController, VerbosityLevel
from harness.executor.process_runner import ProcessRunner

PY = sys.executable


def make_runner(level, timeout=None):
    console = io.BytesIO()
    error_console = io.BytesIO()
    verbosity = VerbosityController(VerbosityLevel(level), console=console, error_console=error_console)
    return ProcessRunner(verbosity, timeout=timeout), console, error_console


def script(source):
    return ["-c", source]


HELLO = script("import sys; sys.stdout.write('hello\\nworld\\n')")
NOISY = script("import sys; sys.stdout.write('out\\n'); sys.stderr.write('err\\n')")


# ---------------------------------------------------------------------------
# 1. Output routing
# ---------------------------------------------------------------------------
class TestOutputRouting:

    def test_level0_sink_only(self):
        runner, console, error_console = make_runner(0)
        sink = io.BytesIO()
        outcome = runner.run(PY, *HELLO, sink=sink)

        assert sink.getvalue() == b"hello\nworld\n"
        assert outcome.output == b"hello\nworld\n"
        assert console.getvalue() == b""
        assert error_console.getvalue() == b""

    def test_level0_without_sink_writes_nothing(self):
        runner, console, error_console = make_runner(0)
        outcome = runner.run(PY, *HELLO)

        assert outcome.ok
        assert outcome.output is None
        assert console.getvalue() == b""
        assert error_console.getvalue() == b""

    def test_level1_echoes_command_line(self):
        runner, console, _ = make_runner(1)
        sink = io.BytesIO()
        runner.run(PY, *HELLO, sink=sink)

        text = console.getvalue().decode()
        assert text.startswith("Running: ")
        assert PY in text
        # Only the echo line; output itself is not streamed at level 1
        assert text.count("\n") == 1
        assert sink.getvalue() == b"hello\nworld\n"

    def test_level2_tees_identical_bytes(self):
        runner, console, _ = make_runner(2)
        sink = io.BytesIO()
        outcome = runner.run(PY, *HELLO, sink=sink)

        assert sink.getvalue() == b"hello\nworld\n"
        assert outcome.output == sink.getvalue()
        # Console holds the echo line followed by exactly the sink bytes
        assert console.getvalue().endswith(sink.getvalue())
        assert console.getvalue().startswith(b"Running: ")

    def test_level2_text_console_gets_raw_bytes(self):
        raw = io.BytesIO()
        console = io.TextIOWrapper(raw, encoding="utf-8")
        verbosity = VerbosityController(VerbosityLevel.STREAM, console=console, error_console=io.BytesIO())
        sink = io.BytesIO()
        ProcessRunner(verbosity).run(PY, *script("import sys; sys.stdout.buffer.write(b'\\xff\\xfe built\\n')"), sink=sink)
        console.flush()

        assert sink.getvalue() == b"\xff\xfe built\n"
        assert raw.getvalue().startswith(b"Running: ")
        assert raw.getvalue().endswith(sink.getvalue())

    def test_level2_without_sink_streams_to_console(self):
        runner, console, _ = make_runner(2)
        outcome = runner.run(PY, *HELLO)

        assert outcome.output is None
        assert console.getvalue().endswith(b"hello\nworld\n")

    def test_level2_forwards_stderr(self):
        runner, console, error_console = make_runner(2)
        runner.run(PY, *NOISY)

        assert error_console.getvalue() == b"err\n"
        assert b"err" not in console.getvalue().split(b"\n", 1)[1]

    def test_stderr_not_printed_below_level2(self):
        runner, console, error_console = make_runner(1)
        outcome = runner.run(PY, *NOISY)

        assert error_console.getvalue() == b""
        assert outcome.stderr == b"err\n"

    def test_text_sink_receives_decoded_output(self):
        runner, _, _ = make_runner(0)
        sink = io.StringIO()
        runner.run(PY, *HELLO, sink=sink)
        assert sink.getvalue() == "hello\nworld\n"

    def test_no_output_is_not_an_error(self):
        runner, _, _ = make_runner(0)
        sink = io.BytesIO()
        outcome = runner.run(PY, *script("pass"), sink=sink)
        assert outcome.ok
        assert outcome.output == b""


# ---------------------------------------------------------------------------
# 2. Working directory
# ---------------------------------------------------------------------------
class TestWorkingDirectory:

    def test_cwd_is_used(self, tmp_path):
        runner, _, _ = make_runner(0)
        sink = io.BytesIO()
        outcome = runner.run(PY, *script("import os; print(os.getcwd())"), cwd=tmp_path, sink=sink)

        assert sink.getvalue().decode().strip() == str(tmp_path.resolve())
        assert outcome.working_directory == str(tmp_path)

    def test_cwd_printed_at_level2(self, tmp_path):
        runner, console, _ = make_runner(2)
        runner.run(PY, *script("pass"), cwd=tmp_path)
        assert f"CWD: {tmp_path}".encode() in console.getvalue()

    def test_missing_cwd_is_launch_error(self, tmp_path):
        runner, _, _ = make_runner(0)
        with pytest.raises(LaunchError):
            runner.run(PY, *script("pass"), cwd=tmp_path / "missing")


# ---------------------------------------------------------------------------
# 3. Failures
# ---------------------------------------------------------------------------
class TestFailures:

    def test_nonexistent_executable_raises_launch_error(self):
        runner, _, _ = make_runner(0)
        with pytest.raises(LaunchError) as exc_info:
            runner.run("definitely-not-a-real-binary-xyz", "build")
        assert "definitely-not-a-real-binary-xyz build" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_non_executable_file_raises_launch_error(self, tmp_path):
        target = tmp_path / "rocker"
        target.write_text("not a program")
        target.chmod(0o644)
        runner, _, _ = make_runner(0)
        with pytest.raises(LaunchError):
            runner.run(str(target))

    def test_nonzero_exit_raises_execution_error(self):
        runner, _, _ = make_runner(0)
        with pytest.raises(ExecutionError) as exc_info:
            runner.run(PY, *script("import sys; sys.stderr.write('boom\\n'); sys.exit(3)"))

        err = exc_info.value
        assert err.returncode == 3
        assert err.outcome.returncode == 3
        assert "exited with status 3" in str(err)
        assert "boom" in str(err)
        assert PY in err.command_line

    def test_failure_keeps_captured_output(self):
        runner, _, _ = make_runner(0)
        sink = io.BytesIO()
        with pytest.raises(ExecutionError) as exc_info:
            runner.run(PY, *script("print('partial'); raise SystemExit(1)"), sink=sink)
        assert exc_info.value.outcome.output == b"partial\n"
        assert sink.getvalue() == b"partial\n"

    def test_sink_failure_stops_child_and_stderr_reader(self):
        class BrokenSink(io.BytesIO):
            def write(self, data):
                raise OSError(32, "Broken pipe")

        runner, _, _ = make_runner(0)
        started = time.monotonic()
        with pytest.raises(OSError, match="Broken pipe"):
            runner.run(PY, *script("import time; print('first', flush=True); time.sleep(30)"), sink=BrokenSink())

        assert time.monotonic() - started < 10
        assert not [t for t in threading.enumerate() if t.name.startswith("stderr-")]

    @patch("harness.executor.process_runner.subprocess.Popen")
    def test_launch_is_attempted_once(self, mock_popen):
        mock_popen.side_effect = FileNotFoundError(2, "No such file or directory")
        runner, _, _ = make_runner(0)
        with pytest.raises(LaunchError):
            runner.run("rocker", "build")
        assert mock_popen.call_count == 1

    def test_arguments_passed_in_order(self):
        runner, _, _ = make_runner(0)
        with patch("harness.executor.process_runner.subprocess.Popen",
                   side_effect=FileNotFoundError(2, "missing")) as mock_popen:
            with pytest.raises(LaunchError):
                runner.run("rocker", "--no-cache", "build", "-f", "/tmp/x")
        assert mock_popen.call_args.args[0] == ("rocker", "--no-cache", "build", "-f", "/tmp/x")
        assert mock_popen.call_args.kwargs["stdin"] == subprocess.DEVNULL
        assert mock_popen.call_args.kwargs["start_new_session"] is True


# ---------------------------------------------------------------------------
# 4. Timeout
# ---------------------------------------------------------------------------
class TestTimeout:

    def test_no_timeout_by_default(self):
        runner, _, _ = make_runner(0)
        assert runner.timeout is None

    def test_hung_process_is_killed(self):
        runner, _, _ = make_runner(0, timeout=0.5)
        with pytest.raises(CommandTimeoutError) as exc_info:
            runner.run(PY, *script("import time; time.sleep(30)"))
        assert exc_info.value.timeout == 0.5
        assert exc_info.value.outcome.duration_seconds < 30

    @pytest.mark.skipif(sys.platform == "win32", reason="process groups are POSIX-only")
    def test_timeout_kills_grandchildren(self):
        runner, _, _ = make_runner(0, timeout=1)
        started = time.monotonic()
        with pytest.raises(CommandTimeoutError):
            runner.run("sh", "-c", "sleep 8; echo done", sink=io.BytesIO())
        assert time.monotonic() - started < 5

    def test_fast_process_within_timeout(self):
        runner, _, _ = make_runner(0, timeout=30)
        assert runner.run(PY, *script("pass")).ok
