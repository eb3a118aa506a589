"""
Build Invoker
=============
Runs the rocker build tool in its `build` and `pull` modes.

BOUNDARY RULES:
    - Invoker ONLY composes arguments and delegates to ProcessRunner.
    - Invoker NEVER translates errors: LaunchError / ExecutionError from the
      runner reach the test unmodified.
    - Inline build files are materialized through TempWorkspace and removed
      when the call returns, success or failure.

ARGUMENT ORDER (see BuildCommand):
    <global options> build [-f <file>] <build options>
    pull <image>
"""
import logging
from pathlib import Path
from typing import IO, List, Optional, Union

from harness.core.constants import NO_CACHE_FLAG, PULL_SUBCOMMAND
from harness.executor.process_runner import ProcessRunner
from harness.models.build_run import BuildCommand, BuildRunConfig
from harness.models.command_outcome import CommandOutcome
from harness.services.workspace import TempWorkspace

logger = logging.getLogger(__name__)


class BuildInvoker:
    """
    Drives the rocker executable for integration tests.

    Usage:
        invoker = BuildInvoker(rocker_path, runner, workspace)
        invoker.build("FROM alpine\\nTAG my-test-image")
        invoker.run(BuildRunConfig(
            build_file_content=rockerfile,
            global_options=["--verbose"],
            build_options=["--no-cache"],
            working_directory=fixture_dir,
            output_sink=buf,
        ))
    """

    def __init__(self, executable: Union[str, Path], runner: ProcessRunner, workspace: TempWorkspace) -> None:
        self.executable = str(executable)
        self.runner = runner
        self.workspace = workspace
        self.last_command: Optional[List[str]] = None

    def run(self, config: BuildRunConfig) -> CommandOutcome:
        """
        The general build entry point; every other build variant reduces to it.

        Returns the runner's CommandOutcome. Raises whatever the runner raises.
        """
        if config.build_file_content is not None:
            with self.workspace.temp_file(config.build_file_content) as build_file:
                return self._run_build(config, str(build_file.path))

        file_path = str(config.build_file_path) if config.build_file_path is not None else None
        return self._run_build(config, file_path)

    def build(self, content: str) -> CommandOutcome:
        """Build from an inline build file with no extra options."""
        return self.run(BuildRunConfig(build_file_content=content))

    def build_with_options(self, content: str, *options: str) -> CommandOutcome:
        return self.run(BuildRunConfig(build_file_content=content, build_options=list(options)))

    def build_file(self, path: Union[str, Path], *options: str) -> CommandOutcome:
        """Build from an existing file with trailing options."""
        return self.run(BuildRunConfig(build_file_path=Path(path), build_options=list(options)))

    def build_no_cache(self, path: Union[str, Path]) -> CommandOutcome:
        return self.build_file(path, NO_CACHE_FLAG)

    def build_in_directory(self, working_directory: Union[str, Path], *options: str) -> CommandOutcome:
        """Build with the working directory's default build file (no `-f`)."""
        return self.run(BuildRunConfig(
            working_directory=Path(working_directory),
            build_options=list(options),
        ))

    def pull(self, image: str, sink: Optional[IO] = None) -> CommandOutcome:
        command = BuildCommand(subcommand=PULL_SUBCOMMAND, extra_options=(image,))
        return self._invoke(command.argv(), cwd=None, sink=sink)

    def _run_build(self, config: BuildRunConfig, file_path: Optional[str]) -> CommandOutcome:
        command = BuildCommand(
            global_options=tuple(config.global_options),
            file_path=file_path,
            extra_options=tuple(config.build_options),
        )
        return self._invoke(command.argv(), cwd=config.working_directory, sink=config.output_sink)

    def _invoke(self, argv: List[str], cwd, sink) -> CommandOutcome:
        self.last_command = argv
        logger.debug("rocker argv: %s", argv)
        return self.runner.run(self.executable, *argv, cwd=cwd, sink=sink)
