"""
Harness Factory
===============
Wires HarnessSettings into a ready-to-use set of components.

Binaries are resolved here, once, and injected into BuildInvoker and
ImageInspector. Nothing below this layer looks at the environment.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from harness.core.config import HarnessSettings
from harness.core.verbosity import VerbosityController
from harness.executor.binary_resolver import (
    default_docker_resolvers,
    default_rocker_resolvers,
    resolve_executable,
)
from harness.executor.process_runner import ProcessRunner
from harness.services.build_invoker import BuildInvoker
from harness.services.image_inspector import ImageInspector
from harness.services.workspace import TempWorkspace

logger = logging.getLogger(__name__)


@dataclass
class Harness:
    settings: HarnessSettings
    verbosity: VerbosityController
    runner: ProcessRunner
    workspace: TempWorkspace
    rocker: BuildInvoker
    docker: ImageInspector


def build_harness(
    settings: HarnessSettings,
    verbosity: Optional[VerbosityController] = None,
    rocker_path: Optional[str] = None,
    docker_path: Optional[str] = None,
) -> Harness:
    """
    Assemble the harness components.

    ``rocker_path`` / ``docker_path`` skip resolution when given.

    Raises
    ------
    ConfigurationError
        rocker or docker could not be located.
    """
    verbosity = verbosity or VerbosityController(settings.verbosity)
    runner = ProcessRunner(verbosity, timeout=settings.command_timeout)
    workspace = TempWorkspace(
        verbosity,
        base_dirname=settings.tmp_dirname,
        scratch_dir=settings.scratch_dir,
    )

    rocker_path = rocker_path or resolve_executable(*default_rocker_resolvers(settings))
    docker_path = docker_path or resolve_executable(*default_docker_resolvers(settings))

    logger.info(
        "Harness ready | verbosity=%d | rocker=%s | docker=%s | timeout=%s",
        int(verbosity.level), rocker_path, docker_path, settings.command_timeout,
    )
    return Harness(
        settings=settings,
        verbosity=verbosity,
        runner=runner,
        workspace=workspace,
        rocker=BuildInvoker(rocker_path, runner, workspace),
        docker=ImageInspector(docker_path, runner),
    )
