"""
Image Inspector
===============
Queries the container runtime CLI for build results.

Commands consumed:
    docker images -q <name>   — identifier of the image, or empty output
    docker rmi <name>         — remove the image, non-zero exit on failure

Runtime output is never trusted as-is: a digest shorter than
MIN_DIGEST_LENGTH is an OutputValidationError, never a usable identifier.
"""
import io
import logging
from pathlib import Path
from typing import Union

from harness.core.constants import (
    IMAGES_SUBCOMMAND,
    MIN_DIGEST_LENGTH,
    QUIET_FLAG,
    RMI_SUBCOMMAND,
)
from harness.core.errors import OutputValidationError
from harness.executor.process_runner import ProcessRunner

logger = logging.getLogger(__name__)


class ImageInspector:

    def __init__(self, executable: Union[str, Path], runner: ProcessRunner) -> None:
        self.executable = str(executable)
        self.runner = runner

    def digest_of(self, image_name: str) -> str:
        """
        Return the image identifier for ``image_name``.

        Raises
        ------
        OutputValidationError
            The runtime printed fewer than 12 characters (no such image).
        LaunchError, ExecutionError
            The runtime CLI could not be run or failed.
        """
        buf = io.BytesIO()
        self.runner.run(self.executable, IMAGES_SUBCOMMAND, QUIET_FLAG, image_name, sink=buf)

        digest = buf.getvalue().decode("utf-8", errors="replace").strip()
        if len(digest) < MIN_DIGEST_LENGTH:
            raise OutputValidationError(
                f"Too short sha for {image_name} (should be at least {MIN_DIGEST_LENGTH} chars) got: {digest!r}"
            )

        logger.info("Image %s has digest %s", image_name, digest)
        return digest

    def exists(self, image_name: str) -> bool:
        try:
            self.digest_of(image_name)
        except OutputValidationError:
            return False
        return True

    def remove(self, image_name: str) -> None:
        """Remove ``image_name``. Failures propagate; there is no retry."""
        self.runner.run(self.executable, RMI_SUBCOMMAND, image_name)
        logger.info("Removed image %s", image_name)
