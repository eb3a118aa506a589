"""
Temp Resource Model
===================
A temporary file or directory owned by exactly one test run.

Lifecycle: create → populate → (read by external process) → release.
Paths are unique per allocation and never shared between tests.
"""
import logging
import os
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class TempResource:
    path: Path
    kind: ResourceKind

    def release(self) -> bool:
        """
        Remove the resource from disk.

        Best-effort: a failure is logged and reported through the return
        value, never raised, so it cannot mask an error already in flight.
        """
        try:
            if self.kind is ResourceKind.DIRECTORY:
                shutil.rmtree(self.path)
            else:
                os.remove(self.path)
        except FileNotFoundError:
            return True
        except OSError:
            logger.warning("Failed to remove temp %s %s", self.kind.value, self.path, exc_info=True)
            return False
        logger.debug("Removed temp %s %s", self.kind.value, self.path)
        return True

    def __fspath__(self) -> str:
        return str(self.path)
