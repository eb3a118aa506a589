"""
Temp Workspace
==============
Creates isolated filesystem fixtures for a single test run.

Philosophy:
    - Fixtures live under ~/.rocker-integ-tmp/ so that VM-backed container
      runtimes (docker-machine, VirtualBox) which only share $HOME can see
      the build context on every host OS.
    - Every allocation gets a fresh unique path from the tempfile module.
      Concurrent tests never contend on a path, so no locking is needed.
    - A failed fixture is removed before the error is raised. Callers never
      see a partially populated directory.
    - Context managers release the resource on every exit path. A failed
      release is logged and never masks the original error.
"""
import logging
import os
import pprint
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Union

from harness.core.constants import TEMP_FILE_PREFIX
from harness.core.errors import FilesystemError
from harness.core.verbosity import VerbosityController
from harness.models.temp_resource import ResourceKind, TempResource
from harness.utils.path_utils import join_within, normalize_relative_path

logger = logging.getLogger(__name__)

Content = Union[str, bytes]


class TempWorkspace:

    def __init__(
        self,
        verbosity: Optional[VerbosityController] = None,
        home_dir: Optional[Union[str, Path]] = None,
        base_dirname: str = ".rocker-integ-tmp",
        scratch_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        self.verbosity = verbosity or VerbosityController()
        self.home_dir = Path(home_dir) if home_dir is not None else Path.home()
        self.base_dir = self.home_dir / base_dirname
        self.scratch_dir = Path(scratch_dir) if scratch_dir is not None else Path(tempfile.gettempdir())

    def ensure_base_dir(self) -> Path:
        try:
            self.base_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Cannot create fixture base directory {self.base_dir}: {e}") from e
        return self.base_dir

    # ------------------------------------------------------------------
    # Directory fixtures
    # ------------------------------------------------------------------
    def create_fixture(self, name_prefix: str, files: Mapping[str, Content]) -> Path:
        """
        Create a unique directory under the base dir and populate it.

        Parameters
        ----------
        name_prefix : str
            Prefix for the generated directory name.
        files : Mapping[str, str | bytes]
            Relative path → file content. Parent directories are created.

        Returns
        -------
        Path
            The populated fixture directory. The caller owns it.

        Raises
        ------
        FilesystemError
            A path is invalid or conflicting, or any create/write failed.
            No directory is left behind.
        """
        layout = _plan_layout(files)
        base_dir = self.ensure_base_dir()

        try:
            fixture_dir = Path(tempfile.mkdtemp(prefix=name_prefix, dir=base_dir))
        except OSError as e:
            raise FilesystemError(f"Cannot create fixture directory in {base_dir}: {e}") from e

        try:
            for rel_path, content in layout.items():
                target = join_within(str(fixture_dir), rel_path)
                os.makedirs(os.path.dirname(target), mode=0o755, exist_ok=True)
                _write_content(target, content)
        except OSError as e:
            TempResource(fixture_dir, ResourceKind.DIRECTORY).release()
            raise FilesystemError(f"Cannot populate fixture {fixture_dir}: {e}") from e

        logger.info("Created fixture %s with %d file(s)", fixture_dir, len(layout))
        self.verbosity.debug(f"temp directory: {fixture_dir}")
        self.verbosity.debug(f"  with files: {pprint.pformat(dict(files))}")
        return fixture_dir

    @contextmanager
    def fixture(self, name_prefix: str, files: Mapping[str, Content]) -> Iterator[TempResource]:
        resource = TempResource(self.create_fixture(name_prefix, files), ResourceKind.DIRECTORY)
        try:
            yield resource
        finally:
            resource.release()

    # ------------------------------------------------------------------
    # Single files
    # ------------------------------------------------------------------
    def create_temp_file(self, content: Content) -> Path:
        """Write ``content`` to a new uniquely named file in the scratch dir."""
        data = _to_bytes(content, "temp file")
        try:
            fd, name = tempfile.mkstemp(prefix=TEMP_FILE_PREFIX, dir=self.scratch_dir)
        except OSError as e:
            raise FilesystemError(f"Cannot create temp file in {self.scratch_dir}: {e}") from e

        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        except OSError as e:
            TempResource(path, ResourceKind.FILE).release()
            raise FilesystemError(f"Cannot write temp file {path}: {e}") from e

        logger.debug("Created temp file %s (%d bytes)", path, len(data))
        return path

    @contextmanager
    def temp_file(self, content: Content) -> Iterator[TempResource]:
        resource = TempResource(self.create_temp_file(content), ResourceKind.FILE)
        try:
            yield resource
        finally:
            resource.release()

    def discard(self, path: Union[str, Path]) -> bool:
        """Best-effort removal of a fixture directory or temp file."""
        path = Path(path)
        kind = ResourceKind.DIRECTORY if path.is_dir() else ResourceKind.FILE
        return TempResource(path, kind).release()


def _plan_layout(files: Mapping[str, Content]) -> Dict[str, bytes]:
    """
    Validate every relative path and encode every content before anything
    touches the disk.

    Rejects empty, absolute and escaping paths, duplicates after
    normalisation, a file path that another entry needs as a directory,
    and text that cannot be encoded as UTF-8.
    """
    layout: Dict[str, bytes] = {}
    for rel_path, content in files.items():
        normalized = normalize_relative_path(rel_path)
        if normalized is None:
            raise FilesystemError(f"Invalid fixture path: {rel_path!r}")
        if normalized in layout:
            raise FilesystemError(f"Duplicate fixture path: {rel_path!r}")
        layout[normalized] = _to_bytes(content, rel_path)

    for normalized in layout:
        parts = normalized.split("/")
        for depth in range(1, len(parts)):
            parent = "/".join(parts[:depth])
            if parent in layout:
                raise FilesystemError(
                    f"Conflicting fixture paths: {parent!r} is a file but {normalized!r} needs it as a directory"
                )
    return layout


def _to_bytes(content: Content, label: str) -> bytes:
    if isinstance(content, bytes):
        return content
    try:
        return content.encode("utf-8")
    except UnicodeEncodeError as e:
        raise FilesystemError(f"Cannot encode content of {label!r} as UTF-8: {e}") from e


def _write_content(path: str, data: bytes) -> None:
    with open(path, "wb") as f:
        f.write(data)
