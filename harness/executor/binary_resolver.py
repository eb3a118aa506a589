"""
Binary Resolver
===============
Locates the rocker and docker executables before any test runs.

The core never looks binaries up by itself: BuildInvoker and ImageInspector
receive an already resolved path. This module supplies the resolution
strategies and the default chains built from HarnessSettings.

Strategies (tried in order, first hit wins):
    FixedPath            — explicit path from configuration
    EnvironmentVariable  — path stored in an environment variable
    GopathBinary         — $GOPATH/bin/<name>, where `go install` puts rocker
    PathLookup           — plain $PATH discovery via shutil.which

Deterministic: same environment → same resolved path.
"""
import logging
import os
import shutil
from dataclasses import dataclass
from typing import List, Optional, Sequence

from harness.core.config import HarnessSettings
from harness.core.constants import ROCKER_BINARY_NAME
from harness.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _usable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


@dataclass(frozen=True)
class FixedPath:
    path: str

    def resolve(self) -> Optional[str]:
        return self.path if _usable(self.path) else None

    def describe(self) -> str:
        return f"fixed path {self.path}"


@dataclass(frozen=True)
class EnvironmentVariable:
    name: str

    def resolve(self) -> Optional[str]:
        value = os.environ.get(self.name)
        if not value:
            return None
        return value if _usable(value) else None

    def describe(self) -> str:
        return f"${self.name}"


@dataclass(frozen=True)
class GopathBinary:
    binary: str = ROCKER_BINARY_NAME

    def resolve(self) -> Optional[str]:
        gopath = os.environ.get("GOPATH")
        if not gopath:
            return None
        # GOPATH may list several workspaces
        for root in gopath.split(os.pathsep):
            candidate = os.path.join(root, "bin", self.binary)
            if _usable(candidate):
                return candidate
        return None

    def describe(self) -> str:
        return f"$GOPATH/bin/{self.binary}"


@dataclass(frozen=True)
class PathLookup:
    name: str

    def resolve(self) -> Optional[str]:
        return shutil.which(self.name)

    def describe(self) -> str:
        return f"{self.name} on $PATH"


def resolve_executable(*resolvers) -> str:
    """
    Return the first path any resolver produces.

    Raises
    ------
    ConfigurationError
        No resolver produced a usable executable.
    """
    for resolver in resolvers:
        path = resolver.resolve()
        if path:
            logger.info("Resolved executable via %s: %s", resolver.describe(), path)
            return path
    tried = ", ".join(r.describe() for r in resolvers) or "nothing"
    raise ConfigurationError(f"Executable not found (tried: {tried})")


def default_rocker_resolvers(settings: HarnessSettings) -> List:
    chain: List = []
    if settings.rocker_binary:
        chain.append(FixedPath(settings.rocker_binary))
    chain.extend([
        EnvironmentVariable("ROCKER_BINARY"),
        GopathBinary(ROCKER_BINARY_NAME),
        PathLookup(ROCKER_BINARY_NAME),
    ])
    return chain


def default_docker_resolvers(settings: HarnessSettings) -> Sequence:
    if os.sep in settings.docker_binary:
        return [FixedPath(settings.docker_binary)]
    return [PathLookup(settings.docker_binary)]
