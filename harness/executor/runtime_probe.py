"""
Runtime Probe
=============
Checks whether a container runtime daemon is reachable before integration
tests try to drive the docker CLI against it.
"""
import logging
from functools import lru_cache

import docker
from docker.errors import DockerException

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def docker_daemon_available() -> bool:
    try:
        client = docker.from_env()
        client.ping()
    except (DockerException, OSError) as e:
        logger.warning("Docker daemon not reachable: %s", e)
        return False
    return True
