"""
Constants
Centralised storage for build-tool and container-runtime CLI vocabulary.
"""
BUILD_SUBCOMMAND = "build"
PULL_SUBCOMMAND = "pull"
FILE_FLAG = "-f"
NO_CACHE_FLAG = "--no-cache"

IMAGES_SUBCOMMAND = "images"
QUIET_FLAG = "-q"
RMI_SUBCOMMAND = "rmi"

# Shortest image identifier `docker images -q` ever prints
MIN_DIGEST_LENGTH = 12

ROCKER_BINARY_NAME = "rocker"
DOCKER_BINARY_NAME = "docker"

TEMP_FILE_PREFIX = "rocker_integration_test_"
