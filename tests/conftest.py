"""
Shared pytest configuration for the harness test-suite.

    --harness-verbosity 0|1|2   overrides HARNESS_VERBOSITY for the run

Unit tests build components by hand against tmp_path. The `harness`
fixture resolves real rocker/docker binaries and is only used by tests
marked `integration`, which are skipped when either is unavailable.
"""
import pytest

from harness.core.config import HarnessSettings
from harness.core.errors import ConfigurationError
from harness.executor.runtime_probe import docker_daemon_available
from harness.services.harness_factory import build_harness
from harness.utils.logging_config import level_for_verbosity, setup_logging


def pytest_addoption(parser):
    parser.addoption(
        "--harness-verbosity",
        action="store",
        default=None,
        help="0: quiet, 1: echo commands, 2: stream command output",
    )


def pytest_configure(config):
    settings = HarnessSettings.from_env(config.getoption("--harness-verbosity"))
    config.harness_settings = settings
    setup_logging(level=level_for_verbosity(settings.verbosity), log_dir=settings.log_dir)


@pytest.fixture(scope="session")
def settings(pytestconfig) -> HarnessSettings:
    return pytestconfig.harness_settings


@pytest.fixture
def harness(settings):
    if not docker_daemon_available():
        pytest.skip("docker daemon not reachable")
    try:
        return build_harness(settings)
    except ConfigurationError as e:
        pytest.skip(str(e))
