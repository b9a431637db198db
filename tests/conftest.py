"""
Pytest configuration for faultline tests.

Configures pytest-asyncio for async test support and provides mock
cluster fixtures that need no container runtime.
"""

import tempfile
from typing import AsyncGenerator, Generator

import pytest

from faultline.logging import Entry, LoggingConfig, LogLevel

from tests.framework.runtime.cluster_factory import ClusterFactory
from tests.framework.runtime.mock_cluster import MockCluster
from tests.framework.specs.cluster_spec import ClusterSpec


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture(autouse=True)
def quiet_logging() -> Generator[None, None, None]:
    logging_config = LoggingConfig()
    previous_level = logging_config.level.value.lower()
    logging_config.update(log_level="critical")
    yield
    logging_config.update(log_level=previous_level)


@pytest.fixture
def temp_log_directory() -> Generator[str, None, None]:
    with tempfile.TemporaryDirectory() as temp_directory:
        yield temp_directory


@pytest.fixture
def sample_entry() -> Entry:
    return Entry(
        message="Test log message",
        level=LogLevel.INFO,
    )


@pytest.fixture
def cluster_spec_factory():
    def create_spec(**overrides) -> ClusterSpec:
        return ClusterSpec.from_dict({
            "core_count": 3,
            "replica_count": 0,
            "start_timeout_seconds": 1.0,
            "stop_timeout_seconds": 1.0,
            "poll_interval_seconds": 0.01,
            "seed": 7,
            **overrides,
        })

    return create_spec


@pytest.fixture
async def mock_cluster(cluster_spec_factory) -> AsyncGenerator[MockCluster, None]:
    factory = ClusterFactory()
    cluster = await factory.create_cluster(cluster_spec_factory())
    yield cluster
    await factory.teardown_cluster(cluster)


@pytest.fixture
async def mock_cluster_with_replicas(
    cluster_spec_factory,
) -> AsyncGenerator[MockCluster, None]:
    factory = ClusterFactory()
    cluster = await factory.create_cluster(
        cluster_spec_factory(replica_count=2)
    )
    yield cluster
    await factory.teardown_cluster(cluster)
