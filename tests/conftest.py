"""
Pytest configuration for the shardharness test-suite.

Every test runs against the in-memory cluster from tests/mocks.py.
"""

import random
from typing import AsyncGenerator

import pytest

from shardharness.cluster import ClusterHandle, ClusterRegistry
from shardharness.env import Env, HarnessConfig
from shardharness.logging import Logger, LoggingConfig
from shardharness.models import Scope

from tests.mocks import FakeCluster, FakeClusterFactory, FakeStore

TEST_SEED = 0x5EED


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture(autouse=True)
def quiet_logging():
    LoggingConfig().update(log_level="critical")


@pytest.fixture
def env() -> Env:
    return Env(
        SHARDHARNESS_HEALTH_TIMEOUT="0.3s",
        SHARDHARNESS_HEALTH_POLL_INTERVAL="10ms",
        SHARDHARNESS_LOG_LEVEL="critical",
    )


@pytest.fixture
def harness_config() -> HarnessConfig:
    return HarnessConfig(
        num_data_nodes=3,
        supports_dedicated_masters=False,
    )


@pytest.fixture
def factory() -> FakeClusterFactory:
    return FakeClusterFactory()


@pytest.fixture
def logger() -> Logger:
    return Logger()


@pytest.fixture
def registry(
    factory: FakeClusterFactory,
    harness_config: HarnessConfig,
    logger: Logger,
) -> ClusterRegistry:
    return ClusterRegistry(factory, config=harness_config, logger=logger)


@pytest.fixture
async def handle(registry: ClusterRegistry) -> AsyncGenerator[ClusterHandle, None]:
    handle = await registry.acquire("tests.suite", Scope.SUITE, TEST_SEED)
    yield handle
    await registry.release_all()


@pytest.fixture
def cluster(factory: FakeClusterFactory, handle: ClusterHandle) -> FakeCluster:
    return factory.clusters[-1]


@pytest.fixture
def store(cluster: FakeCluster) -> FakeStore:
    return cluster.store


@pytest.fixture
def rng() -> random.Random:
    return random.Random(TEST_SEED)
