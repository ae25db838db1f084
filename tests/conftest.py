"""Shared pytest fixtures for income validation tests."""

from __future__ import annotations

import os
from datetime import datetime
from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio

from nanoescrow.application.escrow.pricing import FixedMethodPricing
from nanoescrow.application.escrow.use_cases.income import IncomeValidator
from nanoescrow.envs.escrow_env import Settings, StorageClientSettings
from nanoescrow.infrastructure.database import DatabaseClient
from nanoescrow.infrastructure.storage import RedisKeyValueStore
from tests.fixtures import FakeChainOracle, InMemoryChannelStateStore
from tests.fixtures.builders import NOW


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add command-line options for race condition tests."""
    parser.addoption(
        "--race-iterations",
        type=int,
        default=20,
        help="Number of iterations to run for race condition tests (default: 20)",
    )


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: NOW


@pytest.fixture
def pricing_policy() -> FixedMethodPricing:
    return FixedMethodPricing({"classify": 10, "ping": 0})


@pytest.fixture
def chain_oracle() -> FakeChainOracle:
    return FakeChainOracle()


@pytest_asyncio.fixture
async def channel_state_store() -> AsyncGenerator[InMemoryChannelStateStore, None]:
    """Create an in-memory channel state store."""
    store = InMemoryChannelStateStore()
    await store.initialize()
    yield store
    store.clear()


@pytest.fixture
def income_validator(
    channel_state_store: InMemoryChannelStateStore,
    pricing_policy: FixedMethodPricing,
    chain_oracle: FakeChainOracle,
    clock: Callable[[], datetime],
) -> IncomeValidator:
    return IncomeValidator(
        channel_state_store=channel_state_store,
        pricing_policy=pricing_policy,
        chain_oracle_factory=lambda: chain_oracle,
        store_timeout=1.0,
        oracle_timeout=1.0,
        clock=clock,
    )


@pytest_asyncio.fixture
async def redis_db_client() -> AsyncGenerator[DatabaseClient, None]:
    """Create a Redis database client for testing.

    Uses database 15 by default, or TEST_REDIS_URL if set.
    """
    import warnings

    test_redis_url = os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15")
    settings = Settings(
        payment_channel_storage_client=StorageClientSettings(
            endpoints=[test_redis_url], connection_timeout=1.0, request_timeout=1.0
        )
    )
    client = DatabaseClient(settings)
    client.initialize_database()

    try:
        async with client.get_connection() as conn:
            await conn.ping()
    except Exception as e:
        warnings.warn(
            f"Redis not available at {test_redis_url}: {e}. "
            "Tests requiring Redis will be skipped.",
            UserWarning,
        )
        await client.aclose()
        pytest.skip(f"Redis not available: {e}")

    yield client

    try:
        async with client.get_connection() as conn:
            await conn.flushdb()
    except Exception:
        pass  # Ignore cleanup errors
    await client.aclose()


@pytest_asyncio.fixture
async def redis_store(redis_db_client: DatabaseClient) -> RedisKeyValueStore:
    """Create a Redis-backed key-value store for testing."""
    return RedisKeyValueStore(redis_db_client)
