"""Database connection and configuration."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Union, Protocol, Optional

import redis.asyncio as redis

from ..envs.escrow_env import StorageClientSettings


class HasStorageSettings(Protocol):
    @property
    def database_url(self) -> str: ...

    @property
    def payment_channel_storage_client(self) -> StorageClientSettings: ...


class DatabaseClient:
    """Redis client backing the payment channel state store."""

    def __init__(self, settings: HasStorageSettings):
        self.settings = settings
        self._redis: Optional[redis.Redis] = None

    def initialize_database(self) -> None:
        """Initialize Redis connection instance. No schema to create."""
        # Expecting URL like: redis://host:port/0
        client_settings = self.settings.payment_channel_storage_client
        self._redis = redis.from_url(
            self.settings.database_url,
            decode_responses=True,
            socket_connect_timeout=client_settings.connection_timeout,
            socket_timeout=client_settings.request_timeout,
        )

    @asynccontextmanager
    async def get_connection(self) -> AsyncGenerator[redis.Redis, None]:
        """Yield a Redis connection (async client)."""
        if self._redis is None:
            self.initialize_database()
        assert self._redis is not None
        try:
            yield self._redis
        finally:
            # Keep pooled connection alive; do not close here
            pass

    async def aclose(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


# Global database client instance
_db_client: Union[DatabaseClient, None] = None


def get_database_client(settings: HasStorageSettings) -> DatabaseClient:
    """Get or create database client singleton."""
    global _db_client
    if _db_client is None:
        _db_client = DatabaseClient(settings)
    return _db_client
