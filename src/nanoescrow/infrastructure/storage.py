"""Storage abstractions and Redis implementation for repositories."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from redis.exceptions import NoScriptError, RedisError

from .database import DatabaseClient


class StorageUnavailableError(Exception):
    """Raised when the storage backend cannot serve a request."""


class KeyValueStore(ABC):
    """Abstract key-value store with minimal operations used by repositories.

    Transport failures surface as StorageUnavailableError.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def register_script(self, name: str, script: str) -> str:
        """Load a Lua script and remember it under ``name``. Returns its SHA1."""
        pass

    @abstractmethod
    async def run_script(self, name: str, keys: List[str], args: List[str]) -> Any:
        """Execute a previously registered script atomically."""
        pass


class RedisKeyValueStore(KeyValueStore):
    """Redis-backed implementation of KeyValueStore."""

    def __init__(self, db_client: DatabaseClient):
        self._db_client = db_client
        self._script_shas: Dict[str, str] = {}
        self._script_sources: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        try:
            async with self._db_client.get_connection() as conn:
                return await conn.get(key)
        except RedisError as e:
            raise StorageUnavailableError(f"Redis GET failed: {e}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            async with self._db_client.get_connection() as conn:
                await conn.set(key, value)
        except RedisError as e:
            raise StorageUnavailableError(f"Redis SET failed: {e}") from e

    async def register_script(self, name: str, script: str) -> str:
        try:
            async with self._db_client.get_connection() as conn:
                sha = await conn.script_load(script)
        except RedisError as e:
            raise StorageUnavailableError(f"Redis SCRIPT LOAD failed: {e}") from e
        self._script_shas[name] = sha
        self._script_sources[name] = script
        return sha

    async def run_script(self, name: str, keys: List[str], args: List[str]) -> Any:
        if name not in self._script_sources:
            raise ValueError(f"Script '{name}' not registered")
        try:
            async with self._db_client.get_connection() as conn:
                try:
                    return await conn.evalsha(
                        self._script_shas[name], len(keys), *keys, *args
                    )
                except NoScriptError:
                    # Script cache was flushed (e.g. Redis restart); reload it.
                    self._script_shas[name] = await conn.script_load(
                        self._script_sources[name]
                    )
                    return await conn.evalsha(
                        self._script_shas[name], len(keys), *keys, *args
                    )
        except RedisError as e:
            raise StorageUnavailableError(f"Redis EVALSHA {name} failed: {e}") from e
