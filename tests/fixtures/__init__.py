"""Test fixtures for in-memory implementations."""

from .fake_chain_oracle import FakeChainOracle
from .in_memory_repositories import (
    AlwaysConflictingChannelStateStore,
    InMemoryChannelStateStore,
)
from .in_memory_storage import (
    InMemoryKeyValueStore,
    SlowKeyValueStore,
    SlowScriptKeyValueStore,
    UnavailableKeyValueStore,
)

__all__ = [
    "AlwaysConflictingChannelStateStore",
    "FakeChainOracle",
    "InMemoryChannelStateStore",
    "InMemoryKeyValueStore",
    "SlowKeyValueStore",
    "SlowScriptKeyValueStore",
    "UnavailableKeyValueStore",
]
