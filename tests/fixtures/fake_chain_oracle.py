"""Fake implementation of ChainOracleProtocol for unit testing."""

from __future__ import annotations

import asyncio
from typing import Optional, Type
from types import TracebackType

from nanoescrow.domain.escrow.entities import CommittedChannel


class FakeChainOracle:
    """Configurable chain oracle.

    Committed channels are registered with ``commit``; lookups of other
    channels return None. Calls are recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.closed = 0
        self._channels: dict[str, CommittedChannel] = {}
        self._should_raise: Optional[Exception] = None
        self._delay: float = 0.0

    def commit(self, channel: CommittedChannel) -> None:
        self._channels[channel.channel_id] = channel

    def set_error(self, error: Exception) -> None:
        """Make every subsequent lookup raise ``error``."""
        self._should_raise = error

    def set_delay(self, delay: float) -> None:
        self._delay = delay

    async def read_committed_channel(
        self, channel_id: str
    ) -> Optional[CommittedChannel]:
        self.calls.append(channel_id)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._should_raise is not None:
            raise self._should_raise
        return self._channels.get(channel_id)

    async def aclose(self) -> None:
        self.closed += 1

    async def __aenter__(self) -> "FakeChainOracle":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
