"""Channel state store domain interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Optional

from .entities import PaymentChannel


class AdvanceStatus(IntEnum):
    """Result codes of an atomic channel advance.

    CONFLICT, ADVANCED and MISSING match the status codes returned by the
    store's Lua scripts.
    """

    CONFLICT = 0
    ADVANCED = 1
    MISSING = 2
    CAPACITY_EXCEEDED = 3


class ChannelStateStore(ABC):
    """Abstract store holding the authoritative state of payment channels.

    Implementations raise ``ChannelStoreUnavailableError`` on transport
    failures and ``ChannelStoreCorruptedError`` when a record cannot be decoded.
    """

    @abstractmethod
    async def get(self, channel_id: str) -> Optional[PaymentChannel]:
        """Return the current channel state, or None if the channel is unknown."""
        pass

    @abstractmethod
    async def compare_and_advance(
        self,
        channel_id: str,
        expected_authorized_amount: int,
        expected_nonce: int,
        delta: int,
    ) -> tuple[AdvanceStatus, Optional[PaymentChannel]]:
        """
        Atomically advance the authorized amount by ``delta`` and the nonce by one.

        The advance only happens if the stored authorized amount and nonce still
        equal the expected values, and only moves those two fields: any other
        change to the record since it was read is reported as CONFLICT.

        Returns:
          (ADVANCED, channel) -> stored (channel holds the new state)
          (CONFLICT, channel) -> expected values are stale (channel holds current state)
          (MISSING, None) -> channel is not in the store
          (CAPACITY_EXCEEDED, channel) -> advance would exceed the deposit
        """
        pass

    @abstractmethod
    async def save_channel_if_absent(self, channel: PaymentChannel) -> bool:
        """Store a channel mirror unless one already exists. Returns True if stored."""
        pass
