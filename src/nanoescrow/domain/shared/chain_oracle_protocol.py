"""Protocol interface for chain oracle implementations.

This protocol defines the read-only contract used to cross-check the channel
state store against facts committed on chain. It enables dependency injection
and makes the income validator testable with fake oracles.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol, Type, TYPE_CHECKING
from types import TracebackType

if TYPE_CHECKING:
    from ..escrow.entities import CommittedChannel


class ChainOracleProtocol(Protocol):
    """Protocol defining the interface for chain oracle clients.

    Implementations should provide:
    - A lookup of committed channel facts by channel id
    - Context manager support for resource cleanup
    """

    async def read_committed_channel(
        self, channel_id: str
    ) -> Optional["CommittedChannel"]:
        """Read the committed deposit and expiration of a channel.

        Args:
            channel_id: Payment channel identifier

        Returns:
            Committed channel facts, or None if the chain has no such channel

        Raises:
            ChainOracleUnavailableError: If the oracle cannot be reached
        """
        ...

    async def aclose(self) -> None:
        """Close the client and release resources."""
        ...

    async def __aenter__(self: "ChainOracleProtocol") -> "ChainOracleProtocol":
        ...

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        ...


# Factory type for creating chain oracle clients, one per reconciliation.
ChainOracleFactory = Callable[[], ChainOracleProtocol]
