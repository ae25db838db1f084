"""Protocol interface for pricing policies."""

from __future__ import annotations

from typing import Optional, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from ..escrow.entities import InvoiceMetadata, PricingResult


class PricingPolicy(Protocol):
    """Maps a call's identity to the price it requires.

    Implementations must be pure: the same inputs always produce the same
    price, so income validation is reproducible.
    """

    def price(
        self, method_name: str, invoice: Optional["InvoiceMetadata"] = None
    ) -> "PricingResult":
        """Return the price required for a call.

        Raises:
            PricingResolutionError: If no price applies to the call
        """
        ...
