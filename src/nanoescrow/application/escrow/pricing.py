"""Pricing policies mapping a call to its required price.

All policies are pure: they only look at their construction-time tables and
the call's method name and invoice.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from ...domain.errors import PricingResolutionError
from ...domain.escrow.entities import InvoiceMetadata, PricingResult
from ...domain.shared import PricingPolicy
from ...envs.escrow_env import Settings


class FixedMethodPricing:
    """Fixed price per method, with an optional default for unlisted methods."""

    def __init__(
        self,
        method_prices: Optional[Mapping[str, int]] = None,
        *,
        default_price: Optional[int] = None,
    ) -> None:
        prices = dict(method_prices or {})
        for method, price in prices.items():
            if price < 0:
                raise ValueError(f"Price for method '{method}' cannot be negative")
        if default_price is not None and default_price < 0:
            raise ValueError("Default price cannot be negative")
        self._method_prices = MappingProxyType(prices)
        self._default_price = default_price

    def price(
        self, method_name: str, invoice: Optional[InvoiceMetadata] = None
    ) -> PricingResult:
        price = self._method_prices.get(method_name, self._default_price)
        if price is None:
            raise PricingResolutionError(f"No price configured for method '{method_name}'")
        return PricingResult(price=price, source="method")


class InvoicePricing:
    """Price carried by the caller-presented invoice.

    Calls without a priced invoice are delegated to ``fallback`` when one is
    configured.
    """

    def __init__(self, fallback: Optional[PricingPolicy] = None) -> None:
        self._fallback = fallback

    def price(
        self, method_name: str, invoice: Optional[InvoiceMetadata] = None
    ) -> PricingResult:
        if invoice is not None and invoice.price is not None:
            return PricingResult(price=invoice.price, source="invoice")
        if self._fallback is not None:
            return self._fallback.price(method_name, invoice)
        if invoice is None:
            raise PricingResolutionError(
                f"Method '{method_name}' requires an invoice"
            )
        raise PricingResolutionError(f"Invoice '{invoice.invoice_id}' carries no price")


def build_pricing_policy(settings: Settings) -> PricingPolicy:
    """Select the pricing policy configured for this deployment."""
    pricing = settings.pricing
    fixed: Optional[FixedMethodPricing] = None
    if pricing.method_prices or pricing.fixed_price is not None:
        fixed = FixedMethodPricing(
            pricing.method_prices, default_price=pricing.fixed_price
        )

    if pricing.type == "invoice":
        return InvoicePricing(fallback=fixed)
    if fixed is None:
        raise ValueError("Fixed pricing requires fixed_price or method_prices")
    return fixed
