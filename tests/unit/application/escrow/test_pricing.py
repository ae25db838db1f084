"""Unit tests for pricing policies."""

import pytest

from nanoescrow.application.escrow.pricing import (
    FixedMethodPricing,
    InvoicePricing,
    build_pricing_policy,
)
from nanoescrow.domain.errors import PricingResolutionError
from nanoescrow.domain.escrow.entities import InvoiceMetadata
from nanoescrow.envs.escrow_env import PricingSettings, Settings


class TestFixedMethodPricing:
    """Test FixedMethodPricing policy."""

    def test_method_price(self) -> None:
        policy = FixedMethodPricing({"classify": 10})
        result = policy.price("classify")
        assert result.price == 10
        assert result.source == "method"

    def test_default_price_for_unlisted_method(self) -> None:
        policy = FixedMethodPricing({"classify": 10}, default_price=3)
        assert policy.price("summarize").price == 3

    def test_unlisted_method_without_default_raises(self) -> None:
        policy = FixedMethodPricing({"classify": 10})
        with pytest.raises(PricingResolutionError, match="summarize"):
            policy.price("summarize")

    def test_invoice_is_ignored(self) -> None:
        policy = FixedMethodPricing({"classify": 10})
        invoice = InvoiceMetadata(invoice_id="inv-1", price=1)
        assert policy.price("classify", invoice).price == 10

    def test_is_pure(self) -> None:
        prices = {"classify": 10}
        policy = FixedMethodPricing(prices)
        prices["classify"] = 99
        assert policy.price("classify").price == 10
        assert policy.price("classify") == policy.price("classify")

    def test_negative_price_rejected(self) -> None:
        with pytest.raises(ValueError, match="cannot be negative"):
            FixedMethodPricing({"classify": -1})

    def test_negative_default_rejected(self) -> None:
        with pytest.raises(ValueError, match="cannot be negative"):
            FixedMethodPricing(default_price=-1)


class TestInvoicePricing:
    """Test InvoicePricing policy."""

    def test_price_from_invoice(self) -> None:
        policy = InvoicePricing()
        result = policy.price("classify", InvoiceMetadata(invoice_id="inv-1", price=25))
        assert result.price == 25
        assert result.source == "invoice"

    def test_missing_invoice_raises(self) -> None:
        with pytest.raises(PricingResolutionError, match="requires an invoice"):
            InvoicePricing().price("classify")

    def test_unpriced_invoice_raises(self) -> None:
        with pytest.raises(PricingResolutionError, match="carries no price"):
            InvoicePricing().price("classify", InvoiceMetadata(invoice_id="inv-1"))

    def test_fallback_used_without_invoice(self) -> None:
        policy = InvoicePricing(fallback=FixedMethodPricing({"classify": 10}))
        result = policy.price("classify")
        assert result.price == 10
        assert result.source == "method"

    def test_invoice_wins_over_fallback(self) -> None:
        policy = InvoicePricing(fallback=FixedMethodPricing({"classify": 10}))
        invoice = InvoiceMetadata(invoice_id="inv-1", price=4)
        assert policy.price("classify", invoice).price == 4


class TestBuildPricingPolicy:
    """Test build_pricing_policy selection."""

    def test_fixed(self) -> None:
        settings = Settings(pricing=PricingSettings(type="fixed", fixed_price=7))
        policy = build_pricing_policy(settings)
        assert isinstance(policy, FixedMethodPricing)
        assert policy.price("anything").price == 7

    def test_fixed_with_method_prices(self) -> None:
        settings = Settings(
            pricing=PricingSettings(method_prices={"classify": 12}, fixed_price=1)
        )
        policy = build_pricing_policy(settings)
        assert policy.price("classify").price == 12
        assert policy.price("other").price == 1

    def test_fixed_without_prices_raises(self) -> None:
        with pytest.raises(ValueError, match="requires fixed_price"):
            build_pricing_policy(Settings())

    def test_invoice_with_fallback(self) -> None:
        settings = Settings(pricing=PricingSettings(type="invoice", fixed_price=2))
        policy = build_pricing_policy(settings)
        assert isinstance(policy, InvoicePricing)
        assert policy.price("classify").price == 2

    def test_invoice_without_fallback(self) -> None:
        policy = build_pricing_policy(Settings(pricing=PricingSettings(type="invoice")))
        with pytest.raises(PricingResolutionError):
            policy.price("classify")
