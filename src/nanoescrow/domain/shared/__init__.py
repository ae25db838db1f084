"""Shared domain utilities.

This package is domain-accessible and should not depend on application code.
"""

from .chain_oracle_protocol import ChainOracleFactory, ChainOracleProtocol
from .pricing_policy import PricingPolicy

__all__ = ["ChainOracleFactory", "ChainOracleProtocol", "PricingPolicy"]
