"""Domain-specific exceptions and the income validation error taxonomy."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Reason a call was rejected, named after the matching gRPC status."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"
    ABORTED = "ABORTED"
    UNAVAILABLE = "UNAVAILABLE"
    INTERNAL = "INTERNAL"

    @property
    def grpc_code(self) -> int:
        return _GRPC_CODES[self]

    @property
    def http_status(self) -> int:
        return _HTTP_STATUSES[self]


_GRPC_CODES = {
    ErrorKind.INVALID_ARGUMENT: 3,
    ErrorKind.PERMISSION_DENIED: 7,
    ErrorKind.RESOURCE_EXHAUSTED: 8,
    ErrorKind.FAILED_PRECONDITION: 9,
    ErrorKind.ABORTED: 10,
    ErrorKind.INTERNAL: 13,
    ErrorKind.UNAVAILABLE: 14,
}

# Same mapping grpc-gateway uses when transcoding gRPC statuses to HTTP.
_HTTP_STATUSES = {
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.RESOURCE_EXHAUSTED: 429,
    ErrorKind.FAILED_PRECONDITION: 400,
    ErrorKind.ABORTED: 409,
    ErrorKind.INTERNAL: 500,
    ErrorKind.UNAVAILABLE: 503,
}


class IncomeValidationError(ValueError):
    """Raised by income validation rules when a call must be rejected."""

    def __init__(self, kind: ErrorKind, reason: str) -> None:
        super().__init__(reason)
        self.kind = kind
        self.reason = reason


class PricingResolutionError(ValueError):
    """Raised when a pricing policy cannot resolve a price for a call."""


class ChannelStoreUnavailableError(Exception):
    """Raised when the channel state store cannot be reached."""


class ChannelStoreCorruptedError(Exception):
    """Raised when a stored channel record cannot be decoded."""


class ChainOracleUnavailableError(Exception):
    """Raised when the chain oracle cannot be reached or answers garbage."""
