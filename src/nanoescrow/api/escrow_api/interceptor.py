"""Payment interceptor for metered routes.

Every metered route depends on ``require_income``: it reads the payment
headers of the call, validates the claimed income, and rejects the call with
the validator's status before any business logic runs.
"""

from __future__ import annotations

import logging
import time
from typing import Mapping, Optional

from fastapi import Depends, HTTPException, Path, Request
from prometheus_client import Counter, Histogram

from ...application.escrow.use_cases.income import IncomeValidator
from ...domain.errors import ErrorKind, IncomeValidationError
from ...domain.escrow.entities import (
    CallMetadata,
    IncomeRecord,
    InvoiceMetadata,
    ValidationOutcome,
)
from .dependencies import get_income_validator

logger = logging.getLogger(__name__)

CHANNEL_ID_HEADER = "x-payment-channel-id"
NONCE_HEADER = "x-payment-channel-nonce"
PREVIOUS_AMOUNT_HEADER = "x-payment-channel-previous-amount"
AMOUNT_HEADER = "x-payment-channel-amount"
INVOICE_ID_HEADER = "x-payment-invoice-id"
INVOICE_PRICE_HEADER = "x-payment-invoice-price"
STATUS_HEADER = "x-payment-status"


income_validations_total = Counter(
    "income_validations_total",
    "Total income validations by outcome",
    ["outcome"],
)

income_validation_duration_seconds = Histogram(
    "income_validation_duration_seconds",
    "Wall time to validate the income of a call",
    ["outcome"],
)


def _required_int(headers: Mapping[str, str], name: str) -> int:
    raw = headers.get(name)
    if raw is None or not raw.strip():
        raise IncomeValidationError(
            ErrorKind.INVALID_ARGUMENT, f"Missing payment header '{name}'"
        )
    try:
        return int(raw.strip())
    except ValueError:
        raise IncomeValidationError(
            ErrorKind.INVALID_ARGUMENT,
            f"Payment header '{name}' must be an integer, got '{raw}'",
        )


def _invoice(headers: Mapping[str, str]) -> Optional[InvoiceMetadata]:
    invoice_id = headers.get(INVOICE_ID_HEADER)
    if not invoice_id:
        return None
    price: Optional[int] = None
    if headers.get(INVOICE_PRICE_HEADER) is not None:
        price = _required_int(headers, INVOICE_PRICE_HEADER)
        if price < 0:
            raise IncomeValidationError(
                ErrorKind.INVALID_ARGUMENT, "Invoice price cannot be negative"
            )
    return InvoiceMetadata(invoice_id=invoice_id, price=price)


def build_income_record(method_name: str, headers: Mapping[str, str]) -> IncomeRecord:
    """Build the income record of a call from its payment headers.

    Income is the difference between the amount signed for this call and the
    previously authorized amount the caller claims.

    Raises:
        IncomeValidationError: INVALID_ARGUMENT if a header is missing or malformed.
    """
    channel_id = headers.get(CHANNEL_ID_HEADER)
    if not channel_id or not channel_id.strip():
        raise IncomeValidationError(
            ErrorKind.INVALID_ARGUMENT, f"Missing payment header '{CHANNEL_ID_HEADER}'"
        )
    nonce = _required_int(headers, NONCE_HEADER)
    previous_amount = _required_int(headers, PREVIOUS_AMOUNT_HEADER)
    amount = _required_int(headers, AMOUNT_HEADER)

    return IncomeRecord(
        income=amount - previous_amount,
        metadata=CallMetadata(
            method_name=method_name,
            channel_id=channel_id.strip(),
            nonce=nonce,
            previous_authorized_amount=previous_amount,
            invoice=_invoice(headers),
        ),
    )


async def require_income(
    request: Request,
    method_name: str = Path(..., description="Metered method name"),
    validator: IncomeValidator = Depends(get_income_validator),
) -> ValidationOutcome:
    """Validate the income of the call, or reject it with the validator's status."""
    start_time = time.perf_counter()
    try:
        record = build_income_record(method_name, request.headers)
        outcome = await validator.validate(record)
    except IncomeValidationError as e:
        outcome = ValidationOutcome.reject(e.kind, e.reason)
    except Exception:
        logger.exception("Failed to validate income for %s", method_name)
        outcome = ValidationOutcome.reject(
            ErrorKind.INTERNAL, "Failed to validate payment"
        )

    label = "accepted" if outcome.accepted else outcome.kind.value.lower()
    income_validations_total.labels(outcome=label).inc()
    elapsed = time.perf_counter() - start_time
    income_validation_duration_seconds.labels(outcome=label).observe(elapsed)

    if not outcome.accepted:
        assert outcome.kind is not None
        raise HTTPException(
            status_code=outcome.kind.http_status,
            detail=outcome.reason,
            headers={STATUS_HEADER: outcome.kind.value},
        )
    return outcome
