"""Unit tests for escrow domain entities and the error taxonomy."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from nanoescrow.domain.errors import ErrorKind, IncomeValidationError
from nanoescrow.domain.escrow.entities import (
    CommittedChannel,
    PaymentChannel,
    ValidationOutcome,
)
from tests.fixtures.builders import NOW, make_channel, make_record


class TestPaymentChannel:
    """Test PaymentChannel invariants."""

    def test_remaining_amount(self) -> None:
        assert make_channel().remaining_amount == 80

    def test_authorized_cannot_exceed_full(self) -> None:
        with pytest.raises(ValidationError, match="exceeds"):
            make_channel(full_amount=10, authorized_amount=11)

    def test_negative_amounts_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_channel(authorized_amount=-1)

    def test_is_expired(self) -> None:
        channel = make_channel(expiration=NOW)
        assert channel.is_expired(NOW)
        assert channel.is_expired(NOW + timedelta(seconds=1))
        assert not channel.is_expired(NOW - timedelta(seconds=1))

    def test_naive_expiration_is_utc(self) -> None:
        channel = make_channel(expiration=datetime(2026, 1, 1, 12, 0))
        assert channel.is_expired(NOW)
        assert not channel.is_expired(NOW - timedelta(minutes=1))

    def test_json_round_trip_keeps_timezone(self) -> None:
        channel = make_channel()
        assert PaymentChannel.model_validate_json(channel.model_dump_json()) == channel


class TestCommittedChannel:
    def test_to_payment_channel_starts_unspent(self) -> None:
        committed = CommittedChannel(
            channel_id="7", full_amount=50, expiration=NOW, sender="0xs"
        )
        channel = committed.to_payment_channel()
        assert channel.channel_id == "7"
        assert channel.full_amount == 50
        assert channel.authorized_amount == 0
        assert channel.nonce == 0
        assert channel.sender == "0xs"


class TestIncomeRecord:
    def test_negative_income_constructs(self) -> None:
        assert make_record(income=-5).income == -5

    def test_is_frozen(self) -> None:
        record = make_record()
        with pytest.raises(ValidationError):
            record.income = 99  # type: ignore[misc]


class TestValidationOutcome:
    def test_accept(self) -> None:
        outcome = ValidationOutcome.accept(make_channel())
        assert outcome.accepted
        assert outcome.kind is None
        assert outcome.channel == make_channel()

    def test_reject(self) -> None:
        outcome = ValidationOutcome.reject(ErrorKind.ABORTED, "busy")
        assert not outcome.accepted
        assert outcome.kind == ErrorKind.ABORTED
        assert outcome.reason == "busy"
        assert outcome.channel is None


class TestErrorKind:
    @pytest.mark.parametrize(
        "kind,grpc_code,http_status",
        [
            (ErrorKind.INVALID_ARGUMENT, 3, 400),
            (ErrorKind.PERMISSION_DENIED, 7, 403),
            (ErrorKind.RESOURCE_EXHAUSTED, 8, 429),
            (ErrorKind.FAILED_PRECONDITION, 9, 400),
            (ErrorKind.ABORTED, 10, 409),
            (ErrorKind.INTERNAL, 13, 500),
            (ErrorKind.UNAVAILABLE, 14, 503),
        ],
    )
    def test_status_mapping(
        self, kind: ErrorKind, grpc_code: int, http_status: int
    ) -> None:
        assert kind.grpc_code == grpc_code
        assert kind.http_status == http_status

    def test_validation_error_carries_kind(self) -> None:
        error = IncomeValidationError(ErrorKind.PERMISSION_DENIED, "too little")
        assert error.kind == ErrorKind.PERMISSION_DENIED
        assert str(error) == "too little"
