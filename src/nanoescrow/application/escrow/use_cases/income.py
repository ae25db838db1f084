"""Use case for validating the income claimed by a metered call."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Type, TypeVar

from ....domain.errors import (
    ChainOracleUnavailableError,
    ChannelStoreCorruptedError,
    ChannelStoreUnavailableError,
    ErrorKind,
    IncomeValidationError,
    PricingResolutionError,
)
from ....domain.escrow.channel_state_store import AdvanceStatus, ChannelStateStore
from ....domain.escrow.entities import IncomeRecord, PaymentChannel, ValidationOutcome
from ....domain.shared import ChainOracleFactory, PricingPolicy
from .income_validators import (
    validate_channel_capacity,
    validate_claim_matches_channel,
    validate_income_covers_price,
    validate_income_record,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# First attempt plus one retry after losing the compare-and-advance race.
MAX_ADVANCE_ATTEMPTS = 2


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IncomeValidator:
    """Decides whether a call has been paid for, and records the payment.

    The validator keeps no per-channel state of its own. Concurrent calls on
    one channel are serialized by the store's compare-and-advance: the loser
    of a race re-reads the channel once, and is rejected if it loses again.

    A store timeout or failure during the advance itself is reported as
    UNAVAILABLE, but the advance may still have been applied. Clients re-read
    the channel before signing the next claim.
    """

    def __init__(
        self,
        channel_state_store: ChannelStateStore,
        pricing_policy: PricingPolicy,
        *,
        chain_oracle_factory: Optional[ChainOracleFactory] = None,
        store_timeout: float = 3.0,
        oracle_timeout: float = 5.0,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.channel_state_store = channel_state_store
        self.pricing_policy = pricing_policy
        self.chain_oracle_factory = chain_oracle_factory
        self.store_timeout = store_timeout
        self.oracle_timeout = oracle_timeout
        self.clock = clock

    async def validate(self, record: IncomeRecord) -> ValidationOutcome:
        """Validate a call's income and advance its channel on acceptance."""
        channel_id = record.metadata.channel_id
        try:
            outcome = await self._validate(record)
        except IncomeValidationError as e:
            outcome = ValidationOutcome.reject(e.kind, e.reason)
        except (ChannelStoreUnavailableError, ChainOracleUnavailableError) as e:
            logger.warning("Income validation for channel %s unavailable: %s", channel_id, e)
            outcome = ValidationOutcome.reject(ErrorKind.UNAVAILABLE, str(e))
        except ChannelStoreCorruptedError as e:
            logger.error("Corrupted state for channel %s: %s", channel_id, e)
            outcome = ValidationOutcome.reject(
                ErrorKind.INTERNAL, "Payment channel state is unreadable"
            )

        if outcome.accepted:
            assert outcome.channel is not None
            logger.info(
                "Accepted income %d for %s on channel %s (authorized=%d, nonce=%d)",
                record.income,
                record.metadata.method_name,
                channel_id,
                outcome.channel.authorized_amount,
                outcome.channel.nonce,
            )
        else:
            logger.info(
                "Rejected income %d for %s on channel %s: %s %s",
                record.income,
                record.metadata.method_name,
                channel_id,
                outcome.kind.value if outcome.kind else "",
                outcome.reason,
            )
        return outcome

    async def _validate(self, record: IncomeRecord) -> ValidationOutcome:
        # 1) Shape of the claim
        validate_income_record(record)
        metadata = record.metadata
        assert metadata.channel_id is not None and metadata.method_name is not None

        # 2) Price of the call
        try:
            pricing = self.pricing_policy.price(metadata.method_name, metadata.invoice)
        except PricingResolutionError as e:
            raise IncomeValidationError(ErrorKind.INVALID_ARGUMENT, str(e)) from e

        # 3) Income must pay for the call
        validate_income_covers_price(record.income, pricing.price)

        reconciled = False
        for attempt in range(MAX_ADVANCE_ATTEMPTS):
            # 4) Current channel state, reconciled from chain at most once
            channel = await self._store_call(
                self.channel_state_store.get(metadata.channel_id)
            )
            if channel is None and not reconciled:
                reconciled = True
                channel = await self._reconcile_from_chain(metadata.channel_id)
            if channel is None:
                raise IncomeValidationError(
                    ErrorKind.FAILED_PRECONDITION,
                    f"Payment channel {metadata.channel_id} not found",
                )

            # 5) Stale or replayed claims
            validate_claim_matches_channel(
                channel,
                claimed_nonce=metadata.nonce,
                claimed_previous_amount=metadata.previous_authorized_amount,
            )

            # 6) Deposit and expiration
            validate_channel_capacity(channel, record.income, self.clock())

            # 7) Atomic advance conditioned on what we just read
            try:
                status, stored = await self._store_call(
                    self.channel_state_store.compare_and_advance(
                        channel.channel_id,
                        expected_authorized_amount=channel.authorized_amount,
                        expected_nonce=channel.nonce,
                        delta=record.income,
                    )
                )
            except ChannelStoreUnavailableError as e:
                # The store may have run the script before the failure reached us.
                raise ChannelStoreUnavailableError(
                    f"{e}; the advance of payment channel {channel.channel_id} "
                    f"may have been applied, re-read the channel before retrying"
                ) from e
            if status == AdvanceStatus.ADVANCED:
                assert stored is not None
                return ValidationOutcome.accept(stored)
            if status == AdvanceStatus.CAPACITY_EXCEEDED:
                raise IncomeValidationError(
                    ErrorKind.RESOURCE_EXHAUSTED,
                    f"Authorized amount would exceed payment channel "
                    f"full amount {channel.full_amount}",
                )

            logger.debug(
                "Lost advance race on channel %s (attempt %d, status %s)",
                channel.channel_id,
                attempt + 1,
                status.name,
            )

        raise IncomeValidationError(
            ErrorKind.ABORTED,
            f"Concurrent update of payment channel {metadata.channel_id}, retry the call",
        )

    async def _reconcile_from_chain(self, channel_id: str) -> Optional[PaymentChannel]:
        """Mirror a channel the store does not know from committed chain facts."""
        if self.chain_oracle_factory is None:
            return None

        async def read_committed():
            assert self.chain_oracle_factory is not None
            async with self.chain_oracle_factory() as oracle:
                return await oracle.read_committed_channel(channel_id)

        committed = await self._with_timeout(
            read_committed(),
            self.oracle_timeout,
            "Chain oracle",
            ChainOracleUnavailableError,
        )
        if committed is None:
            return None
        if committed.channel_id != channel_id:
            raise ChainOracleUnavailableError(
                f"Chain oracle answered for channel {committed.channel_id} "
                f"instead of {channel_id}"
            )

        stored = await self._store_call(
            self.channel_state_store.save_channel_if_absent(
                committed.to_payment_channel()
            )
        )
        if stored:
            logger.info("Mirrored payment channel %s from chain", channel_id)
        return await self._store_call(self.channel_state_store.get(channel_id))

    async def _store_call(self, awaitable: Awaitable[T]) -> T:
        return await self._with_timeout(
            awaitable,
            self.store_timeout,
            "Channel state store",
            ChannelStoreUnavailableError,
        )

    @staticmethod
    async def _with_timeout(
        awaitable: Awaitable[T],
        timeout: float,
        what: str,
        error_cls: Type[Exception],
    ) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except asyncio.TimeoutError as e:
            raise error_cls(f"{what} timed out after {timeout}s") from e
