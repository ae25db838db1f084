"""ChannelStateStore implementation over a storage abstraction."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError

from ...domain.errors import ChannelStoreCorruptedError, ChannelStoreUnavailableError
from ...domain.escrow.channel_state_store import AdvanceStatus, ChannelStateStore
from ...domain.escrow.entities import PaymentChannel
from ..scripts import ESCROW_SCRIPTS
from ..storage import KeyValueStore, StorageUnavailableError


def _channel_key(channel_id: str) -> str:
    return f"payment_channel:{channel_id}"


class ChannelStateStoreImpl(ChannelStateStore):
    """ChannelStateStore using a KeyValueStore with atomic Lua scripts."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def register_scripts(self) -> None:
        """Register the store's Lua scripts. Call once at startup."""
        try:
            for name, script in ESCROW_SCRIPTS.items():
                await self.store.register_script(name, script)
        except StorageUnavailableError as e:
            raise ChannelStoreUnavailableError(str(e)) from e

    @staticmethod
    def _decode(raw: str) -> PaymentChannel:
        try:
            return PaymentChannel.model_validate_json(raw)
        except ValidationError as e:
            raise ChannelStoreCorruptedError(f"Invalid payment channel record: {e}") from e

    async def _get_raw(self, channel_id: str) -> Optional[str]:
        try:
            return await self.store.get(_channel_key(channel_id))
        except StorageUnavailableError as e:
            raise ChannelStoreUnavailableError(str(e)) from e

    async def _run_script(self, name: str, channel_id: str, args: list[str]) -> list[Any]:
        try:
            return await self.store.run_script(name, [_channel_key(channel_id)], args)
        except StorageUnavailableError as e:
            raise ChannelStoreUnavailableError(str(e)) from e

    async def get(self, channel_id: str) -> Optional[PaymentChannel]:
        data = await self._get_raw(channel_id)
        if not data:
            return None
        return self._decode(data)

    async def compare_and_advance(
        self,
        channel_id: str,
        expected_authorized_amount: int,
        expected_nonce: int,
        delta: int,
    ) -> tuple[AdvanceStatus, Optional[PaymentChannel]]:
        if delta < 0:
            raise ValueError("Advance delta cannot be negative")

        # The new record is built from this read; the script writes it only if
        # the stored value is still exactly current_raw.
        current_raw = await self._get_raw(channel_id)
        if not current_raw:
            return AdvanceStatus.MISSING, None
        current = self._decode(current_raw)
        if (
            current.authorized_amount != expected_authorized_amount
            or current.nonce != expected_nonce
        ):
            return AdvanceStatus.CONFLICT, current

        new_authorized = expected_authorized_amount + delta
        if new_authorized > current.full_amount:
            return AdvanceStatus.CAPACITY_EXCEEDED, current

        advanced = current.model_copy(
            update={"authorized_amount": new_authorized, "nonce": expected_nonce + 1}
        )
        result = await self._run_script(
            "compare_and_advance_channel",
            channel_id,
            [advanced.model_dump_json(), current_raw],
        )
        status = AdvanceStatus(int(result[0]))
        raw = result[1]
        return status, self._decode(raw) if raw else None

    async def save_channel_if_absent(self, channel: PaymentChannel) -> bool:
        result = await self._run_script(
            "save_channel_if_absent",
            channel.channel_id,
            [channel.model_dump_json()],
        )
        return int(result[0]) == AdvanceStatus.ADVANCED
