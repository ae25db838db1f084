"""FastAPI dependencies for the escrow API."""

from __future__ import annotations

from typing import AsyncIterator, Optional, Union

from fastapi import Depends, Request

from ...application.escrow.use_cases.income import IncomeValidator
from ...domain.escrow.channel_state_store import ChannelStateStore
from ...domain.shared import ChainOracleFactory, PricingPolicy
from ...envs.escrow_env import Settings
from ...infrastructure.chain.chain_oracle_client import AsyncChainOracleClient
from ...infrastructure.database import DatabaseClient, get_database_client
from ...infrastructure.escrow.channel_state_store_impl import ChannelStateStoreImpl
from ...infrastructure.http.http_client import AsyncHttpClient
from ...infrastructure.storage import KeyValueStore, RedisKeyValueStore


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_database_client_with_settings(
    settings: Settings = Depends(get_app_settings),
) -> DatabaseClient:
    """Get database client with settings."""
    return get_database_client(settings)


# Scripts are registered per store instance, so the store is shared.
_key_value_store: Union[RedisKeyValueStore, None] = None


def get_key_value_store(
    db_client: DatabaseClient = Depends(get_database_client_with_settings),
) -> KeyValueStore:
    """Get key-value store."""
    global _key_value_store
    if _key_value_store is None:
        _key_value_store = RedisKeyValueStore(db_client)
    return _key_value_store


def get_channel_state_store(
    store: KeyValueStore = Depends(get_key_value_store),
) -> ChannelStateStore:
    """Get channel state store."""
    return ChannelStateStoreImpl(store)


def get_pricing_policy(request: Request) -> PricingPolicy:
    """Get the pricing policy built once at application creation."""
    return request.app.state.pricing_policy


def get_chain_oracle_factory(
    settings: Settings = Depends(get_app_settings),
) -> Optional[ChainOracleFactory]:
    """Get chain oracle factory, or None when the blockchain is disabled."""
    if not settings.blockchain_enabled:
        return None

    def factory() -> AsyncChainOracleClient:
        return AsyncChainOracleClient(
            settings.chain_oracle_url, timeout=settings.chain_oracle_timeout
        )

    return factory


def get_income_validator(
    channel_state_store: ChannelStateStore = Depends(get_channel_state_store),
    pricing_policy: PricingPolicy = Depends(get_pricing_policy),
    chain_oracle_factory: Optional[ChainOracleFactory] = Depends(
        get_chain_oracle_factory
    ),
    settings: Settings = Depends(get_app_settings),
) -> IncomeValidator:
    """Get income validator."""
    return IncomeValidator(
        channel_state_store=channel_state_store,
        pricing_policy=pricing_policy,
        chain_oracle_factory=chain_oracle_factory,
        store_timeout=settings.payment_channel_storage_client.request_timeout,
        oracle_timeout=settings.chain_oracle_timeout,
    )


async def get_service_client(
    settings: Settings = Depends(get_app_settings),
) -> AsyncIterator[Optional[AsyncHttpClient]]:
    """Get an HTTP client for the passthrough service, if passthrough is enabled."""
    if not settings.passthrough_enabled:
        yield None
        return
    async with AsyncHttpClient(settings.passthrough_endpoint) as client:
        yield client
