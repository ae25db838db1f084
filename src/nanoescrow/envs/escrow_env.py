from __future__ import annotations

import logging
import os
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "ESCROW_CONFIG_PATH"

HIDDEN_KEYS = frozenset({"private_key", "hdwallet_mnemonic"})


class StorageClientSettings(BaseModel):
    """Connection settings for the payment channel storage backend."""

    model_config = ConfigDict(frozen=True)

    endpoints: list[str] = ["redis://127.0.0.1:6379/0"]
    connection_timeout: float = Field(5.0, gt=0)
    request_timeout: float = Field(3.0, gt=0)

    @field_validator("endpoints")
    @classmethod
    def validate_endpoints(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("At least one storage endpoint is required")
        return v


class PricingSettings(BaseModel):
    """Pricing policy selection."""

    model_config = ConfigDict(frozen=True)

    type: Literal["fixed", "invoice"] = "fixed"
    fixed_price: Optional[int] = Field(None, ge=0)
    method_prices: dict[str, int] = {}

    @field_validator("method_prices")
    @classmethod
    def validate_method_prices(cls, v: dict[str, int]) -> dict[str, int]:
        for method, price in v.items():
            if price < 0:
                raise ValueError(f"Price for method '{method}' cannot be negative")
        return v


class Settings(BaseSettings):
    """Immutable daemon settings, built once at startup and passed explicitly."""

    model_config = SettingsConfigDict(
        env_prefix="ESCROW_",
        env_nested_delimiter="__",
        frozen=True,
        extra="ignore",
    )

    daemon_type: str = "grpc"
    daemon_end_point: str = "127.0.0.1:8080"

    api_host: str = "0.0.0.0"
    api_port: int = 8080
    api_debug: bool = False
    api_workers: int = Field(1, ge=1)

    app_name: str = "NanoEscrow"
    app_version: str = "1.0.0"

    ssl_cert: str = ""
    ssl_key: str = ""

    blockchain_enabled: bool = True
    chain_oracle_url: str = "http://127.0.0.1:8545"
    chain_oracle_timeout: float = Field(5.0, gt=0)

    passthrough_enabled: bool = False
    passthrough_endpoint: str = ""

    private_key: str = ""
    hdwallet_mnemonic: str = ""

    log_level: str = "info"

    payment_channel_storage_type: Literal["redis"] = "redis"
    payment_channel_storage_client: StorageClientSettings = StorageClientSettings()

    pricing: PricingSettings = PricingSettings()

    @field_validator("daemon_type")
    @classmethod
    def validate_daemon_type(cls, v: str) -> str:
        if v not in ("grpc", "http"):
            raise ValueError(f"unrecognized daemon_type '{v}'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        if logging.getLevelName(v.upper()) not in (
            logging.DEBUG,
            logging.INFO,
            logging.WARNING,
            logging.ERROR,
            logging.CRITICAL,
        ):
            raise ValueError(f"unrecognized log_level '{v}'")
        return v.lower()

    @model_validator(mode="after")
    def validate_ssl_and_passthrough(self) -> "Settings":
        if bool(self.ssl_cert) != bool(self.ssl_key):
            raise ValueError("SSL requires both key and certificate when enabled")
        if self.passthrough_enabled and not self.passthrough_endpoint:
            raise ValueError("passthrough_endpoint is required when passthrough is enabled")
        return self

    @property
    def database_url(self) -> str:
        return self.payment_channel_storage_client.endpoints[0]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Keyword arguments, then ``ESCROW_*`` env vars, then the JSON config file."""
        sources: tuple[PydanticBaseSettingsSource, ...] = (init_settings, env_settings)
        config_path = os.environ.get(CONFIG_PATH_ENV)
        if config_path:
            sources += (JsonConfigSettingsSource(settings_cls, json_file=config_path),)
        return sources


def get_settings() -> Settings:
    """Return typed settings sourced from defaults, a JSON file and env vars.

    Precedence, lowest first: model defaults, the JSON file named by
    ``ESCROW_CONFIG_PATH``, then ``ESCROW_*`` environment variables. Nested
    fields use ``__``, e.g. ``ESCROW_PRICING__FIXED_PRICE``.
    """
    return Settings()


def _flatten(prefix: str, value: Any, out: dict[str, Any]) -> None:
    if isinstance(value, dict) and value and prefix.split(".")[-1] != "method_prices":
        for key, nested in value.items():
            _flatten(f"{prefix}.{key}" if prefix else key, nested, out)
    else:
        out[prefix] = value


def log_settings(settings: Settings) -> None:
    """Log the final configuration, one sorted key per line, hiding secrets."""
    flat: dict[str, Any] = {}
    _flatten("", settings.model_dump(), flat)

    logger.info("Final configuration:")
    for key in sorted(flat):
        if key.split(".")[-1] in HIDDEN_KEYS:
            logger.info("%s: ***", key)
        else:
            logger.info("%s: %s", key, flat[key])
