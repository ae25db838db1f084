from __future__ import annotations

from typing import Optional, Type
from types import TracebackType

import httpx

from ...domain.errors import ChainOracleUnavailableError
from ...domain.escrow.entities import CommittedChannel
from ..http.http_client import AsyncHttpClient


class AsyncChainOracleClient:
    """Asynchronous read-only client for the chain oracle HTTP API.

    The oracle serves committed channel facts at ``GET /channels/{channel_id}``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = AsyncHttpClient(base_url, timeout=timeout, transport=transport)

    async def read_committed_channel(
        self, channel_id: str
    ) -> Optional[CommittedChannel]:
        try:
            resp = await self._http.get(f"/channels/{channel_id}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise ChainOracleUnavailableError(f"Chain oracle error: {e}") from e
        except httpx.RequestError as e:
            raise ChainOracleUnavailableError(
                f"Could not connect to chain oracle: {e}"
            ) from e

        try:
            return CommittedChannel.model_validate(resp.json())
        except ValueError as e:
            raise ChainOracleUnavailableError(
                f"Invalid committed channel data from chain oracle: {e}"
            ) from e

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AsyncChainOracleClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
