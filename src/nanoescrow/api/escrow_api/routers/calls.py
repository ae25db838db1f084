"""Metered call routes."""

from __future__ import annotations

import logging
from typing import Optional, Union

import httpx
from fastapi import APIRouter, Depends, HTTPException, Path, Request, Response, status

from ....application.escrow.dtos import CallReceiptDTO
from ....domain.escrow.entities import ValidationOutcome
from ....infrastructure.http.http_client import AsyncHttpClient
from ..dependencies import get_service_client
from ..interceptor import require_income

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calls", tags=["calls"])


@router.post(
    "/{method_name}",
    response_model=None,
    status_code=status.HTTP_200_OK,
)
async def call_method(
    request: Request,
    method_name: str = Path(..., description="Metered method name"),
    outcome: ValidationOutcome = Depends(require_income),
    service_client: Optional[AsyncHttpClient] = Depends(get_service_client),
) -> Union[CallReceiptDTO, Response]:
    """Run a paid call, forwarding it to the service when passthrough is enabled."""
    channel = outcome.channel
    assert channel is not None

    if service_client is None:
        return CallReceiptDTO(
            method_name=method_name,
            channel_id=channel.channel_id,
            authorized_amount=channel.authorized_amount,
            nonce=channel.nonce,
        )

    body = await request.body()
    try:
        resp = await service_client.post(
            f"/{method_name}",
            content=body,
            headers={
                "content-type": request.headers.get("content-type", "application/json")
            },
        )
    except httpx.HTTPStatusError as e:
        resp = e.response
    except httpx.RequestError as e:
        logger.exception("Passthrough call to %s failed", method_name)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Service unavailable: {e}",
        )

    return Response(
        content=resp.content,
        status_code=resp.status_code,
        media_type=resp.headers.get("content-type"),
    )
