"""Payment channel state routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, status

from ....application.escrow.dtos import ChannelStateResponseDTO
from ....domain.errors import ChannelStoreCorruptedError, ChannelStoreUnavailableError
from ....domain.escrow.channel_state_store import ChannelStateStore
from ..dependencies import get_channel_state_store

router = APIRouter(prefix="/channels", tags=["channels"])


@router.get("/{channel_id}", response_model=ChannelStateResponseDTO)
async def get_channel_state(
    channel_id: str = Path(..., description="Payment channel identifier"),
    channel_state_store: ChannelStateStore = Depends(get_channel_state_store),
) -> ChannelStateResponseDTO:
    """Return the stored state of a channel so clients can resync their nonce."""
    try:
        channel = await channel_state_store.get(channel_id)
    except ChannelStoreUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except ChannelStoreCorruptedError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Payment channel state is unreadable",
        )
    if channel is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Payment channel {channel_id} not found",
        )
    return ChannelStateResponseDTO.from_channel(channel)
