"""Token status endpoint."""

from fastapi import APIRouter

from onedrive_gateway.api.deps import Gateway
from onedrive_gateway.schemas.base import SuccessResponse
from onedrive_gateway.schemas.files import TokenStatusData

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/token-status", response_model=SuccessResponse[TokenStatusData])
async def token_status(gateway: Gateway) -> SuccessResponse[TokenStatusData]:
    """Report whether a Graph token is cached and still usable."""
    current = gateway.tokens.status()
    return SuccessResponse(
        data=TokenStatusData(
            has_token=current.has_token,
            is_valid=current.is_valid,
            expires_in=current.expires_in,
        )
    )
