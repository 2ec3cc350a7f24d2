"""Drive discovery endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, Request

from onedrive_gateway.api.deps import Gateway
from onedrive_gateway.core.rate_limit import limiter, list_limit
from onedrive_gateway.schemas.base import SuccessResponse
from onedrive_gateway.schemas.files import DriveDetailData, DriveListData, DriveSchema

router = APIRouter(prefix="/drives", tags=["drives"])


@router.get("", response_model=SuccessResponse[DriveListData])
@limiter.limit(list_limit)
async def list_drives(request: Request, gateway: Gateway) -> SuccessResponse[DriveListData]:
    """List drives visible to the application, to find MICROSOFT_DRIVE_ID."""
    drives = await gateway.drives.list_drives()
    return SuccessResponse(
        data=DriveListData(drives=[DriveSchema(**asdict(d)) for d in drives])
    )


@router.get("/{drive_id}", response_model=SuccessResponse[DriveDetailData])
@limiter.limit(list_limit)
async def get_drive(
    request: Request,
    drive_id: str,
    gateway: Gateway,
) -> SuccessResponse[DriveDetailData]:
    """Get one drive's Graph resource."""
    drive = await gateway.drives.get_drive(drive_id)
    return SuccessResponse(data=DriveDetailData(drive=drive))
