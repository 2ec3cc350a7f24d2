"""File listing endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, Query, Request

from onedrive_gateway.api.deps import Gateway
from onedrive_gateway.config import get_settings
from onedrive_gateway.core.logging import get_logger
from onedrive_gateway.core.onedrive.models import FileRecord
from onedrive_gateway.core.rate_limit import limiter, list_limit
from onedrive_gateway.schemas.base import SuccessResponse
from onedrive_gateway.schemas.files import FileListData, FilePageData, FileRecordSchema

logger = get_logger(__name__)

router = APIRouter(prefix="/files", tags=["files"])

settings = get_settings()

# Graph rejects $top values above this
MAX_PAGE_SIZE = 999


def to_schema(records: list[FileRecord]) -> list[FileRecordSchema]:
    return [FileRecordSchema(**asdict(record)) for record in records]


@router.get("", response_model=SuccessResponse[FileListData])
@limiter.limit(list_limit)
async def list_files(
    request: Request,
    gateway: Gateway,
    folder_name: str | None = Query(None, alias="folderName"),
) -> SuccessResponse[FileListData]:
    """List every file in ``Pictures/<folderName>`` with share links."""
    files = await gateway.list_files(folder_name)
    return SuccessResponse(
        data=FileListData(
            files=to_schema(files),
            folder_name=gateway.folder_name_or_default(folder_name),
        )
    )


@router.get("/paginated", response_model=SuccessResponse[FilePageData])
@limiter.limit(list_limit)
async def list_files_paginated(
    request: Request,
    gateway: Gateway,
    folder_name: str | None = Query(None, alias="folderName"),
    page_size: int = Query(
        settings.default_page_size, alias="pageSize", ge=1, le=MAX_PAGE_SIZE
    ),
    page_token: str | None = Query(None, alias="pageToken"),
) -> SuccessResponse[FilePageData]:
    """
    List one page of files.

    Pass the returned ``nextPageToken`` as ``pageToken`` to get the next
    page; a null token marks the last page.
    """
    page = await gateway.list_files_paged(folder_name, page_size, page_token)
    return SuccessResponse(
        data=FilePageData(
            files=to_schema(page.files),
            next_page_token=page.next_page_token,
        )
    )
