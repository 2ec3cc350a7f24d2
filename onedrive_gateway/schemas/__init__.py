"""Pydantic response schemas."""

from onedrive_gateway.schemas.base import CamelModel, ErrorResponse, SuccessResponse
from onedrive_gateway.schemas.files import (
    DriveDetailData,
    DriveListData,
    DriveSchema,
    FileListData,
    FilePageData,
    FileRecordSchema,
    TokenStatusData,
    UploadData,
)

__all__ = [
    "CamelModel",
    "DriveDetailData",
    "DriveListData",
    "DriveSchema",
    "ErrorResponse",
    "FileListData",
    "FilePageData",
    "FileRecordSchema",
    "SuccessResponse",
    "TokenStatusData",
    "UploadData",
]
