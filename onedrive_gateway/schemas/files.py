"""Schemas for upload, listing, drive and token-status responses."""

from typing import Any

from onedrive_gateway.schemas.base import CamelModel


class UploadData(CamelModel):
    """Result of an image upload."""

    web_url: str
    share_url: str
    file_name: str
    folder_name: str


class FileRecordSchema(CamelModel):
    """One file in a listing."""

    id: str
    name: str
    web_url: str
    share_url: str
    size: int
    created_at: str
    modified_at: str
    thumbnail_url: str | None = None


class FileListData(CamelModel):
    """All files in a folder."""

    files: list[FileRecordSchema]
    folder_name: str


class FilePageData(CamelModel):
    """One page of files."""

    files: list[FileRecordSchema]
    next_page_token: str | None = None


class DriveSchema(CamelModel):
    """Drive summary from drive discovery."""

    id: str
    drive_type: str
    name: str | None = None
    owner_name: str | None = None
    owner_email: str | None = None


class DriveListData(CamelModel):
    drives: list[DriveSchema]


class DriveDetailData(CamelModel):
    drive: dict[str, Any]


class TokenStatusData(CamelModel):
    """Token cache status; never contains the token itself."""

    has_token: bool
    is_valid: bool
    expires_in: int | None = None
