"""Upload workflow: upload session, single-range transfer, share link.

The whole file is sent as one Content-Range request. Inbound uploads are
capped well below Graph's per-request limit, so no chunking is needed.
"""

import asyncio
from pathlib import Path
from urllib.parse import quote

from onedrive_gateway.core.logging import get_logger
from onedrive_gateway.core.onedrive.client import GraphClient
from onedrive_gateway.core.onedrive.exceptions import (
    ApiError,
    SessionCreationError,
    ShareLinkError,
    UploadTransferError,
)
from onedrive_gateway.core.onedrive.models import UploadResult

logger = get_logger(__name__)

SHARE_LINK_BODY = {"type": "view", "scope": "anonymous"}


def stored_file_name(
    original_file_name: str,
    local_file_path: str | Path,
    custom_file_name: str | None = None,
) -> str:
    """Build the remote file name: ``<base>.<originalExtension>``.

    ``base`` is the custom name when given, else the local temp file's
    base name. The extension keeps its original case.

    >>> stored_file_name("photo.PNG", "/tmp/abc123")
    'abc123.PNG'
    """
    base = custom_file_name or Path(local_file_path).name
    _, dot, extension = original_file_name.rpartition(".")
    if not dot or not extension:
        return base
    return f"{base}.{extension}"


class UploadWorkflow:
    """Uploads one local file into a OneDrive folder and shares it."""

    def __init__(self, client: GraphClient) -> None:
        self._client = client

    async def upload(
        self,
        original_file_name: str,
        local_file_path: str | Path,
        drive_id: str,
        folder_id: str,
        custom_file_name: str | None = None,
    ) -> UploadResult:
        """Upload a local file and create an anonymous view link for it.

        The local file is only read; deleting it is the caller's job.

        Args:
            original_file_name: Client-supplied name, source of the extension
            local_file_path: Path of the received temp file
            drive_id: OneDrive drive ID
            folder_id: Target folder item ID
            custom_file_name: Optional base name replacing the temp file name

        Returns:
            UploadResult with webUrl, share link and stored file name

        Raises:
            SessionCreationError: If the upload session cannot be opened
            UploadTransferError: If the bytes cannot be transferred
            ShareLinkError: If the share link fails (the file already exists)
        """
        file_name = stored_file_name(original_file_name, local_file_path, custom_file_name)

        logger.info(
            "upload_started",
            drive_id=drive_id,
            folder_id=folder_id,
            file_name=file_name,
        )

        upload_url = await self._create_session(drive_id, folder_id, file_name)
        item = await self._transfer(upload_url, Path(local_file_path), file_name)
        share_url = await self._create_share_link(drive_id, item)

        logger.info(
            "upload_completed",
            drive_id=drive_id,
            item_id=item.get("id"),
            file_name=file_name,
        )
        return UploadResult(
            web_url=item.get("webUrl", ""),
            share_url=share_url,
            file_name=file_name,
        )

    async def _create_session(self, drive_id: str, folder_id: str, file_name: str) -> str:
        path = (
            f"/drives/{drive_id}/items/{folder_id}:/{quote(file_name)}:/createUploadSession"
        )
        try:
            result = await self._client.call(
                "POST",
                path,
                json={"item": {"@microsoft.graph.conflictBehavior": "replace"}},
            )
        except ApiError as e:
            raise SessionCreationError(
                f"Failed to create upload session for {file_name}: {e.provider_message}",
                file_name=file_name,
            ) from e

        upload_url = result.get("uploadUrl")
        if not upload_url:
            raise SessionCreationError(
                "Upload session response missing uploadUrl",
                file_name=file_name,
            )
        return upload_url

    async def _transfer(self, upload_url: str, local_path: Path, file_name: str) -> dict:
        try:
            content = await asyncio.to_thread(local_path.read_bytes)
        except OSError as e:
            raise UploadTransferError(
                f"Cannot read local file for {file_name}: {e}",
                file_name=file_name,
            ) from e

        size = len(content)
        if size == 0:
            raise UploadTransferError(
                f"Refusing to upload empty file {file_name}",
                file_name=file_name,
            )

        logger.debug("upload_transfer", file_name=file_name, size=size)
        try:
            status_code, item = await self._client.put_upload_content(
                upload_url,
                content,
                content_range=f"bytes 0-{size - 1}/{size}",
            )
        except ApiError as e:
            raise UploadTransferError(
                f"Upload failed for {file_name}: {e.provider_message}",
                file_name=file_name,
            ) from e

        if status_code not in (200, 201) or not item.get("id"):
            raise UploadTransferError(
                f"Upload of {file_name} did not complete (status {status_code})",
                file_name=file_name,
            )
        return item

    async def _create_share_link(self, drive_id: str, item: dict) -> str:
        item_id = item["id"]
        try:
            result = await self._client.call(
                "POST",
                f"/drives/{drive_id}/items/{item_id}/createLink",
                json=SHARE_LINK_BODY,
            )
        except ApiError as e:
            logger.error(
                "upload_share_link_failed",
                drive_id=drive_id,
                item_id=item_id,
                status_code=e.status,
            )
            raise ShareLinkError(
                f"File uploaded but share link failed: {e.provider_message}",
                item_id=item_id,
                web_url=item.get("webUrl"),
            ) from e

        return share_url_from_link(result, item_id)


def share_url_from_link(result: dict, item_id: str) -> str:
    """Extract ``link.webUrl`` from a createLink response.

    Raises:
        ShareLinkError: If the response carries no link URL
    """
    share_url = (result.get("link") or {}).get("webUrl")
    if not share_url:
        raise ShareLinkError("createLink response missing link.webUrl", item_id=item_id)
    return share_url
