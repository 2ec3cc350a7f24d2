"""Folder listing with share links and thumbnails."""

import asyncio
import re
from typing import Any
from urllib.parse import unquote

from onedrive_gateway.core.logging import get_logger
from onedrive_gateway.core.onedrive.client import GraphClient
from onedrive_gateway.core.onedrive.exceptions import ApiError, ShareLinkError
from onedrive_gateway.core.onedrive.models import FilePage, FileRecord
from onedrive_gateway.core.onedrive.upload import SHARE_LINK_BODY, share_url_from_link

logger = get_logger(__name__)

SKIP_TOKEN_PATTERN = re.compile(r"[?&]\$?skiptoken=([^&]+)", re.IGNORECASE)
THUMBNAIL_SIZES = ("large", "medium", "small")


def extract_skip_token(next_link: str | None) -> str | None:
    """Pull the skiptoken query value out of an @odata.nextLink URL."""
    if not next_link:
        return None
    match = SKIP_TOKEN_PATTERN.search(next_link)
    if match is None:
        return None
    return unquote(match.group(1))


def largest_thumbnail_url(item: dict[str, Any]) -> str | None:
    """URL of the largest size in the item's first thumbnail set."""
    thumbnails = item.get("thumbnails") or []
    if not thumbnails:
        return None
    first = thumbnails[0]
    for size in THUMBNAIL_SIZES:
        url = (first.get(size) or {}).get("url")
        if url:
            return url
    return None


class ListingWorkflow:
    """Lists folder children and attaches an anonymous view link to each.

    Share links are requested concurrently for the whole page with no local
    cap; the provider's throttling is the only bound.
    """

    def __init__(self, client: GraphClient) -> None:
        self._client = client

    async def list_files(self, drive_id: str, folder_id: str) -> list[FileRecord]:
        """List every child of a folder, following continuation tokens.

        Raises:
            ApiError: If a children request fails
            ShareLinkError: If any child's share link fails
        """
        files: list[FileRecord] = []
        seen_tokens: set[str] = set()
        skip_token: str | None = None
        while True:
            params: dict[str, Any] = {"$expand": "thumbnails"}
            if skip_token:
                params["$skiptoken"] = skip_token
            result = await self._fetch_children(drive_id, folder_id, params)
            files.extend(await self._build_records(drive_id, result.get("value", [])))
            skip_token = extract_skip_token(result.get("@odata.nextLink"))
            if skip_token is None:
                break
            if skip_token in seen_tokens:
                logger.warning(
                    "folder_listing_token_repeated",
                    drive_id=drive_id,
                    folder_id=folder_id,
                    pages=len(seen_tokens) + 1,
                )
                break
            seen_tokens.add(skip_token)

        logger.info("folder_listed", drive_id=drive_id, folder_id=folder_id, count=len(files))
        return files

    async def list_files_paged(
        self,
        drive_id: str,
        folder_id: str,
        page_size: int,
        skip_token: str | None = None,
    ) -> FilePage:
        """List one page of a folder.

        Args:
            drive_id: OneDrive drive ID
            folder_id: Folder item ID
            page_size: Maximum number of children in the page ($top)
            skip_token: Continuation token from the previous page

        Returns:
            FilePage whose next_page_token is None on the last page
        """
        params: dict[str, Any] = {"$expand": "thumbnails", "$top": page_size}
        if skip_token:
            params["$skiptoken"] = skip_token

        result = await self._fetch_children(drive_id, folder_id, params)
        files = await self._build_records(drive_id, result.get("value", []))
        next_page_token = extract_skip_token(result.get("@odata.nextLink"))

        logger.info(
            "folder_page_listed",
            drive_id=drive_id,
            folder_id=folder_id,
            count=len(files),
            has_more=next_page_token is not None,
        )
        return FilePage(files=files, next_page_token=next_page_token)

    async def _fetch_children(
        self,
        drive_id: str,
        folder_id: str,
        params: dict[str, Any],
    ) -> dict[str, Any]:
        return await self._client.call(
            "GET",
            f"/drives/{drive_id}/items/{folder_id}/children",
            params=params,
        )

    async def _build_records(
        self,
        drive_id: str,
        items: list[dict[str, Any]],
    ) -> list[FileRecord]:
        return list(
            await asyncio.gather(*(self._build_record(drive_id, item) for item in items))
        )

    async def _build_record(self, drive_id: str, item: dict[str, Any]) -> FileRecord:
        item_id = item["id"]
        try:
            link = await self._client.call(
                "POST",
                f"/drives/{drive_id}/items/{item_id}/createLink",
                json=SHARE_LINK_BODY,
            )
        except ApiError as e:
            logger.error(
                "listing_share_link_failed",
                drive_id=drive_id,
                item_id=item_id,
                status_code=e.status,
            )
            raise ShareLinkError(
                f"Share link failed for {item.get('name', item_id)}: {e.provider_message}",
                item_id=item_id,
                web_url=item.get("webUrl"),
            ) from e

        return FileRecord(
            id=item_id,
            name=item.get("name", ""),
            web_url=item.get("webUrl", ""),
            share_url=share_url_from_link(link, item_id),
            size=item.get("size", 0),
            created_at=item.get("createdDateTime", ""),
            modified_at=item.get("lastModifiedDateTime", ""),
            thumbnail_url=largest_thumbnail_url(item),
        )
