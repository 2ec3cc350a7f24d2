"""Upload folder resolution under the well-known root folder."""

from typing import Any
from urllib.parse import quote

from onedrive_gateway.core.logging import get_logger
from onedrive_gateway.core.onedrive.client import GraphClient
from onedrive_gateway.core.onedrive.exceptions import (
    NotFoundError,
    RootFolderMissingError,
)
from onedrive_gateway.core.onedrive.models import FolderReference

logger = get_logger(__name__)

DEFAULT_ROOT_FOLDER = "Pictures"
DEFAULT_UPLOAD_FOLDER = "uploads"


def odata_string(value: str) -> str:
    """Quote a value as an OData string literal."""
    return "'" + value.replace("'", "''") + "'"


class FolderResolver:
    """Ensures the target upload folder exists below the root folder.

    Nothing is cached: every call re-resolves the root and the child,
    so a folder renamed or deleted remotely is never served from a stale id.
    """

    def __init__(
        self,
        client: GraphClient,
        root_folder: str = DEFAULT_ROOT_FOLDER,
        default_folder: str = DEFAULT_UPLOAD_FOLDER,
    ) -> None:
        self._client = client
        self._root_folder = root_folder
        self._default_folder = default_folder

    async def ensure_upload_folder(
        self,
        drive_id: str,
        folder_name: str | None = None,
    ) -> str:
        """Return the id of the upload folder, creating it if absent.

        Args:
            drive_id: OneDrive drive ID
            folder_name: Child folder name below the root; defaults to "uploads"

        Returns:
            Folder item ID

        Raises:
            RootFolderMissingError: If the root folder does not exist
            ApiError: For Graph failures during lookup or creation
        """
        reference = await self.resolve(drive_id, folder_name)
        return reference.folder_id

    async def resolve(
        self,
        drive_id: str,
        folder_name: str | None = None,
    ) -> FolderReference:
        """Resolve (or create) the upload folder and return its identity."""
        name = self.folder_name_or_default(folder_name)
        root_id = await self._get_root_folder_id(drive_id)

        existing = await self._find_child_folder(drive_id, root_id, name)
        if existing is not None:
            logger.debug(
                "upload_folder_found",
                drive_id=drive_id,
                folder_name=name,
                folder_id=existing["id"],
            )
            return FolderReference(drive_id=drive_id, folder_id=existing["id"], name=name)

        created = await self._create_child_folder(drive_id, root_id, name)
        logger.info(
            "upload_folder_created",
            drive_id=drive_id,
            folder_name=name,
            folder_id=created["id"],
        )
        return FolderReference(drive_id=drive_id, folder_id=created["id"], name=name)

    def folder_name_or_default(self, folder_name: str | None) -> str:
        """Normalize a requested folder name, falling back to the default."""
        if folder_name is None or not folder_name.strip():
            return self._default_folder
        return folder_name.strip()

    async def _get_root_folder_id(self, drive_id: str) -> str:
        path = f"/drives/{drive_id}/root:/{quote(self._root_folder)}"
        try:
            item = await self._client.call("GET", path)
        except NotFoundError as e:
            logger.error(
                "root_folder_missing",
                drive_id=drive_id,
                root_folder=self._root_folder,
            )
            raise RootFolderMissingError(
                f"Root folder '{self._root_folder}' not found",
                drive_id=drive_id,
                folder_name=self._root_folder,
            ) from e

        if "folder" not in item:
            logger.error(
                "root_folder_not_a_folder",
                drive_id=drive_id,
                root_folder=self._root_folder,
            )
            raise RootFolderMissingError(
                f"Root item '{self._root_folder}' is not a folder",
                drive_id=drive_id,
                folder_name=self._root_folder,
            )
        return item["id"]

    async def _find_child_folder(
        self,
        drive_id: str,
        parent_id: str,
        name: str,
    ) -> dict[str, Any] | None:
        """Look up a child by name.

        The provider's name comparison decides what matches (OneDrive is
        case-insensitive); an exact-case hit is preferred when several return.
        Files with the same name are ignored.
        """
        result = await self._client.call(
            "GET",
            f"/drives/{drive_id}/items/{parent_id}/children",
            params={"$filter": f"name eq {odata_string(name)}"},
        )
        # The name filter also matches files; only folders qualify
        matches = [item for item in result.get("value", []) if "folder" in item]
        if not matches:
            return None

        for item in matches:
            if item.get("name") == name:
                return item
        return matches[0]

    async def _create_child_folder(
        self,
        drive_id: str,
        parent_id: str,
        name: str,
    ) -> dict[str, Any]:
        return await self._client.call(
            "POST",
            f"/drives/{drive_id}/items/{parent_id}/children",
            json={
                "name": name,
                "folder": {},
                "@microsoft.graph.conflictBehavior": "replace",
            },
        )
