"""High-level OneDrive gateway wiring the core components together.

One OneDriveGateway is built per process (in the FastAPI lifespan). It owns
the single TokenManager and GraphClient and exposes the operations the HTTP
layer needs: each resolves the upload folder first, then runs a workflow.
"""

from dataclasses import dataclass
from pathlib import Path

from onedrive_gateway.config import Settings
from onedrive_gateway.core.logging import get_logger
from onedrive_gateway.core.onedrive.auth import TokenManager
from onedrive_gateway.core.onedrive.client import GraphClient
from onedrive_gateway.core.onedrive.drives import DriveService
from onedrive_gateway.core.onedrive.exceptions import AuthConfigError
from onedrive_gateway.core.onedrive.folders import FolderResolver
from onedrive_gateway.core.onedrive.listing import ListingWorkflow
from onedrive_gateway.core.onedrive.models import (
    Credentials,
    FilePage,
    FileRecord,
    UploadResult,
)
from onedrive_gateway.core.onedrive.upload import UploadWorkflow

logger = get_logger(__name__)


@dataclass
class OneDriveGateway:
    """Container for the OneDrive core components bound to one drive."""

    drive_id: str
    tokens: TokenManager
    client: GraphClient
    folders: FolderResolver
    uploads: UploadWorkflow
    listings: ListingWorkflow
    drives: DriveService

    @classmethod
    def from_settings(cls, settings: Settings) -> "OneDriveGateway":
        """Build the component graph from application settings."""
        credentials = Credentials(
            client_id=settings.microsoft_client_id,
            client_secret=settings.microsoft_client_secret,
            tenant_id=settings.microsoft_tenant_id,
        )
        tokens = TokenManager(credentials)
        client = GraphClient(tokens, timeout=settings.graph_timeout_seconds)
        return cls(
            drive_id=settings.microsoft_drive_id,
            tokens=tokens,
            client=client,
            folders=FolderResolver(
                client,
                root_folder=settings.root_folder_name,
                default_folder=settings.default_folder_name,
            ),
            uploads=UploadWorkflow(client),
            listings=ListingWorkflow(client),
            drives=DriveService(client),
        )

    async def close(self) -> None:
        """Release the HTTP client."""
        await self.client.close()

    def _require_drive_id(self) -> str:
        if not self.drive_id:
            logger.error("onedrive_drive_not_configured")
            raise AuthConfigError(
                "Missing required Microsoft configuration: drive_id",
                missing=("drive_id",),
            )
        return self.drive_id

    def folder_name_or_default(self, folder_name: str | None) -> str:
        return self.folders.folder_name_or_default(folder_name)

    async def upload_image(
        self,
        original_file_name: str,
        local_file_path: str | Path,
        folder_name: str | None = None,
        custom_file_name: str | None = None,
    ) -> UploadResult:
        """Ensure the folder, then upload the local file into it."""
        drive_id = self._require_drive_id()
        folder_id = await self.folders.ensure_upload_folder(drive_id, folder_name)
        return await self.uploads.upload(
            original_file_name,
            local_file_path,
            drive_id,
            folder_id,
            custom_file_name=custom_file_name,
        )

    async def list_files(self, folder_name: str | None = None) -> list[FileRecord]:
        """Ensure the folder, then list all of its files."""
        drive_id = self._require_drive_id()
        folder_id = await self.folders.ensure_upload_folder(drive_id, folder_name)
        return await self.listings.list_files(drive_id, folder_id)

    async def list_files_paged(
        self,
        folder_name: str | None,
        page_size: int,
        page_token: str | None = None,
    ) -> FilePage:
        """Ensure the folder, then list one page of its files."""
        drive_id = self._require_drive_id()
        folder_id = await self.folders.ensure_upload_folder(drive_id, folder_name)
        return await self.listings.list_files_paged(
            drive_id, folder_id, page_size, skip_token=page_token
        )
