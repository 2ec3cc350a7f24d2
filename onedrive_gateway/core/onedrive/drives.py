"""Drive discovery, used to find the drive id to configure."""

from typing import Any

from onedrive_gateway.core.logging import get_logger
from onedrive_gateway.core.onedrive.client import GraphClient
from onedrive_gateway.core.onedrive.models import DriveSummary

logger = get_logger(__name__)


class DriveService:
    """Read-only access to the drives visible to the application."""

    def __init__(self, client: GraphClient) -> None:
        self._client = client

    async def list_drives(self) -> list[DriveSummary]:
        """List drives the application can see."""
        result = await self._client.call("GET", "/drives")
        drives = [DriveSummary.from_graph(item) for item in result.get("value", [])]
        logger.info("drives_listed", count=len(drives))
        return drives

    async def get_drive(self, drive_id: str) -> dict[str, Any]:
        """Fetch the raw Graph drive resource, including quota and owner."""
        return await self._client.call("GET", f"/drives/{drive_id}")
