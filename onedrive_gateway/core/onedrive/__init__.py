"""OneDrive integration via Microsoft Graph API.

Modules:
    - exceptions: OneDrive-specific exception classes
    - models: Value objects (tokens, folders, files, pages)
    - auth: App-only token management (TokenManager)
    - client: Graph request layer (GraphClient)
    - folders: Upload folder resolution (FolderResolver)
    - upload: Upload workflow (UploadWorkflow)
    - listing: Listing workflow (ListingWorkflow)
    - drives: Drive discovery (DriveService)
    - gateway: Component wiring used by the HTTP layer
"""

from onedrive_gateway.core.onedrive.auth import GRAPH_DEFAULT_SCOPE, TokenManager
from onedrive_gateway.core.onedrive.client import GraphClient
from onedrive_gateway.core.onedrive.drives import DriveService
from onedrive_gateway.core.onedrive.exceptions import (
    ApiError,
    AuthConfigError,
    AuthFailureReason,
    AuthRequestError,
    ForbiddenError,
    NotFoundError,
    OneDriveError,
    RootFolderMissingError,
    SessionCreationError,
    ShareLinkError,
    UnauthorizedError,
    UnknownApiError,
    UploadError,
    UploadTransferError,
)
from onedrive_gateway.core.onedrive.folders import FolderResolver
from onedrive_gateway.core.onedrive.gateway import OneDriveGateway
from onedrive_gateway.core.onedrive.listing import ListingWorkflow
from onedrive_gateway.core.onedrive.models import (
    AccessToken,
    Credentials,
    DriveSummary,
    FilePage,
    FileRecord,
    FolderReference,
    TokenStatus,
    UploadResult,
)
from onedrive_gateway.core.onedrive.upload import UploadWorkflow

__all__ = [
    # Exceptions
    "OneDriveError",
    "AuthConfigError",
    "AuthFailureReason",
    "AuthRequestError",
    "ApiError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "UnknownApiError",
    "RootFolderMissingError",
    "UploadError",
    "SessionCreationError",
    "UploadTransferError",
    "ShareLinkError",
    # Models
    "AccessToken",
    "Credentials",
    "DriveSummary",
    "FilePage",
    "FileRecord",
    "FolderReference",
    "TokenStatus",
    "UploadResult",
    # Components
    "TokenManager",
    "GraphClient",
    "FolderResolver",
    "UploadWorkflow",
    "ListingWorkflow",
    "DriveService",
    "OneDriveGateway",
    "GRAPH_DEFAULT_SCOPE",
]
