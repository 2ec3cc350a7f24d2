"""OneDrive-specific exception classes.

These exceptions map identity-platform and Microsoft Graph API failures
onto the sub-kinds the gateway distinguishes. Workflow errors keep the
underlying ApiError as ``__cause__``.
"""

from enum import Enum

from onedrive_gateway.core.exceptions import ConfigurationError, ExternalServiceError


class OneDriveError(ExternalServiceError):
    """Base exception for OneDrive operations.

    All OneDrive-related errors inherit from this class so that callers
    can catch every core failure with a single except clause.
    """

    pass


class AuthConfigError(OneDriveError, ConfigurationError):
    """Raised when client credentials are incomplete.

    Fatal and never retried: no token request is attempted.
    """

    def __init__(self, message: str, missing: tuple[str, ...] = ()):
        super().__init__(message)
        self.missing = missing


class AuthFailureReason(str, Enum):
    """Why the token endpoint refused to issue a token."""

    INVALID_CREDENTIALS = "invalid_credentials"
    MALFORMED_REQUEST = "malformed_request"
    NETWORK_UNREACHABLE = "network_unreachable"
    UNKNOWN = "unknown"


class AuthRequestError(OneDriveError):
    """Raised when the token endpoint rejects or cannot serve the request."""

    def __init__(
        self,
        message: str,
        reason: AuthFailureReason = AuthFailureReason.UNKNOWN,
        error_code: str | None = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.error_code = error_code


class ApiError(OneDriveError):
    """Raised when a Graph API call fails.

    Attributes:
        status: HTTP status code, or None when no response was received
        provider_message: Error message reported by Graph (or the transport)
    """

    def __init__(self, status: int | None, provider_message: str):
        super().__init__(f"Graph API error {status}: {provider_message}")
        self.status = status
        self.provider_message = provider_message


class UnauthorizedError(ApiError):
    """HTTP 401: the bearer token was rejected.

    Not retried with a forced token refresh.
    """

    pass


class ForbiddenError(ApiError):
    """HTTP 403: the application lacks permission for the operation."""

    pass


class NotFoundError(ApiError):
    """HTTP 404: the drive, item or path does not exist."""

    pass


class UnknownApiError(ApiError):
    """Any other HTTP error status, or a transport failure (status None)."""

    pass


class RootFolderMissingError(OneDriveError):
    """Raised when the well-known root folder (e.g. Pictures) is absent.

    The root folder is a precondition and is never auto-created.
    """

    def __init__(self, message: str, drive_id: str, folder_name: str):
        super().__init__(message)
        self.drive_id = drive_id
        self.folder_name = folder_name


class UploadError(OneDriveError):
    """Base exception for upload workflow steps."""

    def __init__(self, message: str, file_name: str | None = None):
        super().__init__(message)
        self.file_name = file_name


class SessionCreationError(UploadError):
    """Raised when Graph refuses to open an upload session."""

    pass


class UploadTransferError(UploadError):
    """Raised when streaming bytes to the upload session fails.

    There is no automatic resume; the session is abandoned.
    """

    pass


class ShareLinkError(OneDriveError):
    """Raised when an anonymous view link cannot be created.

    During an upload the file already exists remotely when this is raised;
    ``item_id`` and ``web_url`` identify it.
    """

    def __init__(
        self,
        message: str,
        item_id: str | None = None,
        web_url: str | None = None,
    ):
        super().__init__(message)
        self.item_id = item_id
        self.web_url = web_url
