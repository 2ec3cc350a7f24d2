"""Core application exception classes.

All gateway-specific errors inherit from GatewayError so the HTTP layer can
translate any of them into a single failure envelope.

Exception Hierarchy:
    GatewayError (base)
    +-- ConfigurationError (missing/invalid configuration)
    +-- ExternalServiceError (API/service failures)
        +-- OneDriveError (defined in core/onedrive/exceptions.py)
"""


class GatewayError(Exception):
    """Base exception for all gateway application errors.

    Example:
        try:
            await uploads.upload(...)
        except GatewayError as e:
            logger.error("upload_failed", error=str(e), exc_info=True)
            raise
    """

    pass


class ConfigurationError(GatewayError):
    """Exception for missing or invalid configuration.

    Typically indicates a deployment/setup issue, such as missing
    Microsoft Graph credentials or drive id, rather than a runtime error.
    """

    pass


class ExternalServiceError(GatewayError):
    """Base exception for failures talking to an external service.

    The only external service is Microsoft (identity platform and Graph);
    its errors live in the OneDriveError hierarchy.
    """

    pass
