"""OneDrive Gateway: image upload and listing proxy for Microsoft Graph."""

__version__ = "1.0.0"
