"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from onedrive_gateway.config import get_settings

settings = get_settings()

# headers_enabled=False: slowapi cannot inject headers into endpoints that
# return models instead of Response objects.
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.rate_limit_storage_uri,
    headers_enabled=False,
    enabled=settings.rate_limit_enabled,
)


def upload_limit() -> str:
    """Get upload endpoint rate limit."""
    return settings.rate_limit_upload


def list_limit() -> str:
    """Get listing endpoint rate limit."""
    return settings.rate_limit_list
