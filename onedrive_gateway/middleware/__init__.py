"""HTTP middleware."""

from onedrive_gateway.middleware.timing import TimingMiddleware

__all__ = ["TimingMiddleware"]
