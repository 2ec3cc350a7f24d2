"""API dependencies shared by the routers."""

from typing import Annotated

from fastapi import Depends, Request

from onedrive_gateway.core.onedrive.gateway import OneDriveGateway

__all__ = ["Gateway", "get_gateway"]


def get_gateway(request: Request) -> OneDriveGateway:
    """Return the process-wide gateway built during application startup."""
    return request.app.state.onedrive


# Type alias for dependency injection
Gateway = Annotated[OneDriveGateway, Depends(get_gateway)]
