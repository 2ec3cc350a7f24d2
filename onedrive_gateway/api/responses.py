"""Helpers for the failure envelope returned by every endpoint."""

from fastapi.responses import JSONResponse

from onedrive_gateway.schemas.base import ErrorResponse


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build a ``{success: false, message}`` JSON response."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
    )
