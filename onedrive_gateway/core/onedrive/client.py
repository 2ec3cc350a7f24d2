"""Microsoft Graph API client for OneDrive operations.

Thin request layer over httpx:
- Every call obtains a token from TokenManager and sends it as a bearer header
- HTTP and transport failures are mapped to ApiError sub-kinds
- No retries: a 401 is surfaced, not retried with a forced refresh
"""

from typing import Any

import httpx

from onedrive_gateway.core.logging import get_logger
from onedrive_gateway.core.onedrive.auth import TokenManager
from onedrive_gateway.core.onedrive.exceptions import (
    ApiError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    UnknownApiError,
)

logger = get_logger(__name__)

ERRORS_BY_STATUS: dict[int, type[ApiError]] = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
}


def provider_message(response: httpx.Response) -> str:
    """Extract Graph's ``error.message`` from an error response.

    Falls back to the raw body, then to the HTTP reason phrase.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        # Identity-platform style bodies
        if body.get("error_description"):
            return str(body["error_description"])

    return response.text[:500] or response.reason_phrase


def api_error_from_response(response: httpx.Response) -> ApiError:
    """Build the ApiError sub-kind matching the response status."""
    error_class = ERRORS_BY_STATUS.get(response.status_code, UnknownApiError)
    return error_class(response.status_code, provider_message(response))


class GraphClient:
    """Authenticated Microsoft Graph API client.

    Attributes:
        GRAPH_BASE_URL: Base URL for Microsoft Graph API v1.0
    """

    GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"

    def __init__(
        self,
        token_manager: TokenManager,
        timeout: float = 60.0,
    ) -> None:
        """Initialize Graph client with the shared token manager.

        Args:
            token_manager: TokenManager used on every call
            timeout: Transport timeout in seconds for outbound requests
        """
        self._tokens = token_manager
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the underlying HTTP client.

        The bearer header is attached per request, not to the client, so
        token refreshes never require recreating it.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.GRAPH_BASE_URL,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("graph_client_closed")

    async def call(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send an authenticated request to the Graph API.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE)
            path: API path (e.g., /drives/{drive-id}/items/{item-id})
            json: Optional JSON request body
            params: Optional query parameters (OData options keep their $)

        Returns:
            Parsed JSON response body, or an empty dict for empty bodies

        Raises:
            AuthConfigError: If credentials are incomplete
            AuthRequestError: If a token cannot be obtained
            UnauthorizedError: On HTTP 401
            ForbiddenError: On HTTP 403
            NotFoundError: On HTTP 404
            UnknownApiError: On other error statuses or transport failures
        """
        token = await self._tokens.get_valid_token()
        client = await self._get_client()

        kwargs: dict[str, Any] = {
            "headers": {"Authorization": f"Bearer {token.value}"},
        }
        if json is not None:
            kwargs["json"] = json
        if params:
            kwargs["params"] = params

        logger.debug("graph_request", method=method, path=path)
        response = await self._send(client, method, path, **kwargs)

        if response.status_code >= 400:
            error = api_error_from_response(response)
            logger.error(
                "graph_request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
                error_type=type(error).__name__,
                provider_message=error.provider_message,
            )
            raise error

        logger.debug(
            "graph_request_success",
            method=method,
            path=path,
            status_code=response.status_code,
        )
        return self._parse_body(response)

    async def put_upload_content(
        self,
        upload_url: str,
        content: bytes,
        content_range: str,
    ) -> tuple[int, dict[str, Any]]:
        """Send bytes to a pre-authenticated upload session URL.

        Upload session URLs embed their own credentials, so no bearer
        header is sent.

        Args:
            upload_url: URL returned by createUploadSession
            content: Bytes for the given range
            content_range: Content-Range header value (bytes a-b/total)

        Returns:
            Tuple of HTTP status code and parsed JSON body

        Raises:
            ApiError: Sub-kind matching the failure, as for call()
        """
        client = await self._get_client()
        response = await self._send(
            client,
            "PUT",
            upload_url,
            content=content,
            headers={
                "Content-Length": str(len(content)),
                "Content-Range": content_range,
            },
        )

        if response.status_code >= 400:
            error = api_error_from_response(response)
            logger.error(
                "graph_upload_put_failed",
                status_code=response.status_code,
                error_type=type(error).__name__,
                provider_message=error.provider_message,
            )
            raise error

        return response.status_code, self._parse_body(response)

    @staticmethod
    async def _send(
        client: httpx.AsyncClient,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            return await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.error(
                "graph_connection_error",
                method=method,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise UnknownApiError(None, f"Connection error: {e}") from e

    @staticmethod
    def _parse_body(response: httpx.Response) -> dict[str, Any]:
        if response.status_code == 204 or not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as e:
            logger.error(
                "graph_response_invalid_json",
                status_code=response.status_code,
                content_type=response.headers.get("content-type"),
            )
            raise UnknownApiError(
                response.status_code, "Invalid JSON in Graph response"
            ) from e
        if not isinstance(body, dict):
            raise UnknownApiError(
                response.status_code, "Unexpected JSON shape in Graph response"
            )
        return body
