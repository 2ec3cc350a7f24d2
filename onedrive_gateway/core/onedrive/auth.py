"""App-only token management for Microsoft Graph.

TokenManager acquires tokens through MSAL's client-credentials flow and
keeps exactly one cached token. A token is reused until it enters the
safety margin before its expiry. Concurrent callers that find no usable
token share a single in-flight refresh instead of each hitting the
identity provider.
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import msal
import requests

from onedrive_gateway.core.logging import get_logger
from onedrive_gateway.core.onedrive.exceptions import (
    AuthConfigError,
    AuthFailureReason,
    AuthRequestError,
)
from onedrive_gateway.core.onedrive.models import (
    TOKEN_SAFETY_MARGIN,
    AccessToken,
    Credentials,
    TokenStatus,
)

logger = get_logger(__name__)

AUTHORITY_BASE_URL = "https://login.microsoftonline.com"
GRAPH_DEFAULT_SCOPE = ["https://graph.microsoft.com/.default"]

# OAuth2 error codes returned by the token endpoint
INVALID_CREDENTIAL_ERRORS = frozenset({"invalid_client", "unauthorized_client"})
MALFORMED_REQUEST_ERRORS = frozenset(
    {
        "invalid_request",
        "invalid_scope",
        "invalid_grant",
        "unsupported_grant_type",
        "invalid_resource",
    }
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenManager:
    """Owns the process-wide Graph access token.

    Construct once at startup and inject into every GraphClient.

    Attributes:
        _credentials: Client id/secret/tenant used for the grant
        _token: Currently cached token, or None
        _pending: Refresh task shared by concurrent callers, or None
    """

    def __init__(
        self,
        credentials: Credentials,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the token manager.

        The MSAL application is created lazily on the first refresh, since
        constructing it performs authority discovery over the network.

        Args:
            credentials: App-only client credentials
            clock: Returns the current UTC time; injectable for tests
        """
        self._credentials = credentials
        self._clock = clock
        self._token: AccessToken | None = None
        self._pending: asyncio.Task[AccessToken] | None = None
        self._msal_app: msal.ConfidentialClientApplication | None = None

    @property
    def is_configured(self) -> bool:
        """Check if all client credentials are present."""
        return self._credentials.is_complete

    async def get_valid_token(self) -> AccessToken:
        """Return a usable access token, refreshing it when needed.

        Returns:
            Cached token when outside the safety margin, otherwise a fresh one

        Raises:
            AuthConfigError: If any client credential is missing
            AuthRequestError: If the token endpoint rejects the request
        """
        missing = self._credentials.missing_fields()
        if missing:
            logger.error("graph_token_not_configured", missing=list(missing))
            raise AuthConfigError(
                "Missing required Microsoft configuration: " + ", ".join(missing),
                missing=missing,
            )

        token = self._token
        if token is not None and token.is_valid(self._clock()):
            return token

        if self._pending is None:
            logger.debug("graph_token_refresh_started")
            self._pending = asyncio.ensure_future(self._refresh())
            self._pending.add_done_callback(self._clear_pending)
        else:
            logger.debug("graph_token_refresh_joined")

        # Shielded so a cancelled caller does not cancel the shared refresh
        return await asyncio.shield(self._pending)

    def _clear_pending(self, task: "asyncio.Task[AccessToken]") -> None:
        if self._pending is task:
            self._pending = None

    async def _refresh(self) -> AccessToken:
        """Run the client-credentials grant and replace the cached token."""
        requested_at = self._clock()
        result = await asyncio.to_thread(self._acquire_token_for_client)
        token = self._handle_auth_result(result, requested_at)
        self._token = token
        logger.info(
            "graph_token_refreshed",
            expires_at=token.expires_at.isoformat(),
        )
        return token

    def _acquire_token_for_client(self) -> dict[str, Any] | None:
        """Blocking MSAL call, executed in a worker thread."""
        try:
            if self._msal_app is None:
                self._msal_app = self._create_msal_app()
            return self._msal_app.acquire_token_for_client(scopes=GRAPH_DEFAULT_SCOPE)
        except requests.exceptions.ConnectionError as e:
            logger.error("graph_token_endpoint_unreachable", error=str(e))
            raise AuthRequestError(
                "Connection failed: unable to reach Microsoft identity platform",
                reason=AuthFailureReason.NETWORK_UNREACHABLE,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error("graph_token_transport_error", error=str(e))
            raise AuthRequestError(
                f"Token request failed: {e}",
                reason=AuthFailureReason.UNKNOWN,
            ) from e

    def _create_msal_app(self) -> msal.ConfidentialClientApplication:
        """Create the MSAL ConfidentialClientApplication for this tenant.

        Raises:
            AuthRequestError: If the authority (tenant) cannot be resolved
        """
        authority = f"{AUTHORITY_BASE_URL}/{self._credentials.tenant_id}"
        logger.debug(
            "graph_msal_app_creating",
            authority=authority,
            client_id=self._credentials.client_id[:8] + "...",
        )
        try:
            return msal.ConfidentialClientApplication(
                client_id=self._credentials.client_id,
                client_credential=self._credentials.client_secret,
                authority=authority,
            )
        except ValueError as e:
            # MSAL raises ValueError when tenant discovery fails
            logger.error("graph_msal_authority_invalid", error=str(e))
            raise AuthRequestError(
                f"Bad request: {e}",
                reason=AuthFailureReason.MALFORMED_REQUEST,
            ) from e

    def _handle_auth_result(
        self,
        result: dict[str, Any] | None,
        requested_at: datetime,
    ) -> AccessToken:
        """Turn an MSAL result into an AccessToken or a typed failure.

        Args:
            result: MSAL result dictionary containing access_token or error
            requested_at: Time the grant was started, base for expiry

        Raises:
            AuthRequestError: If the result is empty or carries an error
        """
        if result is None:
            logger.error("graph_token_failed", reason="null_result")
            raise AuthRequestError("Failed to acquire token: no result from MSAL")

        if "error" in result:
            error_code = result.get("error", "unknown")
            description = result.get("error_description", "No description")
            reason = self._classify_error(error_code)
            logger.error(
                "graph_token_failed",
                error_code=error_code,
                reason=reason.value,
                error_description=description[:100],
            )
            if reason is AuthFailureReason.INVALID_CREDENTIALS:
                message = "Authentication failed: Invalid credentials"
            elif reason is AuthFailureReason.MALFORMED_REQUEST:
                message = f"Bad request: {description}"
            else:
                message = f"Microsoft identity error: {error_code} - {description}"
            raise AuthRequestError(message, reason=reason, error_code=error_code)

        value = result.get("access_token")
        if not value:
            logger.error("graph_token_failed", reason="missing_access_token")
            raise AuthRequestError("Failed to acquire token: access_token not in response")

        expires_in = int(result.get("expires_in", 0))
        return AccessToken(
            value=value,
            expires_at=requested_at + timedelta(seconds=expires_in),
        )

    @staticmethod
    def _classify_error(error_code: str) -> AuthFailureReason:
        if error_code in INVALID_CREDENTIAL_ERRORS:
            return AuthFailureReason.INVALID_CREDENTIALS
        if error_code in MALFORMED_REQUEST_ERRORS:
            return AuthFailureReason.MALFORMED_REQUEST
        return AuthFailureReason.UNKNOWN

    def status(self) -> TokenStatus:
        """Report whether a token is cached and how long it stays usable.

        ``expires_in`` counts seconds until the safety margin is reached.
        """
        token = self._token
        if token is None:
            return TokenStatus(has_token=False, is_valid=False)

        now = self._clock()
        usable_until = token.expires_at - TOKEN_SAFETY_MARGIN
        return TokenStatus(
            has_token=True,
            is_valid=token.is_valid(now),
            expires_in=int((usable_until - now).total_seconds()),
        )

    def invalidate(self) -> None:
        """Drop the cached token so the next call performs a refresh."""
        self._token = None
