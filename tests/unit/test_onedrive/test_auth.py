"""Tests for Graph token management."""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest
import requests

from onedrive_gateway.core.onedrive.auth import GRAPH_DEFAULT_SCOPE, TokenManager
from onedrive_gateway.core.onedrive.exceptions import (
    AuthConfigError,
    AuthFailureReason,
    AuthRequestError,
)
from onedrive_gateway.core.onedrive.models import AccessToken, Credentials

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_credentials(**overrides) -> Credentials:
    values = {
        "client_id": "test-client-id-12345678",
        "client_secret": "test-client-secret",
        "tenant_id": "test-tenant-id-12345678",
    }
    values.update(overrides)
    return Credentials(**values)


def token_result(value: str = "token-1", expires_in: int = 3600) -> dict:
    return {"access_token": value, "expires_in": expires_in, "token_type": "Bearer"}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def msal_app():
    """Patch MSAL so no network call is made."""
    with patch("msal.ConfidentialClientApplication") as mock_msal_class:
        mock_app = MagicMock()
        mock_app.acquire_token_for_client.return_value = token_result()
        mock_msal_class.return_value = mock_app
        yield mock_msal_class, mock_app


class TestTokenManagerInit:
    """Tests for TokenManager construction."""

    def test_msal_app_is_created_lazily(self, msal_app):
        """No MSAL application is built until a token is needed."""
        mock_msal_class, _ = msal_app

        manager = TokenManager(make_credentials())

        mock_msal_class.assert_not_called()
        assert manager._msal_app is None

    def test_is_configured_true_with_all_credentials(self):
        assert TokenManager(make_credentials()).is_configured is True

    def test_is_configured_false_with_missing_secret(self):
        assert TokenManager(make_credentials(client_secret="")).is_configured is False

    @pytest.mark.asyncio
    async def test_msal_app_uses_tenant_authority(self, msal_app, clock):
        """The authority URL is built from the tenant id."""
        mock_msal_class, _ = msal_app
        manager = TokenManager(make_credentials(), clock=clock)

        await manager.get_valid_token()

        mock_msal_class.assert_called_once_with(
            client_id="test-client-id-12345678",
            client_credential="test-client-secret",
            authority="https://login.microsoftonline.com/test-tenant-id-12345678",
        )


class TestGetValidToken:
    """Tests for token caching and refresh."""

    @pytest.mark.asyncio
    async def test_returns_token_from_client_credentials_grant(self, msal_app, clock):
        """First call acquires a token with the Graph default scope."""
        _, mock_app = msal_app
        manager = TokenManager(make_credentials(), clock=clock)

        token = await manager.get_valid_token()

        assert token.value == "token-1"
        assert token.expires_at == T0 + timedelta(seconds=3600)
        mock_app.acquire_token_for_client.assert_called_once_with(
            scopes=GRAPH_DEFAULT_SCOPE
        )

    @pytest.mark.asyncio
    async def test_reuses_token_outside_safety_margin(self, msal_app, clock):
        """A token is reused while more than five minutes remain."""
        _, mock_app = msal_app
        manager = TokenManager(make_credentials(), clock=clock)

        first = await manager.get_valid_token()
        clock.advance(3600 - 300 - 1)
        second = await manager.get_valid_token()

        assert second is first
        assert mock_app.acquire_token_for_client.call_count == 1

    @pytest.mark.asyncio
    async def test_refreshes_token_inside_safety_margin(self, msal_app, clock):
        """A token with five minutes or less left is replaced."""
        _, mock_app = msal_app
        mock_app.acquire_token_for_client.side_effect = [
            token_result("token-1"),
            token_result("token-2"),
        ]
        manager = TokenManager(make_credentials(), clock=clock)

        await manager.get_valid_token()
        clock.advance(3600 - 300)
        token = await manager.get_valid_token()

        assert token.value == "token-2"
        assert mock_app.acquire_token_for_client.call_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self, msal_app, clock):
        """Concurrent callers with no valid token trigger a single grant."""
        _, mock_app = msal_app
        manager = TokenManager(make_credentials(), clock=clock)

        tokens = await asyncio.gather(*(manager.get_valid_token() for _ in range(10)))

        assert mock_app.acquire_token_for_client.call_count == 1
        assert all(token is tokens[0] for token in tokens)
        assert manager._pending is None

    @pytest.mark.asyncio
    async def test_concurrent_callers_all_see_refresh_failure(self, msal_app, clock):
        """A failed shared refresh is reported to every waiting caller."""
        _, mock_app = msal_app
        mock_app.acquire_token_for_client.return_value = {
            "error": "invalid_client",
            "error_description": "AADSTS7000215: Invalid client secret provided.",
        }
        manager = TokenManager(make_credentials(), clock=clock)

        results = await asyncio.gather(
            *(manager.get_valid_token() for _ in range(3)),
            return_exceptions=True,
        )

        assert mock_app.acquire_token_for_client.call_count == 1
        assert all(isinstance(r, AuthRequestError) for r in results)

    @pytest.mark.asyncio
    async def test_failed_refresh_can_be_retried(self, msal_app, clock):
        """After a failure the next call starts a new refresh."""
        _, mock_app = msal_app
        mock_app.acquire_token_for_client.side_effect = [
            {"error": "temporarily_unavailable", "error_description": "Try later"},
            token_result("token-2"),
        ]
        manager = TokenManager(make_credentials(), clock=clock)

        with pytest.raises(AuthRequestError):
            await manager.get_valid_token()
        token = await manager.get_valid_token()

        assert token.value == "token-2"

    @pytest.mark.asyncio
    async def test_missing_credentials_raise_config_error(self, msal_app, clock):
        """Missing credentials fail before any token request."""
        mock_msal_class, mock_app = msal_app
        manager = TokenManager(make_credentials(client_id="", tenant_id=""), clock=clock)

        with pytest.raises(AuthConfigError) as exc_info:
            await manager.get_valid_token()

        assert exc_info.value.missing == ("client_id", "tenant_id")
        mock_msal_class.assert_not_called()
        mock_app.acquire_token_for_client.assert_not_called()


class TestAuthErrorClassification:
    """Tests for mapping identity-platform failures to reasons."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error_code", ["invalid_client", "unauthorized_client"])
    async def test_invalid_credentials(self, msal_app, clock, error_code):
        _, mock_app = msal_app
        mock_app.acquire_token_for_client.return_value = {
            "error": error_code,
            "error_description": "AADSTS7000215: Invalid client secret provided.",
        }
        manager = TokenManager(make_credentials(), clock=clock)

        with pytest.raises(AuthRequestError) as exc_info:
            await manager.get_valid_token()

        assert exc_info.value.reason is AuthFailureReason.INVALID_CREDENTIALS
        assert exc_info.value.error_code == error_code
        assert "Invalid credentials" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_malformed_request(self, msal_app, clock):
        _, mock_app = msal_app
        mock_app.acquire_token_for_client.return_value = {
            "error": "invalid_scope",
            "error_description": "The provided scope is not valid.",
        }
        manager = TokenManager(make_credentials(), clock=clock)

        with pytest.raises(AuthRequestError) as exc_info:
            await manager.get_valid_token()

        assert exc_info.value.reason is AuthFailureReason.MALFORMED_REQUEST
        assert "Bad request" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unknown_error_code(self, msal_app, clock):
        _, mock_app = msal_app
        mock_app.acquire_token_for_client.return_value = {
            "error": "server_error",
            "error_description": "Something broke",
        }
        manager = TokenManager(make_credentials(), clock=clock)

        with pytest.raises(AuthRequestError) as exc_info:
            await manager.get_valid_token()

        assert exc_info.value.reason is AuthFailureReason.UNKNOWN

    @pytest.mark.asyncio
    async def test_connection_error_is_network_unreachable(self, msal_app, clock):
        _, mock_app = msal_app
        mock_app.acquire_token_for_client.side_effect = (
            requests.exceptions.ConnectionError("Name or service not known")
        )
        manager = TokenManager(make_credentials(), clock=clock)

        with pytest.raises(AuthRequestError) as exc_info:
            await manager.get_valid_token()

        assert exc_info.value.reason is AuthFailureReason.NETWORK_UNREACHABLE
        assert "Connection failed" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invalid_authority_is_malformed_request(self, clock):
        """MSAL rejects an unknown tenant with ValueError on construction."""
        with patch(
            "msal.ConfidentialClientApplication",
            side_effect=ValueError("Unable to get authority configuration"),
        ):
            manager = TokenManager(make_credentials(), clock=clock)

            with pytest.raises(AuthRequestError) as exc_info:
                await manager.get_valid_token()

        assert exc_info.value.reason is AuthFailureReason.MALFORMED_REQUEST

    @pytest.mark.asyncio
    async def test_none_result(self, msal_app, clock):
        _, mock_app = msal_app
        mock_app.acquire_token_for_client.return_value = None
        manager = TokenManager(make_credentials(), clock=clock)

        with pytest.raises(AuthRequestError, match="no result from MSAL"):
            await manager.get_valid_token()

    @pytest.mark.asyncio
    async def test_missing_access_token(self, msal_app, clock):
        _, mock_app = msal_app
        mock_app.acquire_token_for_client.return_value = {"token_type": "Bearer"}
        manager = TokenManager(make_credentials(), clock=clock)

        with pytest.raises(AuthRequestError, match="access_token not in response"):
            await manager.get_valid_token()


class TestTokenStatus:
    """Tests for status() and invalidate()."""

    def test_status_without_token(self, clock):
        status = TokenManager(make_credentials(), clock=clock).status()

        assert status.has_token is False
        assert status.is_valid is False
        assert status.expires_in is None

    @pytest.mark.asyncio
    async def test_status_counts_down_to_safety_margin(self, msal_app, clock):
        manager = TokenManager(make_credentials(), clock=clock)
        await manager.get_valid_token()
        clock.advance(100)

        status = manager.status()

        assert status.has_token is True
        assert status.is_valid is True
        assert status.expires_in == 3600 - 300 - 100

    def test_status_reports_expired_token(self, clock):
        manager = TokenManager(make_credentials(), clock=clock)
        manager._token = AccessToken(value="old", expires_at=T0 + timedelta(seconds=60))

        status = manager.status()

        assert status.has_token is True
        assert status.is_valid is False
        assert status.expires_in < 0

    @pytest.mark.asyncio
    async def test_invalidate_forces_refresh(self, msal_app, clock):
        _, mock_app = msal_app
        manager = TokenManager(make_credentials(), clock=clock)
        await manager.get_valid_token()

        manager.invalidate()
        await manager.get_valid_token()

        assert mock_app.acquire_token_for_client.call_count == 2

    def test_token_value_not_in_repr(self):
        token = AccessToken(value="secret-token", expires_at=T0)
        assert "secret-token" not in repr(token)
