"""Value objects passed between the OneDrive core components."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

# Tokens are treated as expired this long before the provider's expiry
TOKEN_SAFETY_MARGIN = timedelta(seconds=300)


@dataclass(frozen=True)
class Credentials:
    """App-only client credentials for the Microsoft identity platform."""

    client_id: str
    client_secret: str = field(repr=False)
    tenant_id: str

    def missing_fields(self) -> tuple[str, ...]:
        """Names of the credential fields that are empty."""
        return tuple(
            name
            for name in ("client_id", "client_secret", "tenant_id")
            if not getattr(self, name)
        )

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()


@dataclass(frozen=True)
class AccessToken:
    """Bearer token with the provider-reported expiry."""

    value: str = field(repr=False)
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        """True while ``now`` is outside the safety margin before expiry."""
        return now < self.expires_at - TOKEN_SAFETY_MARGIN


@dataclass(frozen=True)
class TokenStatus:
    """Diagnostic view of the token cache."""

    has_token: bool
    is_valid: bool
    expires_in: int | None = None


@dataclass(frozen=True)
class FolderReference:
    """Resolved identity of an upload folder."""

    drive_id: str
    folder_id: str
    name: str


@dataclass(frozen=True)
class UploadResult:
    """Outcome of a successful upload."""

    web_url: str
    share_url: str
    file_name: str


@dataclass(frozen=True)
class FileRecord:
    """One remote file with its anonymous share link."""

    id: str
    name: str
    web_url: str
    share_url: str
    size: int
    created_at: str
    modified_at: str
    thumbnail_url: str | None = None


@dataclass(frozen=True)
class FilePage:
    """One page of a paginated listing."""

    files: list[FileRecord]
    next_page_token: str | None = None


@dataclass(frozen=True)
class DriveSummary:
    """Drive as returned by drive discovery."""

    id: str
    drive_type: str
    name: str | None = None
    owner_name: str | None = None
    owner_email: str | None = None

    @classmethod
    def from_graph(cls, item: dict[str, Any]) -> "DriveSummary":
        owner = (item.get("owner") or {}).get("user") or {}
        return cls(
            id=item["id"],
            drive_type=item.get("driveType", ""),
            name=item.get("name"),
            owner_name=owner.get("displayName"),
            owner_email=owner.get("email"),
        )
