"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Microsoft Graph (app-only client credentials)
    microsoft_client_id: str = ""
    microsoft_client_secret: str = ""
    microsoft_tenant_id: str = ""
    microsoft_drive_id: str = ""

    # Application
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # CORS
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    # Upload handling
    upload_dir: str = "./uploads"
    max_upload_size_mb: int = 5

    # OneDrive layout
    root_folder_name: str = "Pictures"
    default_folder_name: str = "uploads"
    default_page_size: int = 10

    # Outbound Graph calls
    graph_timeout_seconds: float = 60.0

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str = "memory://"
    rate_limit_upload: str = "10/minute"
    rate_limit_list: str = "60/minute"

    # Logging
    log_level: str = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        return v.upper() if isinstance(v, str) else "INFO"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            # Handle JSON-like string from env var
            import json

            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",")]
        return v

    @model_validator(mode="after")
    def validate_onedrive_settings(self) -> "Settings":
        """Require complete Graph credentials outside development."""
        if self.max_upload_size_mb < 1:
            raise ValueError("MAX_UPLOAD_SIZE_MB must be at least 1")

        if self.environment == "production":
            required = {
                "MICROSOFT_CLIENT_ID": self.microsoft_client_id,
                "MICROSOFT_CLIENT_SECRET": self.microsoft_client_secret,
                "MICROSOFT_TENANT_ID": self.microsoft_tenant_id,
                "MICROSOFT_DRIVE_ID": self.microsoft_drive_id,
            }
            errors = [
                f"{name} is required in production"
                for name, value in required.items()
                if not value or value.startswith("your-")
            ]

            if errors:
                raise ValueError(
                    "Production configuration errors:\n"
                    + "\n".join(f"  - {e}" for e in errors)
                )

        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def is_onedrive_configured(self) -> bool:
        """Check if Graph credentials and the target drive are all set."""
        return bool(
            self.microsoft_client_id
            and self.microsoft_client_secret
            and self.microsoft_tenant_id
            and self.microsoft_drive_id
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
