"""Core application utilities and configuration."""

from onedrive_gateway.core.logging import configure_logging, generate_request_id, get_logger

__all__ = ["configure_logging", "generate_request_id", "get_logger"]
