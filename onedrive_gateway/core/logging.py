"""Structured logging for the gateway.

Every event is a snake_case name with keyword context. Two gateway-specific
processors run before rendering:

- ``redact_secrets`` masks bearer tokens, client secrets and pre-authenticated
  upload-session URLs, both as dedicated keys and when embedded in free text
  such as transport error messages.
- ``add_service_context`` stamps each event with the service name and the
  deployment environment, so JSON logs from several instances can be merged.
"""

import logging
import re
import sys
from contextvars import ContextVar, Token
from typing import Any
from uuid import uuid4

import structlog

from onedrive_gateway.config import Settings, get_settings

SERVICE_NAME = "onedrive-gateway"

# Correlation ID of the HTTP request being served
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

REDACTED = "***"

# Keys whose values are always masked
REDACTED_KEYS = frozenset(
    {"access_token", "authorization", "client_secret", "token", "upload_url"}
)

# Secrets that can appear inside other values (httpx errors echo the URL)
SECRET_PATTERNS = (
    re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE),
    re.compile(r"([?&]tempauth=)[^&\s\"']+", re.IGNORECASE),
)

# Client libraries that log full URLs or token-cache details at INFO/DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "msal", "urllib3")


def add_request_id(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add request ID to log entries if available."""
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def scrub_text(value: str) -> str:
    """Mask bearer tokens and upload-session credentials inside a string."""
    for pattern in SECRET_PATTERNS:
        value = pattern.sub(rf"\g<1>{REDACTED}", value)
    return value


def redact_secrets(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Mask bearer tokens, client secrets and pre-authenticated upload URLs."""
    for key, value in event_dict.items():
        if key in REDACTED_KEYS:
            event_dict[key] = REDACTED
        elif isinstance(value, str):
            event_dict[key] = scrub_text(value)
    return event_dict


def make_service_context(settings: Settings) -> structlog.typing.Processor:
    """Build a processor adding the service name and environment."""

    def add_service_context(
        _logger: logging.Logger,
        _method_name: str,
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("environment", settings.environment)
        return event_dict

    return add_service_context


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Development renders coloured console lines; staging and production render
    one JSON object per line with exceptions formatted inline.

    Args:
        settings: Settings to use; defaults to the cached application settings
    """
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level, logging.INFO)

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_request_id,
    ]

    if settings.is_development:
        processors += [redact_secrets, structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors += [
            make_service_context(settings),
            structlog.processors.format_exc_info,
            redact_secrets,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def generate_request_id() -> str:
    """Generate a new request correlation ID."""
    return str(uuid4())[:8]


def bind_request_id(request_id: str) -> Token:
    """Set the correlation ID for the current request context.

    Returns:
        Token for ``request_id_ctx.reset`` once the request is done
    """
    return request_id_ctx.set(request_id)
