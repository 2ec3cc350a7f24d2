"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from onedrive_gateway.api import auth, drives, files, upload
from onedrive_gateway.api.responses import error_response
from onedrive_gateway.config import get_settings
from onedrive_gateway.core.exceptions import GatewayError
from onedrive_gateway.core.logging import (
    bind_request_id,
    configure_logging,
    generate_request_id,
    get_logger,
    request_id_ctx,
)
from onedrive_gateway.core.onedrive.gateway import OneDriveGateway
from onedrive_gateway.core.rate_limit import limiter
from onedrive_gateway.middleware.timing import TimingMiddleware

settings = get_settings()

configure_logging(settings)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the OneDrive gateway on startup, close it on shutdown."""
    logger.info(
        "application_starting",
        environment=settings.environment,
        debug=settings.debug,
    )

    if settings.is_onedrive_configured:
        logger.info(
            "onedrive_configured",
            tenant_id=settings.microsoft_tenant_id[:8] + "...",
            drive_id=settings.microsoft_drive_id[:8] + "...",
        )
    else:
        logger.warning(
            "onedrive_not_configured",
            message="OneDrive endpoints will fail. Set MICROSOFT_CLIENT_ID, "
            "MICROSOFT_CLIENT_SECRET, MICROSOFT_TENANT_ID and MICROSOFT_DRIVE_ID.",
        )

    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    app.state.onedrive = OneDriveGateway.from_settings(settings)

    yield

    await app.state.onedrive.close()
    logger.info("application_shutdown")


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Translate any core failure into a 500 failure envelope."""
    logger.error(
        "request_failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
        exc_info=exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report invalid query/form parameters as a 400 failure envelope."""
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ())[1:])}: {err.get('msg')}"
        for err in errors
    )
    return error_response(status.HTTP_400_BAD_REQUEST, message or "Invalid request")


def create_app() -> FastAPI:
    """Create the FastAPI application with middleware and routers."""
    app = FastAPI(
        title="OneDrive Gateway API",
        description=(
            "Uploads images to OneDrive and lists them with anonymous share "
            "links, using app-only Microsoft Graph authentication."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With"],
        expose_headers=["X-Request-ID", "X-Response-Time-Ms"],
    )
    app.add_middleware(TimingMiddleware)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    @app.middleware("http")
    async def add_request_id_middleware(request, call_next):
        """Add correlation ID to each request."""
        request_id = generate_request_id()
        token = bind_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(upload.router, prefix="/api")
    app.include_router(files.router, prefix="/api")
    app.include_router(drives.router, prefix="/api")
    app.include_router(auth.router, prefix="/api")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
