"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.middleware import LoggingMiddleware, RateLimitMiddleware
from storefront.api.routes import router
from storefront.config import Settings, get_settings
from storefront.database.mongodb import MongoDB
from storefront.errors import StorefrontError, UpstreamUnavailable
from storefront.services import build_services
from storefront.utils.logger import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    logger.info("Starting application...")
    db = MongoDB(settings)
    await db.connect()
    services = build_services(settings, db)
    app.state.services = services
    logger.info("Services ready")
    try:
        yield
    finally:
        logger.info("Shutting down application...")
        await services.aclose()
        await db.disconnect()
        logger.info("All connections closed")


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    """Map StorefrontError subclasses to their HTTP responses."""
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.error_type, request.url.path, exc.message)
    headers = {"Retry-After": "5"} if isinstance(exc, UpstreamUnavailable) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error_type, "message": exc.message},
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request validation failures share the ValidationFailed error kind."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationFailed",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "message": "An unexpected error occurred",
        },
    )


def create_app(settings: Optional[Settings] = None, use_lifespan: bool = True) -> FastAPI:
    """Build the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Storefront order lifecycle, checkout and invoicing API",
        lifespan=lifespan if use_lifespan else None,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_period,
    )

    app.include_router(router, prefix=settings.api_prefix)

    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "status": "running",
        }

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "storefront.main:app",
        host=_settings.api_host,
        port=_settings.api_port,
        reload=_settings.debug,
        log_level=_settings.log_level.lower(),
    )
