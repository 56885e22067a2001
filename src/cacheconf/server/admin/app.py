"""
FastAPI application for the cacheconf admin interface.

This module creates the FastAPI application with all admin endpoints.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cacheconf.sdk.core import PACKAGE_VERSION
from cacheconf.server.core.config import OptionValidationError

from .models import ErrorResponse
from .service import AdminService

logger = logging.getLogger(__name__)


def create_admin_app(admin_service: AdminService) -> FastAPI:
    """
    Create the FastAPI admin application.

    Args:
        admin_service: The admin service wrapping the configuration engine

    Returns:
        Configured FastAPI application with all admin endpoints
    """
    app = FastAPI(
        title="cacheconf Admin API",
        description="""
Local administration interface for the page cache configuration.

**Features:**
- Health monitoring
- Resolved options and capability flags
- Option changes
- Bootstrap flag of the host framework

**Security:** Unix socket with 0600 permissions (owner-only access)
        """.strip(),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    @app.exception_handler(OptionValidationError)
    async def validation_exception_handler(request: Request, exc: OptionValidationError) -> JSONResponse:
        """Reject invalid option changes."""
        logger.warning(f"[admin] Rejected option change: {exc}")
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error="invalid_options",
                message="Option change rejected",
                detail=exc.errors or str(exc),
            ).model_dump(),
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.error(f"Unhandled exception in admin API: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="internal_error",
                message="Internal server error",
                detail=str(exc) if admin_service.debug else None,
            ).model_dump(),
        )

    from .endpoints import create_bootstrap_router, create_config_router, create_status_router

    app.include_router(create_status_router(admin_service))
    app.include_router(create_config_router(admin_service))
    app.include_router(create_bootstrap_router(admin_service))

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "service": "cacheconf-admin",
            "version": PACKAGE_VERSION,
            "docs": "/docs",
            "openapi": "/openapi.json",
        }

    return app
