"""
Health endpoint.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from cacheconf.sdk.core import PACKAGE_VERSION

from ..models import HealthResponse
from ..service import AdminService


def create_status_router(admin_service: AdminService) -> APIRouter:
    """
    Create status router with admin service dependency.

    Args:
        admin_service: The admin service wrapping the configuration engine

    Returns:
        Configured APIRouter
    """
    router = APIRouter(tags=["status"])

    @router.get("/health", response_model=HealthResponse, summary="Health check")
    async def health() -> HealthResponse:
        """
        Simple health check endpoint.

        Returns current timestamp to confirm the service is responsive.
        """
        return HealthResponse(
            status="ok",
            timestamp=datetime.now(timezone.utc),
            version=PACKAGE_VERSION,
        )

    return router
