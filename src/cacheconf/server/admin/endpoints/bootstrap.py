"""
Bootstrap flag endpoint.
"""

import logging

from fastapi import APIRouter, HTTPException

from cacheconf.server.core.config import BootstrapStatus, ConfigError

from ..models import BootstrapRequest, BootstrapResponse
from ..service import AdminService

logger = logging.getLogger(__name__)


def create_bootstrap_router(admin_service: AdminService) -> APIRouter:
    """
    Create bootstrap router with admin service dependency.

    Args:
        admin_service: The admin service wrapping the configuration engine

    Returns:
        Configured APIRouter
    """
    router = APIRouter(tags=["bootstrap"])

    @router.post("/bootstrap", response_model=BootstrapResponse, summary="Set the bootstrap flag")
    def set_bootstrap(request: BootstrapRequest) -> BootstrapResponse:
        """
        Enable or disable the cache flag in the host framework's bootstrap file.

        Answers 409 when the file cannot be written or has no place for the
        definition.
        """
        logger.info(f"[admin] Bootstrap flag change requested: enable={request.enable}")
        try:
            status, current = admin_service.set_bootstrap_flag(request.enable)
        except ConfigError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e

        if status is not BootstrapStatus.OK:
            raise HTTPException(status_code=409, detail=f"Bootstrap flag not set: {status.value}")
        return BootstrapResponse(status=status.value, enabled=current)

    return router
