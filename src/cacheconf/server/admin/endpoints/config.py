"""
Configuration endpoints.

Provides the resolved options of the served tenant and accepts option changes.
"""

import logging

from fastapi import APIRouter, HTTPException

from ..models import ChangeRequest, ChangeResponse, ConfigResponse, OptionResponse
from ..service import AdminService

logger = logging.getLogger(__name__)


def create_config_router(admin_service: AdminService) -> APIRouter:
    """
    Create config router with admin service dependency.

    Args:
        admin_service: The admin service wrapping the configuration engine

    Returns:
        Configured APIRouter
    """
    router = APIRouter(tags=["config"])

    @router.get("/config", response_model=ConfigResponse, summary="Get resolved configuration")
    def get_config() -> ConfigResponse:
        """
        Get the resolved configuration of the served tenant.

        Returns the options as resolved at startup (network overrides and
        runtime hooks applied) and the capability flags published from them.
        Changes saved since startup show up after the next restart.
        """
        return admin_service.get_config_snapshot()

    @router.get("/config/{key}", response_model=OptionResponse, summary="Get one option")
    def get_option(key: str) -> OptionResponse:
        """Get the resolved value of one option."""
        if not admin_service.has_option(key):
            raise HTTPException(status_code=404, detail=f"Unknown option: {key}")
        return OptionResponse(key=key, value=admin_service.get_option(key))

    @router.post("/config", response_model=ChangeResponse, summary="Change options")
    def change_options(request: ChangeRequest) -> ChangeResponse:
        """
        Save option changes.

        Unknown keys are dropped. A request changing nothing is answered with
        status `unchanged` and writes nothing. Request types other than `set`
        are answered with status `ignored`.
        """
        logger.info(f"[admin] Option change requested: {sorted(request.changes)}")
        return admin_service.change_options(request.type, request.changes)

    return router
