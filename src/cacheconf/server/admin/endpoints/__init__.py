"""
API endpoints for admin interface.

Endpoints are organized by feature area.
"""

from .bootstrap import create_bootstrap_router
from .config import create_config_router
from .status import create_status_router

__all__ = [
    "create_status_router",
    "create_config_router",
    "create_bootstrap_router",
]
