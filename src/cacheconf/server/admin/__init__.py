"""
Admin API for local cacheconf management.

FastAPI application served over a Unix domain socket. It exposes:
- Health checks
- The resolved options and capability flags of the served tenant
- Option changes through the mutation gateway
- The bootstrap flag of the host framework

Security is enforced through file system permissions (owner-only access).
"""

from .runner import AdminAPIRunner

__all__ = ["AdminAPIRunner"]
