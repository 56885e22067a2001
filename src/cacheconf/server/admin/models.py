"""
Pydantic models for admin API requests and responses.

These models provide type safety, validation, and automatic OpenAPI documentation.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from cacheconf.server.core.config.models import CapabilityFlags

# ==============================================================================
# Status Models
# ==============================================================================


class HealthResponse(BaseModel):
    """Simple health check response."""

    status: Literal["ok"] = "ok"
    timestamp: datetime = Field(..., description="Current server time")
    version: str = Field(..., description="cacheconf package version")


# ==============================================================================
# Config Models
# ==============================================================================


class ConfigResponse(BaseModel):
    """Resolved configuration of the served tenant."""

    tenant_id: int = Field(..., description="Tenant the options were resolved for")
    schema_version: str = Field(..., description="Running option schema version")
    multisite: bool = Field(..., description="Whether the deployment is multi-tenant")
    flags: CapabilityFlags = Field(..., description="Capability flags published at startup")
    options: dict[str, Any] = Field(..., description="Resolved options")


class OptionResponse(BaseModel):
    """A single resolved option."""

    key: str = Field(..., description="Option key")
    value: Any = Field(None, description="Resolved value")


class ChangeRequest(BaseModel):
    """Option change request."""

    type: str = Field("set", description="Request type; only 'set' is handled")
    changes: dict[str, Any] = Field(default_factory=dict, description="Requested key/value pairs")


class ChangeResponse(BaseModel):
    """Outcome of an option change request."""

    status: Literal["changed", "unchanged", "ignored"] = Field(..., description="Outcome")
    changed: dict[str, Any] = Field(default_factory=dict, description="Keys that changed")
    message: str = Field(..., description="Human-readable outcome")


# ==============================================================================
# Bootstrap Models
# ==============================================================================


class BootstrapRequest(BaseModel):
    """Bootstrap flag change request."""

    enable: bool = Field(..., description="Desired value of the bootstrap flag")


class BootstrapResponse(BaseModel):
    """Outcome of a bootstrap flag change."""

    status: str = Field(..., description="Bootstrap status code")
    enabled: bool | None = Field(None, description="Flag value found in the file afterwards")


# ==============================================================================
# Error Models
# ==============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    detail: str | list[str] | None = Field(None, description="Additional error details")
