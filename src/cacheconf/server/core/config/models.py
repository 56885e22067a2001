from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from cacheconf.sdk.models import SdkBaseModel

logger = logging.getLogger(__name__)


class Deployment(SdkBaseModel):
    """Facts about the deployment the current process serves.

    Attributes:
        tenant_id: The tenant (site) handling the current request
        primary_tenant_id: The tenant other tenants may defer to entirely
        multisite: Whether the deployment is multi-tenant
        network_activated: Whether the cache is activated for the whole network
        server_allowed: External allow-list condition, e.g. a compatible web server
    """

    tenant_id: int = 1
    primary_tenant_id: int = 1
    multisite: bool = False
    network_activated: bool = False
    server_allowed: bool = False


class CapabilityFlags(SdkBaseModel):
    """Process-wide booleans derived once from the resolved options."""

    cache_enabled: bool = False
    cache_on_in_setting: bool = False
    network_enabled: bool = False
    adv_cache_bypass: bool = False
    allowed: bool = False
    ready: bool = False


class ChangeResult(SdkBaseModel):
    """Outcome of a mutation request.

    `unchanged` means nothing was written and no validation ran; `ignored`
    means the request type was not recognized.
    """

    status: Literal["changed", "unchanged", "ignored"]
    changed: dict[str, Any] = Field(default_factory=dict)
    options: dict[str, Any] | None = None


class StorageSettingsModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str = "data/cacheconf.duckdb"
    readonly: bool = False


class BootstrapSettingsModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str | None = None
    fallback_path: str | None = None
    flag_name: str = "WP_CACHE"


class LoggingSettingsModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    path: str | None = None
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class AdminSettingsModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    socket: str = "/run/cacheconf/admin.sock"


class SettingsModel(BaseModel):
    """Contents of cacheconf.yml."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    cacheconf: Literal[1] = 1
    storage: StorageSettingsModel = Field(default_factory=StorageSettingsModel)
    deployment: Deployment = Field(default_factory=Deployment)
    bootstrap: BootstrapSettingsModel = Field(default_factory=BootstrapSettingsModel)
    logging: LoggingSettingsModel = Field(default_factory=LoggingSettingsModel)
    admin: AdminSettingsModel = Field(default_factory=AdminSettingsModel)

    @field_validator("storage", "deployment", "bootstrap", "logging", "admin", mode="before")
    @classmethod
    def _default_object(cls, value: Any) -> Any:
        if value is None:
            return {}
        return value

    @model_validator(mode="after")
    def _apply_environment(self, info: ValidationInfo) -> SettingsModel:
        root = Path(info.context.get("root", Path.cwd())) if info.context else Path.cwd()

        storage = self.storage
        env_db_path = os.environ.get("CACHECONF_DB_PATH")
        if env_db_path:
            logger.info("Overriding option store path with CACHECONF_DB_PATH: %s", env_db_path)
            storage = storage.model_copy(update={"path": env_db_path})
        elif storage.path != ":memory:" and not Path(storage.path).is_absolute():
            storage = storage.model_copy(update={"path": str(root / storage.path)})

        deployment = self.deployment
        env_tenant = os.environ.get("CACHECONF_TENANT_ID", "").strip()
        if env_tenant:
            try:
                deployment = deployment.model_copy(update={"tenant_id": int(env_tenant)})
            except ValueError as exc:
                raise ValueError(f"CACHECONF_TENANT_ID must be an integer, got {env_tenant!r}") from exc

        return self.model_copy(update={"storage": storage, "deployment": deployment})
