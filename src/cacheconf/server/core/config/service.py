"""Assembly of the configuration engine for one process.

`ConfigService` is built once at process start and passed to whatever needs
the resolved options (admin API, CLI commands). There is no module level
instance.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from cacheconf.sdk.storage import DuckDBOptionStore, OptionStore

from .bootstrap import BootstrapStatus, read_bootstrap_flag, resolve_bootstrap_path, set_bootstrap_flag
from .errors import ConfigError
from .flags import FlagPublisher
from .hooks import OptionHooks
from .models import CapabilityFlags, ChangeResult, SettingsModel
from .mutation import MutationGateway, SettingsValidator
from .resolver import ConfigResolver
from .schema import OptionSchema

logger = logging.getLogger(__name__)


class ConfigService:
    """Store, resolver, hook registry and mutation gateway of one process."""

    def __init__(
        self,
        settings: SettingsModel,
        store: OptionStore,
        schema: OptionSchema | None = None,
        hooks: OptionHooks | None = None,
        validator: SettingsValidator | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.hooks = hooks or OptionHooks()
        self.resolver = ConfigResolver(
            store,
            deployment=settings.deployment,
            schema=schema,
            hooks=self.hooks,
            flags=FlagPublisher(),
            environ=environ,
        )
        self.gateway = MutationGateway(self.resolver, validator=validator)
        self._resolved = False

    def __enter__(self) -> ConfigService:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    @property
    def resolved(self) -> bool:
        return self._resolved

    @property
    def flags(self) -> CapabilityFlags:
        return self.resolver.flags

    @property
    def schema_version(self) -> str:
        return self.resolver.running_version

    def resolve(self) -> dict[str, Any]:
        """Resolve the options and run the hook phase.

        Hooks must be registered on `hooks` before this call.
        """
        options = self.resolver.resolve_for_request()
        changes = self.resolver.apply_runtime_hooks()
        if changes:
            options = self.resolver.get_options()
        self._resolved = True
        logger.debug(f"[conf] Resolved {len(options)} options for tenant {self.resolver.deployment.tenant_id}")
        return options

    def option(self, key: str) -> Any:
        return self.resolver.option(key)

    def options(self) -> dict[str, Any]:
        return self.resolver.get_options()

    def change(self, request_type: str, changes: Mapping[str, Any]) -> ChangeResult:
        return self.gateway.handle(request_type, changes)

    def upgrade(self) -> list[str]:
        """Run the migration check and reconcile the network options.

        Returns:
            Descriptions of what ran
        """
        applied = self.resolver.ensure_current()
        if self.resolver.get_network_options() is not None:
            applied.append("network options reconciled")
        return applied

    def _bootstrap_path(self, path: str | Path | None) -> Path:
        configured = path or self.settings.bootstrap.path
        if not configured:
            raise ConfigError("No bootstrap file configured")
        return Path(configured)

    def _fallback_path(self, path: str | Path | None) -> Path | None:
        fallback = self.settings.bootstrap.fallback_path
        return Path(fallback) if fallback and not path else None

    def set_bootstrap_flag(self, enable: bool, path: str | Path | None = None) -> BootstrapStatus:
        """Write the cache flag to the configured (or given) bootstrap file.

        Raises:
            ConfigError: If no bootstrap file is configured
        """
        return set_bootstrap_flag(
            enable,
            self._bootstrap_path(path),
            fallback_path=self._fallback_path(path),
            flag_name=self.settings.bootstrap.flag_name,
        )

    def read_bootstrap_flag(self, path: str | Path | None = None) -> bool | None:
        primary = self._bootstrap_path(path)
        target = resolve_bootstrap_path(primary, self._fallback_path(path)) or primary
        return read_bootstrap_flag(target, self.settings.bootstrap.flag_name)

    def close(self) -> None:
        close = getattr(self.store, "close", None)
        if close is not None:
            close()


def create_config_service(
    settings: SettingsModel,
    store: OptionStore | None = None,
    hooks: OptionHooks | None = None,
    environ: Mapping[str, str] | None = None,
    resolve: bool = True,
) -> ConfigService:
    """Build the configuration engine from the settings.

    Args:
        settings: Loaded settings
        store: Option store; a `DuckDBOptionStore` on `settings.storage.path`
            when omitted
        hooks: Hook registry with hooks already registered
        environ: Host facts for computed defaults
        resolve: Resolve the options right away
    """
    if store is None:
        logger.debug(f"[conf] Opening option store at {settings.storage.path}")
        store = DuckDBOptionStore(
            settings.storage.path,
            tenant_id=settings.deployment.tenant_id,
            readonly=settings.storage.readonly,
        )

    service = ConfigService(settings, store, hooks=hooks, environ=environ)
    if resolve:
        service.resolve()
    return service
