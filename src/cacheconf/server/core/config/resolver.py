"""Config resolver.

Builds the authoritative option set of the current tenant. Resolution runs in
a fixed order:

1. migration check: legacy or outdated stored options are converted, missing
   keys are seeded with their defaults and the stored version is stamped
2. the tenant's options are loaded, defaults filling every unstored key
3. in a network-activated multi-tenant deployment the network option set is
   loaded (once) and layered on top: a tenant deferring to the primary
   tenant gets the primary's options except its own crawler activation, then
   every network key that is also a site key overwrites the tenant value
4. capability flags are derived and latched
5. runtime hooks may still replace individual values

Hooks run after the flags are derived, so a hook changing the cache mode,
the advanced-cache check or the QUIC CDN option does not change the
published flags. The same holds for `force_option`.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

from cacheconf.sdk.storage import OptionStore, conf_name

from .flags import FlagPublisher
from .hooks import OptionHooks
from .migration import Migrator, coerce_stored, needs_migration
from .models import CapabilityFlags, Deployment
from .mutation import upgrade_network_options
from .normalize import encode_value
from .schema import (
    NETWORK_O_USE_PRIMARY,
    O_CRWL,
    O_OPTM_EXC_ROLES,
    VERSION_KEY,
    OptionSchema,
    OptionScope,
)

logger = logging.getLogger(__name__)

_MISSING = object()


class ConfigResolver:
    """Resolves the option set of one tenant for one process.

    Args:
        store: Option store scoped to the current tenant
        deployment: Deployment facts; single-site defaults when omitted
        schema: The running option schema
        hooks: Runtime hook registry
        flags: Capability flag publisher
        migrator: Converts older stored options; built from `store` and
            `schema` when omitted
        environ: Host facts for computed defaults; `os.environ` when omitted
    """

    def __init__(
        self,
        store: OptionStore,
        deployment: Deployment | None = None,
        schema: OptionSchema | None = None,
        hooks: OptionHooks | None = None,
        flags: FlagPublisher | None = None,
        migrator: Migrator | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.store = store
        self.deployment = deployment or Deployment(tenant_id=store.tenant_id)
        self.schema = schema or OptionSchema()
        self.hooks = hooks or OptionHooks()
        self.publisher = flags or FlagPublisher()
        self.migrator = migrator or Migrator(store, self.schema)
        self.environ = os.environ if environ is None else environ

        self._options: dict[str, Any] = {}
        self._network_options: dict[str, Any] | None = None

    @property
    def running_version(self) -> str:
        return self.schema.version

    @property
    def network_eligible(self) -> bool:
        """Whether the tenant takes network options."""
        return self.deployment.multisite and self.deployment.network_activated

    @property
    def flags(self) -> CapabilityFlags:
        """Snapshot of the capability flags defined so far."""
        return self.publisher.snapshot()

    def ensure_current(self) -> list[str]:
        """Migrate and re-seed stored options when the stored version differs.

        Existing stored values are never overwritten by the seeding.

        Returns:
            Descriptions of the conversions that ran
        """
        stored_version = self.store.get(conf_name(VERSION_KEY))
        if not needs_migration(stored_version, self.running_version):
            return []

        logger.info(
            f"[conf] Stored options at version {stored_version or '<none>'}, "
            f"running {self.running_version}"
        )
        applied = self.migrator.migrate(stored_version)

        for key, value in self.schema.default_vals(environ=self.environ).items():
            if key == VERSION_KEY:
                continue
            if self.store.add(conf_name(key), encode_value(self.schema.kind_of(key), value)):
                logger.debug(f"[conf] Seeded default for [{key}]")
        self.store.update(conf_name(VERSION_KEY), self.running_version)
        return applied

    def load_options(self, tenant_id: int | None = None, dry_run: bool = False) -> dict[str, Any]:
        """Read every schema key from storage, defaults filling the gaps.

        Args:
            tenant_id: Read another tenant's options; the store's tenant when None
            dry_run: Only return the options, leave the live set alone

        Returns:
            The loaded option set. Storage is never written.
        """
        defaults = self.schema.default_vals(environ=self.environ)
        options: dict[str, Any] = {}
        for key, default in defaults.items():
            name = conf_name(key)
            if tenant_id is None or tenant_id == self.store.tenant_id:
                value = self.store.get(name, _MISSING)
            else:
                value = self.store.get_for_tenant(tenant_id, name, _MISSING)

            if value is _MISSING:
                options[key] = default
                continue
            spec = self.schema.get_spec(key)
            options[key] = coerce_stored(spec, value) if spec else value

        if not dry_run:
            self._options = options
        return dict(options)

    def get_network_options(self) -> dict[str, Any] | None:
        """The network option set, or None outside a multi-tenant deployment.

        Loaded and reconciled with the network defaults on first access,
        memoized afterwards.
        """
        if not self.deployment.multisite:
            return None

        if self._network_options is None:
            stored: dict[str, Any] = {}
            for key in self.schema.keys(OptionScope.NETWORK):
                value = self.store.get_network(conf_name(key), _MISSING)
                if value is _MISSING:
                    continue
                spec = self.schema.get_spec(key, OptionScope.NETWORK)
                stored[key] = coerce_stored(spec, value) if spec else value
            self._network_options = upgrade_network_options(
                self.store, self.schema, stored, environ=self.environ
            )
        return dict(self._network_options)

    def resolve_for_request(self) -> dict[str, Any]:
        """Run the whole resolution and publish the capability flags.

        Returns:
            A copy of the resolved option set
        """
        self.ensure_current()
        options = self.load_options()

        network_options = None
        if self.deployment.multisite:
            if self.network_eligible:
                network_options = self.get_network_options()
                options = self._layer_network(options, network_options or {})
            else:
                logger.debug("[conf] Multi-tenant but not network activated, tenant options only")

        self._options = options
        self.publisher.publish(
            options,
            self.deployment,
            network_options=network_options,
            network_eligible=self.network_eligible,
        )
        return self.get_options()

    def _layer_network(self, options: dict[str, Any], network: dict[str, Any]) -> dict[str, Any]:
        primary = self.deployment.primary_tenant_id
        if network.get(NETWORK_O_USE_PRIMARY) and self.deployment.tenant_id != primary:
            # Crawler activation stays per tenant
            crawler = options[O_CRWL]
            options = self.load_options(tenant_id=primary)
            options[O_CRWL] = crawler
            logger.debug(f"[conf] Using options of primary tenant {primary}")

        for key, value in network.items():
            if key == VERSION_KEY or key not in options:
                continue
            options[key] = value
        return options

    def option(self, key: str) -> Any:
        """Resolved value of one option, None for unknown keys."""
        if key not in self._options:
            logger.debug(f"[conf] Invalid option ID [{key}]")
            return None
        return self._options[key]

    def get_options(self) -> dict[str, Any]:
        return dict(self._options)

    def force_option(self, key: str, value: Any) -> None:
        """Override one resolved option in memory. Unknown keys are ignored."""
        if key not in self._options:
            logger.debug(f"[conf] Ignoring forced value for unknown option [{key}]")
            return
        logger.debug(f"[conf] ** {key} forced from {self._options[key]!r} to {value!r}")
        self._options[key] = value

    def apply_runtime_hooks(self) -> dict[str, tuple[Any, Any]]:
        """Let registered hooks replace resolved values, once.

        Must run right after `resolve_for_request`, before anything caches
        the option values. The capability flags are already published at
        that point and are not re-derived.
        """
        return self.hooks.apply(self._options)

    def in_optm_exc_roles(self, role: str | None = None) -> str | bool:
        """Return `role` when page optimization is disabled for it, else False."""
        if not role:
            return False
        excluded = self._options.get(O_OPTM_EXC_ROLES) or []
        return role if role in excluded else False
