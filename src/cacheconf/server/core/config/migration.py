"""
Migration of stored option sets to the current schema.

Two kinds of stored data are handled:

- Installations older than the per-key layout kept every option in one
  serialized blob under `LEGACY_OPTION_NAME` (and `LEGACY_NETWORK_OPTION_NAME`
  for the network). These have no stored version at all.
- Installations with a stored version older than the running one get every
  registered upgrade step between the two versions, oldest first.

Every conversion is safe to run again: legacy values are written with `add`
and upgrade steps only rewrite values whose shape is not canonical yet.
Seeding missing defaults and stamping the version is the resolver's job and
happens after `Migrator.migrate`.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cacheconf.sdk.storage import OptionStore, conf_name

from .normalize import (
    decode_value,
    encode_value,
    normalize_cdn_mapping,
    normalize_crawler_cookies,
    normalize_option,
)
from .schema import (
    NETWORK_O_ENABLED,
    NETWORK_O_USE_PRIMARY,
    O_CACHE,
    O_CACHE_BROWSER,
    O_CACHE_COMMENTER,
    O_CACHE_EXC_ROLES,
    O_CACHE_FAVICON,
    O_CACHE_MOBILE,
    O_CACHE_PAGE_LOGIN,
    O_CACHE_PRIV,
    O_CACHE_RES,
    O_CACHE_REST,
    O_CACHE_TTL_FEED,
    O_CACHE_TTL_FRONTPAGE,
    O_CACHE_TTL_PRIV,
    O_CACHE_TTL_PUB,
    O_CDN,
    O_CDN_MAPPING,
    O_CDN_ORI,
    O_CDN_QUIC,
    O_CRWL,
    O_CRWL_COOKIES,
    O_CRWL_RUN_DURATION,
    O_CRWL_USLEEP,
    O_DEBUG,
    O_DEBUG_DISABLE_ALL,
    O_OBJECT,
    O_OBJECT_HOST,
    O_OBJECT_PORT,
    O_OPTM_EXC_ROLES,
    O_PURGE_ON_UPGRADE,
    O_UTIL_CHECK_ADVCACHE,
    OptionKind,
    OptionSchema,
    OptionScope,
    OptionSpec,
)

logger = logging.getLogger(__name__)

LEGACY_OPTION_NAME = "cacheconf-settings"
LEGACY_NETWORK_OPTION_NAME = "cacheconf-network-settings"

LEGACY_KEY_MAP: dict[str, str] = {
    "enabled_radio": O_CACHE,
    "cache_priv": O_CACHE_PRIV,
    "cache_commenters": O_CACHE_COMMENTER,
    "cache_rest": O_CACHE_REST,
    "cache_login": O_CACHE_PAGE_LOGIN,
    "cache_favicon": O_CACHE_FAVICON,
    "cache_resources": O_CACHE_RES,
    "mobileview_enabled": O_CACHE_MOBILE,
    "cache_browser": O_CACHE_BROWSER,
    "public_ttl": O_CACHE_TTL_PUB,
    "private_ttl": O_CACHE_TTL_PRIV,
    "front_page_ttl": O_CACHE_TTL_FRONTPAGE,
    "feed_ttl": O_CACHE_TTL_FEED,
    "excludes_roles": O_CACHE_EXC_ROLES,
    "purge_upgrade": O_PURGE_ON_UPGRADE,
    "debug": O_DEBUG,
    "debug_disable_all": O_DEBUG_DISABLE_ALL,
    "check_advancedcache": O_UTIL_CHECK_ADVCACHE,
    "cache_object": O_OBJECT,
    "cache_object_host": O_OBJECT_HOST,
    "cache_object_port": O_OBJECT_PORT,
    "optm_exclude_roles": O_OPTM_EXC_ROLES,
    "cdn": O_CDN,
    "cdn_quic": O_CDN_QUIC,
    "cdn_ori": O_CDN_ORI,
    "cdn_mapping": O_CDN_MAPPING,
    "crawler_cron_active": O_CRWL,
    "crawler_usleep": O_CRWL_USLEEP,
    "crawler_run_duration": O_CRWL_RUN_DURATION,
    "crawler_cookies": O_CRWL_COOKIES,
}

LEGACY_NETWORK_KEY_MAP: dict[str, str] = {
    "network_enabled_radio": NETWORK_O_ENABLED,
    "use_primary_settings": NETWORK_O_USE_PRIMARY,
    "cache_favicon": O_CACHE_FAVICON,
    "cache_resources": O_CACHE_RES,
    "mobileview_enabled": O_CACHE_MOBILE,
    "cache_browser": O_CACHE_BROWSER,
    "purge_upgrade": O_PURGE_ON_UPGRADE,
    "debug_disable_all": O_DEBUG_DISABLE_ALL,
    "cache_object": O_OBJECT,
    "cache_object_host": O_OBJECT_HOST,
    "cache_object_port": O_OBJECT_PORT,
}

_VERSION_PART = re.compile(r"\d+")


def parse_version(version: str) -> tuple[int, ...]:
    """Turn "3.0.1" or "3.1-rc2" into a comparable tuple of integers."""
    parts: list[int] = []
    for piece in str(version).split("."):
        match = _VERSION_PART.match(piece)
        if match is None:
            break
        parts.append(int(match.group()))
    return tuple(parts)


def needs_migration(stored_version: Any, running_version: str) -> bool:
    """True when the stored version is absent or differs from the running one."""
    if not stored_version:
        return True
    return str(stored_version) != str(running_version)


def coerce_stored(spec: OptionSpec, value: Any) -> Any:
    """Convert a legacy stored value to the in-memory shape of `spec`."""
    if spec.kind is OptionKind.FLAG:
        return decode_value(spec.kind, value)
    if spec.kind is OptionKind.SCALAR and isinstance(spec.default, int):
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value.strip())
        return value
    if spec.kind is OptionKind.LIST and isinstance(value, str):
        value = [line.strip() for line in value.splitlines() if line.strip()]
    return normalize_option(spec.name, value)


@dataclass(frozen=True)
class UpgradeStep:
    """One schema change, applied to stores older than `version`."""

    version: str
    description: str
    apply: Callable[[OptionStore, OptionSchema], None]


def _rewrite_if_changed(
    store: OptionStore, key: str, convert: Callable[[Any], Any], missing: Any = None
) -> None:
    current = store.get(conf_name(key), missing)
    if current is missing:
        return
    converted = convert(current)
    if converted != current:
        logger.info(f"[conf] Upgrading stored shape of [{key}]")
        store.update(conf_name(key), converted)


def _upgrade_crawler_cookies(store: OptionStore, schema: OptionSchema) -> None:
    _rewrite_if_changed(store, O_CRWL_COOKIES, normalize_crawler_cookies)


def _upgrade_cdn_mapping(store: OptionStore, schema: OptionSchema) -> None:
    _rewrite_if_changed(store, O_CDN_MAPPING, normalize_cdn_mapping)


def _upgrade_role_lists(store: OptionStore, schema: OptionSchema) -> None:
    def to_list(value: Any) -> Any:
        if isinstance(value, str):
            return [line.strip() for line in value.splitlines() if line.strip()]
        return value

    for key in (O_CACHE_EXC_ROLES, O_OPTM_EXC_ROLES):
        _rewrite_if_changed(store, key, to_list)


UPGRADE_STEPS: list[UpgradeStep] = [
    UpgradeStep("3.1", "crawler cookies stored as name/vals rows", _upgrade_crawler_cookies),
    UpgradeStep("3.2", "CDN mapping stored as rows", _upgrade_cdn_mapping),
    UpgradeStep("3.2", "role exclusions stored as lists", _upgrade_role_lists),
]


class Migrator:
    """Converts stored options of older versions to the current schema.

    Args:
        store: Option store of the current tenant
        schema: The running option schema
        steps: Upgrade steps; defaults to `UPGRADE_STEPS`
    """

    def __init__(
        self,
        store: OptionStore,
        schema: OptionSchema,
        steps: list[UpgradeStep] | None = None,
    ) -> None:
        self.store = store
        self.schema = schema
        self.steps = sorted(
            UPGRADE_STEPS if steps is None else steps, key=lambda s: parse_version(s.version)
        )

    @property
    def running_version(self) -> str:
        return self.schema.version

    def migrate(self, stored_version: Any) -> list[str]:
        """Bring stored options up to the running schema shape.

        Returns:
            Descriptions of the conversions that ran
        """
        if not needs_migration(stored_version, self.running_version):
            return []

        if not stored_version:
            return self._upgrade_legacy()

        stored = parse_version(str(stored_version))
        running = parse_version(self.running_version)
        applied = []
        for step in self.steps:
            step_version = parse_version(step.version)
            if stored < step_version <= running:
                logger.info(f"[conf] Upgrade step {step.version}: {step.description}")
                step.apply(self.store, self.schema)
                applied.append(f"{step.version}: {step.description}")
        return applied

    def _upgrade_legacy(self) -> list[str]:
        applied = []
        blob = self.store.get(LEGACY_OPTION_NAME)
        if isinstance(blob, dict):
            count = self._convert_blob(blob, LEGACY_KEY_MAP, OptionScope.SITE)
            applied.append(f"legacy site options converted ({count} keys)")

        network_blob = self.store.get_network(LEGACY_NETWORK_OPTION_NAME)
        if isinstance(network_blob, dict):
            count = self._convert_blob(network_blob, LEGACY_NETWORK_KEY_MAP, OptionScope.NETWORK)
            applied.append(f"legacy network options converted ({count} keys)")

        if not applied:
            logger.debug("[conf] No legacy options found, nothing to convert")
        return applied

    def _convert_blob(self, blob: dict[str, Any], key_map: dict[str, str], scope: OptionScope) -> int:
        add = self.store.add if scope is OptionScope.SITE else self.store.add_network
        count = 0
        for old_key, value in blob.items():
            new_key = key_map.get(old_key)
            spec = self.schema.get_spec(new_key, scope) if new_key else None
            if spec is None:
                logger.debug(f"[conf] Legacy option [{old_key}] has no counterpart, dropped")
                continue
            converted = encode_value(spec.kind, coerce_stored(spec, value))
            if add(conf_name(new_key), converted):
                logger.debug(f"[conf] Legacy option [{old_key}] converted to [{new_key}]")
                count += 1
        return count
