"""Capability flags.

A few booleans gate whole subsystems (is caching active, may the cache serve
pages). They are derived once from the resolved options and then latched:
a defined flag is never unset or redefined for the lifetime of the
publisher, even if the options change afterwards. Consumers receive the
`CapabilityFlags` snapshot, never the option set.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .models import CapabilityFlags, Deployment
from .normalize import to_bool
from .schema import NETWORK_O_ENABLED, O_CACHE, O_CDN_QUIC, O_UTIL_CHECK_ADVCACHE, VAL_ON, VAL_ON2

logger = logging.getLogger(__name__)

CACHE_ENABLED = "cache_enabled"
CACHE_ON_IN_SETTING = "cache_on_in_setting"
NETWORK_ENABLED = "network_enabled"
ADV_CACHE_BYPASS = "adv_cache_bypass"
ALLOWED = "allowed"
READY = "ready"

FLAG_NAMES = (CACHE_ENABLED, CACHE_ON_IN_SETTING, NETWORK_ENABLED, ADV_CACHE_BYPASS, ALLOWED, READY)


class FlagPublisher:
    """Set-once holder of the capability flags of one process.

    Example:
        >>> publisher = FlagPublisher()
        >>> publisher.define("allowed")
        True
        >>> publisher.define("allowed")
        False
        >>> publisher.snapshot().allowed
        True
    """

    def __init__(self) -> None:
        self._defined: set[str] = set()
        self._published: CapabilityFlags | None = None

    def define(self, name: str) -> bool:
        """Latch a flag to true.

        Returns:
            False when the flag was already defined
        """
        if name not in FLAG_NAMES:
            raise ValueError(f"Unknown capability flag: {name}")
        if name in self._defined:
            return False
        self._defined.add(name)
        logger.debug(f"[conf] Capability flag [{name}] defined")
        return True

    def is_defined(self, name: str) -> bool:
        return name in self._defined

    def snapshot(self) -> CapabilityFlags:
        """Immutable view of the flags defined so far."""
        return CapabilityFlags(**{name: name in self._defined for name in FLAG_NAMES})

    @property
    def published(self) -> bool:
        return self._published is not None

    def define_cache_on(self) -> None:
        """Mark caching as on in the settings, and ready when allowed.

        `ready` needs both the allow-list and the advanced-cache bypass to be
        defined already.
        """
        if self.is_defined(ALLOWED) and self.is_defined(ADV_CACHE_BYPASS):
            self.define(READY)
        self.define(CACHE_ON_IN_SETTING)

    def publish(
        self,
        options: Mapping[str, Any],
        deployment: Deployment,
        network_options: Mapping[str, Any] | None = None,
        network_eligible: bool = False,
    ) -> CapabilityFlags:
        """Derive the flags from a resolved option set, once.

        Args:
            options: The resolved tenant options
            deployment: Deployment facts (multisite, allow-list)
            network_options: The network option set, when loaded
            network_eligible: Whether the tenant takes network options

        Returns:
            The flag snapshot. Calls after the first return the snapshot of
            the first call unchanged.
        """
        if self._published is not None:
            logger.debug("[conf] Capability flags already published, not re-deriving")
            return self._published

        network_on = bool(network_eligible and network_options and to_bool(network_options.get(NETWORK_O_ENABLED)))
        cache_mode = options.get(O_CACHE)

        if network_on:
            self.define(NETWORK_ENABLED)

        if not to_bool(options.get(O_UTIL_CHECK_ADVCACHE)):
            self.define(ADV_CACHE_BYPASS)

        if deployment.server_allowed or to_bool(options.get(O_CDN_QUIC)):
            self.define(ALLOWED)

        cache_enabled = cache_mode == VAL_ON
        if cache_mode == VAL_ON2:
            if network_eligible:
                cache_enabled = network_on
            elif deployment.multisite:
                # Not network activated: the network sentinel defaults to on
                cache_enabled = True
        if cache_enabled:
            self.define(CACHE_ENABLED)
            self.define_cache_on()

        self._published = self.snapshot()
        logger.debug(f"[conf] Capability flags published: {self._published.model_dump()}")
        return self._published
