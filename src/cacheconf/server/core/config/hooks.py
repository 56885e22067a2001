"""
Runtime option hooks.

Integrations can replace the resolved value of any option by registering a
callback for its key. Hooks run once, synchronously, during the designated
hook phase (`OptionHooks.apply`, called by the resolver's
`apply_runtime_hooks`). After that phase the registry is sealed and further
registrations have no effect.

Capability flags are derived before the hook phase. A hook that changes an
option feeding a flag (cache mode, advanced-cache check, QUIC CDN) changes
the option value but not the already published flag.

Example:
    >>> hooks = OptionHooks()
    >>> hooks.register("cache-ttl_pub", lambda ttl: min(ttl, 3600))
    >>> options = {"cache-ttl_pub": 604800}
    >>> hooks.apply(options)
    {'cache-ttl_pub': (604800, 3600)}
    >>> options["cache-ttl_pub"]
    3600
"""

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

OptionHook = Callable[[Any], Any]


class OptionHooks:
    """Registry of per-option value hooks."""

    def __init__(self) -> None:
        self._hooks: dict[str, list[OptionHook]] = {}
        self._sealed = False

    @property
    def sealed(self) -> bool:
        """Whether the hook phase already ran."""
        return self._sealed

    def register(self, key: str, hook: OptionHook) -> bool:
        """Register a hook for one option key.

        Hooks for the same key run in registration order, each receiving the
        previous hook's result.

        Returns:
            False when the hook phase already ran and the hook was dropped
        """
        if self._sealed:
            logger.warning(f"[conf] Hook for [{key}] registered after the hook phase, ignored")
            return False
        self._hooks.setdefault(key, []).append(hook)
        logger.debug(f"[conf] Registered hook for [{key}]")
        return True

    def registered_keys(self) -> list[str]:
        return list(self._hooks)

    def apply(self, options: dict[str, Any]) -> dict[str, tuple[Any, Any]]:
        """Run every hook against `options`, in place.

        Only keys already present in `options` are offered to hooks. The
        registry is sealed afterwards; a second call is a no-op.

        Returns:
            Mapping of changed key to (old value, new value)
        """
        if self._sealed:
            logger.debug("[conf] Hook phase already ran, skipping")
            return {}
        self._sealed = True

        changes: dict[str, tuple[Any, Any]] = {}
        for key, value in options.items():
            new_value = value
            for hook in self._hooks.get(key, []):
                new_value = hook(new_value)
            if new_value == value and type(new_value) is type(value):
                continue
            logger.debug(f"[conf] ** {key} changed by hook from {value!r} to {new_value!r}")
            changes[key] = (value, new_value)

        for key, (_, new_value) in changes.items():
            options[key] = new_value
        return changes
