"""
Protocol definitions for option persistence.

The configuration engine only talks to storage through `OptionStore`.
Keeping the protocol separate from the implementations lets the engine and
its tests stay independent of DuckDB.
"""

from typing import Any, Protocol

CONF_PREFIX = "cacheconf.conf."


def conf_name(key: str) -> str:
    """Return the storage name for a logical option key."""
    return CONF_PREFIX + key


class OptionStore(Protocol):
    """
    Key/value persistence scoped to one tenant, plus the shared network scope.

    Reads fall back to the given default when a name is not stored. `add`
    never overwrites an existing value. `update` returns False when the
    stored value is already equal to the new one. Failures of the underlying
    storage are raised to the caller as-is.
    """

    tenant_id: int

    def get(self, name: str, default: Any = None) -> Any:
        """Read a value for the current tenant."""
        ...

    def get_for_tenant(self, tenant_id: int, name: str, default: Any = None) -> Any:
        """Read a value for another tenant."""
        ...

    def get_network(self, name: str, default: Any = None) -> Any:
        """Read a network-wide value."""
        ...

    def add(self, name: str, value: Any) -> bool:
        """Store a value for the current tenant unless the name already exists."""
        ...

    def add_network(self, name: str, value: Any) -> bool:
        """Store a network-wide value unless the name already exists."""
        ...

    def update(self, name: str, value: Any) -> bool:
        """Store a value for the current tenant, replacing any previous value."""
        ...

    def update_network(self, name: str, value: Any) -> bool:
        """Store a network-wide value, replacing any previous value."""
        ...
