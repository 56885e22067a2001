"""In-memory option store.

Values are deep-copied on the way in and out so callers can never mutate
stored state through a returned reference.
"""

import copy
import logging
from typing import Any

logger = logging.getLogger(__name__)


class MemoryOptionStore:
    """Dictionary-backed `OptionStore`.

    One instance represents the view of one tenant; the tenant and network
    dictionaries can be shared between instances to model several tenants of
    the same deployment.

    Example:
        >>> tenants: dict[int, dict] = {}
        >>> network: dict = {}
        >>> site_one = MemoryOptionStore(1, tenants=tenants, network=network)
        >>> site_two = MemoryOptionStore(2, tenants=tenants, network=network)
        >>> site_one.add("cacheconf.conf.cache", 1)
        True
        >>> site_two.get_for_tenant(1, "cacheconf.conf.cache")
        1
    """

    def __init__(
        self,
        tenant_id: int = 1,
        tenants: dict[int, dict[str, Any]] | None = None,
        network: dict[str, Any] | None = None,
    ) -> None:
        self.tenant_id = tenant_id
        self.tenants = tenants if tenants is not None else {}
        self.network = network if network is not None else {}
        self.tenants.setdefault(tenant_id, {})

    def _scope(self, tenant_id: int) -> dict[str, Any]:
        return self.tenants.setdefault(tenant_id, {})

    def get(self, name: str, default: Any = None) -> Any:
        return self.get_for_tenant(self.tenant_id, name, default)

    def get_for_tenant(self, tenant_id: int, name: str, default: Any = None) -> Any:
        scope = self.tenants.get(tenant_id, {})
        if name not in scope:
            return default
        return copy.deepcopy(scope[name])

    def get_network(self, name: str, default: Any = None) -> Any:
        if name not in self.network:
            return default
        return copy.deepcopy(self.network[name])

    def add(self, name: str, value: Any) -> bool:
        return self._add(self._scope(self.tenant_id), name, value)

    def add_network(self, name: str, value: Any) -> bool:
        return self._add(self.network, name, value)

    def update(self, name: str, value: Any) -> bool:
        return self._update(self._scope(self.tenant_id), name, value)

    def update_network(self, name: str, value: Any) -> bool:
        return self._update(self.network, name, value)

    @staticmethod
    def _add(scope: dict[str, Any], name: str, value: Any) -> bool:
        if name in scope:
            return False
        scope[name] = copy.deepcopy(value)
        return True

    @staticmethod
    def _update(scope: dict[str, Any], name: str, value: Any) -> bool:
        if name in scope and scope[name] == value:
            return False
        scope[name] = copy.deepcopy(value)
        return True
