"""
Global pytest configuration and fixtures.
"""

from typing import Any

import pytest

from cacheconf.sdk.storage import MemoryOptionStore
from cacheconf.server.core.config import ConfigResolver, Deployment, OptionSchema

# Fixed host facts so computed defaults don't depend on the test machine
TEST_ENVIRON = {"CACHECONF_SITE_URL": "https://example.test"}


class CountingStore(MemoryOptionStore):
    """Memory store recording every write call."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.writes: list[tuple[str, str, Any]] = []

    def add(self, name: str, value: Any) -> bool:
        self.writes.append(("add", name, value))
        return super().add(name, value)

    def add_network(self, name: str, value: Any) -> bool:
        self.writes.append(("add_network", name, value))
        return super().add_network(name, value)

    def update(self, name: str, value: Any) -> bool:
        self.writes.append(("update", name, value))
        return super().update(name, value)

    def update_network(self, name: str, value: Any) -> bool:
        self.writes.append(("update_network", name, value))
        return super().update_network(name, value)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch):
    """Keep CACHECONF_* variables of the calling shell out of the tests."""
    for var in (
        "CACHECONF_CONFIG",
        "CACHECONF_DB_PATH",
        "CACHECONF_TENANT_ID",
        "CACHECONF_DEBUG",
        "CACHECONF_OBJECT_HOST",
        "CACHECONF_OBJECT_PORT",
        "CACHECONF_SITE_URL",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def schema() -> OptionSchema:
    return OptionSchema()


@pytest.fixture
def store() -> CountingStore:
    return CountingStore(tenant_id=1)


@pytest.fixture
def make_resolver(schema: OptionSchema):
    """Factory building a resolver over a given store and deployment."""

    def factory(store: MemoryOptionStore, **deployment: Any) -> ConfigResolver:
        deployment.setdefault("tenant_id", store.tenant_id)
        return ConfigResolver(
            store,
            deployment=Deployment(**deployment),
            schema=schema,
            environ=TEST_ENVIRON,
        )

    return factory


@pytest.fixture
def make_store():
    """Factory building counting stores, optionally sharing tenant/network data."""

    def factory(
        tenant_id: int = 1,
        tenants: dict[int, dict[str, Any]] | None = None,
        network: dict[str, Any] | None = None,
    ) -> CountingStore:
        return CountingStore(tenant_id, tenants=tenants, network=network)

    return factory
