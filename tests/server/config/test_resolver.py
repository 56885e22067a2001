import logging

import pytest

from cacheconf.sdk.storage import conf_name
from cacheconf.server.core.config.migration import LEGACY_OPTION_NAME
from cacheconf.server.core.config.schema import (
    NETWORK_O_ENABLED,
    NETWORK_O_USE_PRIMARY,
    O_CACHE,
    O_CACHE_MOBILE,
    O_CACHE_TTL_PUB,
    O_CDN_ORI,
    O_CRWL,
    O_OPTM_EXC_ROLES,
    O_UTIL_CHECK_ADVCACHE,
    SCHEMA_VERSION,
    VAL_OFF,
    VAL_ON,
    VAL_ON2,
    VERSION_KEY,
    OptionScope,
)


def test_resolved_set_has_exactly_the_schema_keys(store, schema, make_resolver):
    store.update("cacheconf.conf.unrelated", "x")
    store.update(conf_name("retired-option"), 1)
    resolver = make_resolver(store)

    options = resolver.resolve_for_request()

    assert set(options) == set(schema.keys())


def test_first_resolution_seeds_defaults_and_stamps_version(store, schema, make_resolver):
    resolver = make_resolver(store)
    options = resolver.resolve_for_request()

    assert store.get(conf_name(VERSION_KEY)) == SCHEMA_VERSION
    assert store.get(conf_name(O_CACHE_MOBILE)) == VAL_OFF
    assert store.get(conf_name(O_CDN_ORI)) == "https://example.test"
    assert options[O_CACHE_MOBILE] is False
    assert options[VERSION_KEY] == SCHEMA_VERSION


def test_seeding_never_overwrites_stored_values(store, make_resolver):
    store.update(conf_name(O_CACHE_TTL_PUB), 60)
    make_resolver(store).resolve_for_request()
    assert store.get(conf_name(O_CACHE_TTL_PUB)) == 60


def test_current_version_reads_without_writing(store, make_resolver):
    make_resolver(store).resolve_for_request()
    store.writes.clear()

    make_resolver(store).resolve_for_request()

    assert store.writes == []


def test_legacy_options_are_migrated_before_seeding(store, make_resolver):
    store.add(LEGACY_OPTION_NAME, {"public_ttl": "120", "mobileview_enabled": 1})

    options = make_resolver(store).resolve_for_request()

    assert options[O_CACHE_TTL_PUB] == 120
    assert options[O_CACHE_MOBILE] is True


def test_load_options_dry_run_leaves_everything_alone(store, make_resolver):
    resolver = make_resolver(store)
    resolver.resolve_for_request()
    live = resolver.get_options()
    store.writes.clear()

    store.tenants[1][conf_name(O_CACHE_TTL_PUB)] = 5
    first = resolver.load_options(dry_run=True)
    second = resolver.load_options(dry_run=True)

    assert first == second
    assert first[O_CACHE_TTL_PUB] == 5
    assert resolver.get_options() == live
    assert store.writes == []


def test_load_options_decodes_stored_values(store, make_resolver):
    store.update(conf_name(O_CACHE_MOBILE), "1")
    store.update(conf_name(O_CACHE_TTL_PUB), "300")
    options = make_resolver(store).load_options()
    assert options[O_CACHE_MOBILE] is True
    assert options[O_CACHE_TTL_PUB] == 300


def test_load_options_of_another_tenant(make_store, make_resolver):
    tenants: dict = {}
    make_store(tenant_id=2, tenants=tenants).update(conf_name(O_CACHE_TTL_PUB), 42)
    resolver = make_resolver(make_store(tenant_id=1, tenants=tenants))

    assert resolver.load_options(tenant_id=2, dry_run=True)[O_CACHE_TTL_PUB] == 42
    assert resolver.load_options(dry_run=True)[O_CACHE_TTL_PUB] == 604800


def test_option_lookup(store, make_resolver, caplog):
    resolver = make_resolver(store)
    resolver.resolve_for_request()

    assert resolver.option(O_CACHE) == VAL_ON
    with caplog.at_level(logging.DEBUG):
        assert resolver.option("no-such-option") is None
    assert "no-such-option" in caplog.text


def test_force_option(store, make_resolver, caplog):
    resolver = make_resolver(store)
    resolver.resolve_for_request()

    with caplog.at_level(logging.DEBUG):
        resolver.force_option(O_CACHE_TTL_PUB, 10)
    assert resolver.option(O_CACHE_TTL_PUB) == 10
    assert "604800" in caplog.text and "10" in caplog.text

    resolver.force_option("no-such-option", 1)
    assert "no-such-option" not in resolver.get_options()
    # Only the live set changes
    assert store.get(conf_name(O_CACHE_TTL_PUB)) == 604800


def test_get_options_returns_a_copy(store, make_resolver):
    resolver = make_resolver(store)
    resolver.resolve_for_request()
    resolver.get_options()[O_CACHE] = VAL_OFF
    assert resolver.option(O_CACHE) == VAL_ON


def test_in_optm_exc_roles(store, make_resolver):
    store.update(conf_name(O_OPTM_EXC_ROLES), ["editor"])
    resolver = make_resolver(store)
    resolver.resolve_for_request()

    assert resolver.in_optm_exc_roles("editor") == "editor"
    assert resolver.in_optm_exc_roles("author") is False
    assert resolver.in_optm_exc_roles(None) is False


def test_network_options_only_in_multisite(store, make_resolver):
    assert make_resolver(store).get_network_options() is None


def test_network_options_are_seeded_and_memoized(store, schema, make_resolver):
    resolver = make_resolver(store, multisite=True, network_activated=True)

    network = resolver.get_network_options()

    assert set(network) == set(schema.keys(OptionScope.NETWORK))
    assert network[VERSION_KEY] == SCHEMA_VERSION
    assert store.get_network(conf_name(NETWORK_O_ENABLED)) == VAL_ON
    assert store.get_network(conf_name(VERSION_KEY)) == SCHEMA_VERSION

    store.network[conf_name(NETWORK_O_ENABLED)] = VAL_OFF
    store.writes.clear()
    assert resolver.get_network_options()[NETWORK_O_ENABLED] is True
    assert store.writes == []


def test_network_values_override_tenant_values(make_store, make_resolver):
    store = make_store(tenant_id=2)
    store.update(conf_name(O_CACHE_MOBILE), VAL_OFF)
    store.update_network(conf_name(O_CACHE_MOBILE), VAL_ON)
    store.update_network(conf_name(VERSION_KEY), "1.0")

    options = make_resolver(store, multisite=True, network_activated=True).resolve_for_request()

    assert options[O_CACHE_MOBILE] is True
    # The tenant keeps its own version stamp
    assert options[VERSION_KEY] == SCHEMA_VERSION


def test_network_ignored_when_not_network_activated(make_store, make_resolver):
    store = make_store(tenant_id=2)
    store.update_network(conf_name(O_CACHE_MOBILE), VAL_ON)

    resolver = make_resolver(store, multisite=True, network_activated=False)
    options = resolver.resolve_for_request()

    assert options[O_CACHE_MOBILE] is False
    assert store.get_network(conf_name(VERSION_KEY)) is None


def test_use_primary_keeps_own_crawler(make_store, make_resolver):
    tenants: dict = {}
    network: dict = {}
    primary = make_store(tenant_id=1, tenants=tenants, network=network)
    primary.update(conf_name(O_CACHE_TTL_PUB), 111)
    primary.update(conf_name(O_CRWL), VAL_OFF)

    tenant = make_store(tenant_id=5, tenants=tenants, network=network)
    tenant.update(conf_name(O_CACHE_TTL_PUB), 555)
    tenant.update(conf_name(O_CRWL), VAL_ON)
    tenant.update_network(conf_name(NETWORK_O_USE_PRIMARY), VAL_ON)

    resolver = make_resolver(tenant, multisite=True, network_activated=True, primary_tenant_id=1)
    options = resolver.resolve_for_request()

    assert options[O_CACHE_TTL_PUB] == 111
    assert options[O_CRWL] is True


@pytest.mark.parametrize("network_enabled,expected", [(VAL_ON, True), (VAL_OFF, False)])
def test_network_default_cache_mode(make_store, make_resolver, network_enabled, expected):
    store = make_store(tenant_id=3)
    store.update(conf_name(O_CACHE), VAL_ON2)
    store.update(conf_name(O_UTIL_CHECK_ADVCACHE), VAL_OFF)
    store.update_network(conf_name(NETWORK_O_ENABLED), network_enabled)

    resolver = make_resolver(store, multisite=True, network_activated=True, server_allowed=True)
    resolver.resolve_for_request()

    assert resolver.flags.cache_enabled is expected
    assert resolver.flags.ready is expected


def test_ready_flag_survives_later_changes(store, make_resolver):
    store.update(conf_name(O_UTIL_CHECK_ADVCACHE), VAL_OFF)
    resolver = make_resolver(store, server_allowed=True)
    resolver.resolve_for_request()
    assert resolver.flags.ready

    resolver.force_option(O_CACHE, VAL_OFF)
    resolver.hooks.register(O_UTIL_CHECK_ADVCACHE, lambda value: True)
    resolver.apply_runtime_hooks()

    assert resolver.option(O_CACHE) == VAL_OFF
    assert resolver.option(O_UTIL_CHECK_ADVCACHE) is True
    assert resolver.flags.ready
    assert resolver.flags.cache_enabled

    store.update(conf_name(O_CACHE), VAL_OFF)
    resolver.resolve_for_request()

    assert resolver.option(O_CACHE) == VAL_OFF
    assert resolver.flags.ready


def test_runtime_hooks_run_once(store, make_resolver):
    resolver = make_resolver(store)
    resolver.hooks.register(O_CACHE_TTL_PUB, lambda ttl: ttl // 2)
    resolver.resolve_for_request()

    assert resolver.apply_runtime_hooks() == {O_CACHE_TTL_PUB: (604800, 302400)}
    assert resolver.option(O_CACHE_TTL_PUB) == 302400
    assert resolver.apply_runtime_hooks() == {}
    assert resolver.option(O_CACHE_TTL_PUB) == 302400
