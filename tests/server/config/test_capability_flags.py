import pytest

from cacheconf.server.core.config.flags import FlagPublisher
from cacheconf.server.core.config.models import Deployment
from cacheconf.server.core.config.schema import (
    NETWORK_O_ENABLED,
    O_CACHE,
    O_CDN_QUIC,
    O_UTIL_CHECK_ADVCACHE,
    VAL_OFF,
    VAL_ON,
    VAL_ON2,
)


def _options(cache=VAL_ON, check_advcache=False, quic=False):
    return {O_CACHE: cache, O_UTIL_CHECK_ADVCACHE: check_advcache, O_CDN_QUIC: quic}


def test_define_is_set_once():
    publisher = FlagPublisher()
    assert publisher.is_defined("ready") is False
    assert publisher.define("ready") is True
    assert publisher.define("ready") is False
    assert publisher.is_defined("ready")


def test_unknown_flag_is_rejected():
    with pytest.raises(ValueError):
        FlagPublisher().define("nope")


def test_cache_on_sets_ready_only_when_allowed_and_bypassed():
    publisher = FlagPublisher()
    publisher.define("allowed")
    publisher.define_cache_on()
    assert publisher.snapshot().cache_on_in_setting is True
    assert publisher.snapshot().ready is False

    publisher.define("adv_cache_bypass")
    publisher.define_cache_on()
    assert publisher.snapshot().ready is True


def test_plain_on_is_ready():
    flags = FlagPublisher().publish(_options(), Deployment(server_allowed=True))
    assert flags.cache_enabled
    assert flags.cache_on_in_setting
    assert flags.adv_cache_bypass
    assert flags.allowed
    assert flags.ready
    assert not flags.network_enabled


def test_off_is_not_enabled():
    flags = FlagPublisher().publish(_options(cache=VAL_OFF), Deployment(server_allowed=True))
    assert not flags.cache_enabled
    assert not flags.ready
    assert flags.allowed


def test_advanced_cache_check_blocks_ready():
    flags = FlagPublisher().publish(_options(check_advcache=True), Deployment(server_allowed=True))
    assert flags.cache_enabled
    assert not flags.adv_cache_bypass
    assert not flags.ready


def test_quic_cdn_allows_without_server():
    flags = FlagPublisher().publish(_options(quic=True), Deployment(server_allowed=False))
    assert flags.allowed
    assert flags.ready

    flags = FlagPublisher().publish(_options(), Deployment(server_allowed=False))
    assert not flags.allowed
    assert not flags.ready


@pytest.mark.parametrize("network_enabled,expected", [(True, True), (False, False)])
def test_network_default_follows_network_setting(network_enabled, expected):
    deployment = Deployment(multisite=True, network_activated=True, server_allowed=True)
    flags = FlagPublisher().publish(
        _options(cache=VAL_ON2),
        deployment,
        network_options={NETWORK_O_ENABLED: network_enabled},
        network_eligible=True,
    )
    assert flags.cache_enabled is expected
    assert flags.network_enabled is expected
    assert flags.ready is expected


def test_network_default_without_network_activation_is_on():
    deployment = Deployment(multisite=True, network_activated=False, server_allowed=True)
    flags = FlagPublisher().publish(_options(cache=VAL_ON2), deployment)
    assert flags.cache_enabled
    assert not flags.network_enabled


def test_network_default_on_single_site_is_off():
    flags = FlagPublisher().publish(_options(cache=VAL_ON2), Deployment(server_allowed=True))
    assert not flags.cache_enabled


def test_publish_is_computed_once():
    publisher = FlagPublisher()
    first = publisher.publish(_options(), Deployment(server_allowed=True))
    second = publisher.publish(_options(cache=VAL_OFF, check_advcache=True), Deployment())
    assert second == first
    assert second.ready
    assert publisher.published


def test_snapshot_is_immutable():
    flags = FlagPublisher().snapshot()
    with pytest.raises(ValueError):
        flags.ready = True
