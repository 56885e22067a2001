import pytest

from cacheconf.server.core.config.normalize import (
    cdn_mapping_to_input,
    convert_options_to_input,
    crawler_cookies_to_input,
    decode_value,
    encode_value,
    normalize_cdn_mapping,
    normalize_crawler_cookies,
    to_bool,
)
from cacheconf.server.core.config.schema import (
    O_CACHE_MOBILE,
    O_CDN_MAPPING,
    O_CRWL_COOKIES,
    VAL_OFF,
    VAL_ON,
    OptionKind,
)


@pytest.mark.parametrize("value", ["", "0", "false", "OFF", "no", 0, None, [], {}, False])
def test_to_bool_false_values(value):
    assert to_bool(value) is False


@pytest.mark.parametrize("value", ["1", "true", "on", "yes", 1, 2, [0], True])
def test_to_bool_true_values(value):
    assert to_bool(value) is True


def test_flag_codec():
    assert encode_value(OptionKind.FLAG, True) == VAL_ON
    assert encode_value(OptionKind.FLAG, "") == VAL_OFF
    assert decode_value(OptionKind.FLAG, VAL_ON) is True
    assert decode_value(OptionKind.FLAG, "0") is False
    assert encode_value(OptionKind.SCALAR, 3600) == 3600
    assert decode_value(OptionKind.LIST, ["a"]) == ["a"]


def test_cdn_mapping_from_columns():
    columns = {
        "url": ["https://cdn1.example.test", "", "https://cdn2.example.test"],
        "inc_img": ["1", "1", ""],
        "inc_css": ["", "", "1"],
        "inc_js": ["1"],
        "filetype": [".png\n.jpg", "", ".css"],
    }
    assert normalize_cdn_mapping(columns) == [
        {
            "url": "https://cdn1.example.test",
            "inc_img": True,
            "inc_css": False,
            "inc_js": True,
            "filetype": [".png", ".jpg"],
        },
        {
            "url": "https://cdn2.example.test",
            "inc_img": False,
            "inc_css": True,
            "inc_js": False,
            "filetype": [".css"],
        },
    ]


def test_cdn_mapping_from_rows_fills_missing_fields():
    rows = normalize_cdn_mapping([{"url": " https://cdn.example.test "}, {"inc_img": True}])
    assert rows == [
        {
            "url": "https://cdn.example.test",
            "inc_img": False,
            "inc_css": False,
            "inc_js": False,
            "filetype": [],
        }
    ]


def test_cdn_mapping_is_stable():
    rows = normalize_cdn_mapping({"url": ["https://cdn.example.test"], "inc_img": [1]})
    assert normalize_cdn_mapping(rows) == rows


@pytest.mark.parametrize("value", [None, "", [], "not a mapping", 3])
def test_cdn_mapping_empty_or_invalid(value):
    assert normalize_cdn_mapping(value) == []


def test_cdn_mapping_to_input_has_an_empty_row():
    assert cdn_mapping_to_input([]) == {
        "url": [False],
        "inc_img": [False],
        "inc_css": [False],
        "inc_js": [False],
        "filetype": [False],
    }


def test_cdn_mapping_to_input_columns():
    rows = [{"url": "https://cdn.example.test", "inc_img": True, "filetype": [".png", ".gif"]}]
    assert cdn_mapping_to_input(rows) == {
        "url": ["https://cdn.example.test"],
        "inc_img": [True],
        "inc_css": [False],
        "inc_js": [False],
        "filetype": [".png\n.gif"],
    }


def test_crawler_cookies_from_associative():
    assert normalize_crawler_cookies({"lang": "en\nfr", "currency": ["EUR"]}) == [
        {"name": "lang", "vals": ["en", "fr"]},
        {"name": "currency", "vals": ["EUR"]},
    ]


def test_crawler_cookies_from_columns():
    value = {"name": ["lang", "", "currency"], "vals": ["en", "x", "USD\nEUR"]}
    assert normalize_crawler_cookies(value) == [
        {"name": "lang", "vals": ["en"]},
        {"name": "currency", "vals": ["USD", "EUR"]},
    ]


def test_crawler_cookies_from_rows_round_trip_through_input():
    rows = [{"name": "lang", "vals": ["en", "fr"]}]
    assert normalize_crawler_cookies(rows) == rows
    columns = crawler_cookies_to_input(rows)
    assert columns == {"name": ["lang"], "vals": ["en\nfr"]}
    assert normalize_crawler_cookies(columns) == rows


def test_convert_options_to_input():
    converted = convert_options_to_input(
        {
            O_CACHE_MOBILE: True,
            "cache-browser": False,
            "cache-ttl_pub": 3600,
            O_CDN_MAPPING: [],
            O_CRWL_COOKIES: [{"name": "lang", "vals": ["en"]}],
        }
    )
    assert converted[O_CACHE_MOBILE] == VAL_ON
    assert converted["cache-browser"] == VAL_OFF
    assert converted["cache-ttl_pub"] == 3600
    assert converted[O_CDN_MAPPING]["url"] == [False]
    assert converted[O_CRWL_COOKIES] == {"name": ["lang"], "vals": ["en"]}
