"""Normalization of option values.

Structured options reach the engine in several shapes: rows as stored,
columns as submitted by the admin form, or legacy associative arrays. Each
structured option has one normalizer producing its canonical stored shape
and one converter producing the admin form shape. Nothing here relies on a
generic merge.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .schema import (
    CDN_MAPPING_FILETYPE,
    CDN_MAPPING_INC_CSS,
    CDN_MAPPING_INC_IMG,
    CDN_MAPPING_INC_JS,
    CDN_MAPPING_URL,
    O_CDN_MAPPING,
    O_CRWL_COOKIES,
    VAL_OFF,
    VAL_ON,
    OptionKind,
)

logger = logging.getLogger(__name__)

CDN_MAPPING_FIELDS = (
    CDN_MAPPING_URL,
    CDN_MAPPING_INC_IMG,
    CDN_MAPPING_INC_CSS,
    CDN_MAPPING_INC_JS,
    CDN_MAPPING_FILETYPE,
)
_CDN_FLAG_FIELDS = (CDN_MAPPING_INC_IMG, CDN_MAPPING_INC_CSS, CDN_MAPPING_INC_JS)

_FALSE_STRINGS = {"", "0", "false", "off", "no"}


def to_bool(value: Any) -> bool:
    """Loose truthiness used for every flag coming from outside.

    Empty strings, "0", "false", "off", "no", zero, None and empty
    containers are false; everything else is true.
    """
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def _split_lines(value: Any) -> list[str]:
    if value is None or value is False:
        return []
    if isinstance(value, str):
        return [line.strip() for line in value.splitlines() if line.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return [str(value)]


def _column(columns: Mapping[str, Any], field: str) -> list[Any]:
    value = columns.get(field)
    if value is None:
        return []
    if isinstance(value, Mapping):
        # Form posts can arrive as {"0": ..., "1": ...}
        return list(value.values())
    if isinstance(value, list):
        return value
    return [value]


def _cdn_row(raw: Mapping[str, Any]) -> dict[str, Any]:
    row: dict[str, Any] = {CDN_MAPPING_URL: str(raw.get(CDN_MAPPING_URL) or "").strip()}
    for field in _CDN_FLAG_FIELDS:
        row[field] = to_bool(raw.get(field, False))
    row[CDN_MAPPING_FILETYPE] = _split_lines(raw.get(CDN_MAPPING_FILETYPE))
    return row


def normalize_cdn_mapping(value: Any) -> list[dict[str, Any]]:
    """Canonical rows for the CDN mapping option.

    Input shapes:
        rows:    [{"url": ..., "inc_img": ..., "inc_css": ..., "inc_js": ..., "filetype": ...}]
        columns: {"url": [...], "inc_img": [...], ...}, lists aligned by index

    Output:
        [{"url": str, "inc_img": bool, "inc_css": bool, "inc_js": bool, "filetype": [str]}]

    Rows without a URL are dropped. `filetype` may be given as a newline
    separated string.
    """
    if not value:
        return []

    if isinstance(value, Mapping):
        columns = {field: _column(value, field) for field in CDN_MAPPING_FIELDS}
        size = max(len(col) for col in columns.values())
        raw_rows = [
            {field: col[i] for field, col in columns.items() if i < len(col)} for i in range(size)
        ]
    elif isinstance(value, list):
        raw_rows = [row for row in value if isinstance(row, Mapping)]
    else:
        logger.debug(f"[conf] Dropping CDN mapping of unexpected type {type(value).__name__}")
        return []

    rows = [_cdn_row(raw) for raw in raw_rows]
    return [row for row in rows if row[CDN_MAPPING_URL]]


def cdn_mapping_to_input(rows: Any) -> dict[str, list[Any]]:
    """Column shape of the CDN mapping as rendered by the admin form.

    Always has at least one row so the form shows an empty line to fill.
    """
    normalized = normalize_cdn_mapping(rows)
    columns: dict[str, list[Any]] = {field: [] for field in CDN_MAPPING_FIELDS}
    for row in normalized:
        columns[CDN_MAPPING_URL].append(row[CDN_MAPPING_URL])
        for field in _CDN_FLAG_FIELDS:
            columns[field].append(row[field])
        columns[CDN_MAPPING_FILETYPE].append("\n".join(row[CDN_MAPPING_FILETYPE]))
    if not normalized:
        for field in CDN_MAPPING_FIELDS:
            columns[field].append(False)
    return columns


def normalize_crawler_cookies(value: Any) -> list[dict[str, Any]]:
    """Canonical rows for the crawler cookie simulation option.

    Input shapes:
        rows:        [{"name": str, "vals": str | [str]}]
        columns:     {"name": [...], "vals": [...]}, lists aligned by index
        associative: {cookie_name: vals}

    Output:
        [{"name": str, "vals": [str]}], cookies without a name dropped
    """
    if not value:
        return []

    pairs: list[tuple[Any, Any]]
    if isinstance(value, Mapping):
        if set(value) == {"name", "vals"} and isinstance(value["name"], (list, Mapping)):
            names = _column(value, "name")
            vals = _column(value, "vals")
            pairs = [(name, vals[i] if i < len(vals) else []) for i, name in enumerate(names)]
        else:
            pairs = list(value.items())
    elif isinstance(value, list):
        pairs = [(row.get("name"), row.get("vals")) for row in value if isinstance(row, Mapping)]
    else:
        logger.debug(f"[conf] Dropping crawler cookies of unexpected type {type(value).__name__}")
        return []

    rows = []
    for name, vals in pairs:
        name = str(name or "").strip()
        if not name:
            continue
        rows.append({"name": name, "vals": _split_lines(vals)})
    return rows


def crawler_cookies_to_input(rows: Any) -> dict[str, list[Any]]:
    """Column shape of the crawler cookies as rendered by the admin form."""
    normalized = normalize_crawler_cookies(rows)
    return {
        "name": [row["name"] for row in normalized],
        "vals": ["\n".join(row["vals"]) for row in normalized],
    }


STRUCTURED_NORMALIZERS = {
    O_CDN_MAPPING: normalize_cdn_mapping,
    O_CRWL_COOKIES: normalize_crawler_cookies,
}


def normalize_option(key: str, value: Any) -> Any:
    """Apply the structured normalizer registered for `key`, if any."""
    normalizer = STRUCTURED_NORMALIZERS.get(key)
    return normalizer(value) if normalizer else value


def convert_options_to_input(options: Mapping[str, Any]) -> dict[str, Any]:
    """Convert an option set to the admin form shape.

    Booleans become the `VAL_ON`/`VAL_OFF` sentinels and the structured
    options switch to their column shape.
    """
    converted: dict[str, Any] = {}
    for key, value in options.items():
        if value is True:
            converted[key] = VAL_ON
        elif value is False:
            converted[key] = VAL_OFF
        else:
            converted[key] = value

    converted[O_CDN_MAPPING] = cdn_mapping_to_input(options.get(O_CDN_MAPPING))
    converted[O_CRWL_COOKIES] = crawler_cookies_to_input(options.get(O_CRWL_COOKIES))
    return converted


def encode_value(kind: OptionKind | None, value: Any) -> Any:
    """Storage representation of an in-memory value."""
    if kind is OptionKind.FLAG:
        return VAL_ON if to_bool(value) else VAL_OFF
    return value


def decode_value(kind: OptionKind | None, value: Any) -> Any:
    """In-memory representation of a stored value."""
    if kind is OptionKind.FLAG:
        return to_bool(value)
    return value
