"""Bootstrap flag of the host framework.

The host only loads the cache's early bootstrap when its bootstrap file
defines the cache flag (`define('WP_CACHE', true);`). Enabling the cache
writes that definition, disabling it flips the value to false.
"""

from __future__ import annotations

import logging
import os
import re
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_FLAG_NAME = "WP_CACHE"
ANCHOR = "$table_prefix"
OPENING_MARKER = "<?php"


class BootstrapStatus(str, Enum):
    OK = "ok"
    NOT_WRITABLE = "not_writable"
    INSERTION_POINT_NOT_FOUND = "insertion_point_not_found"


def _definition(flag_name: str, enable: bool) -> str:
    return f"define('{flag_name}', {'true' if enable else 'false'});"


def _definition_pattern(flag_name: str, commented: bool) -> re.Pattern[str]:
    definition = r"define\(\s*['\"]" + re.escape(flag_name) + r"['\"]\s*,.*?\);"
    if commented:
        return re.compile(r"(?:/[/*][ \t]*)?" + definition + r"(?:[ \t]*\*/)?")
    return re.compile(definition)


def _writable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.W_OK)


def resolve_bootstrap_path(path: Path, fallback_path: Path | None = None) -> Path | None:
    """The bootstrap file to edit: `path`, else the fallback, else None.

    The default fallback is the same file name one directory up.
    """
    if _writable(path):
        return path
    fallback = fallback_path or path.parent.parent / path.name
    if _writable(fallback):
        logger.debug(f"[conf] {path} not writable, using {fallback}")
        return fallback
    return None


def rewrite_bootstrap_content(content: str, enable: bool, flag_name: str = DEFAULT_FLAG_NAME) -> str | None:
    """New file content with the flag set, None when there is no place to put it."""
    definition = _definition(flag_name, enable)

    if not enable:
        return _definition_pattern(flag_name, commented=False).sub(definition, content)

    # Commented out definitions are revived
    new_content, count = _definition_pattern(flag_name, commented=True).subn(definition, content)
    if count:
        return new_content

    if ANCHOR in content:
        return content.replace(ANCHOR, f"{definition}\n{ANCHOR}", 1)
    if OPENING_MARKER in content:
        return content.replace(OPENING_MARKER, f"{OPENING_MARKER}\n{definition}", 1)
    return None


def set_bootstrap_flag(
    enable: bool,
    path: Path,
    fallback_path: Path | None = None,
    flag_name: str = DEFAULT_FLAG_NAME,
) -> BootstrapStatus:
    """Write the cache flag into the bootstrap file.

    The file is only rewritten when its content changes.

    Args:
        enable: Desired flag value
        path: The bootstrap file
        fallback_path: Tried when `path` is not writable
        flag_name: Name of the defined constant

    Returns:
        OK, NOT_WRITABLE when neither path can be written, or
        INSERTION_POINT_NOT_FOUND when enabling finds no place for the
        definition
    """
    target = resolve_bootstrap_path(Path(path), Path(fallback_path) if fallback_path else None)
    if target is None:
        logger.error(f"[conf] Bootstrap file not writable for '{flag_name}': {path}")
        return BootstrapStatus.NOT_WRITABLE

    content = target.read_text()
    new_content = rewrite_bootstrap_content(content, enable, flag_name)
    if new_content is None:
        logger.error(f"[conf] Bootstrap file {target} has no place to insert '{flag_name}'")
        return BootstrapStatus.INSERTION_POINT_NOT_FOUND

    if new_content != content:
        target.write_text(new_content)
        logger.info(f"[conf] Set '{flag_name}' to {enable} in {target}")
    return BootstrapStatus.OK


_VALUE_PATTERN = r"^\s*define\(\s*['\"]{name}['\"]\s*,\s*(true|false)\s*\);"


def read_bootstrap_flag(path: Path, flag_name: str = DEFAULT_FLAG_NAME) -> bool | None:
    """Value of the flag as currently defined, None when the file or the definition is missing."""
    path = Path(path)
    if not path.is_file():
        return None
    pattern = re.compile(_VALUE_PATTERN.format(name=re.escape(flag_name)), re.MULTILINE | re.IGNORECASE)
    match = pattern.search(path.read_text())
    if match is None:
        return None
    return match.group(1).lower() == "true"
