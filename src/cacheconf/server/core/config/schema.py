"""Option schema for the page cache.

Every recognized option is declared here exactly once, per scope:

- site options: one value per tenant
- network options: shared by all tenants of a multi-tenant deployment; keys
  that also exist as site options override the tenant's value

The kind of an option is inferred from its default value. Flags are held as
Python booleans in memory and written to storage as the `VAL_ON`/`VAL_OFF`
sentinels.
"""

from __future__ import annotations

import copy
import logging
import os
from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from typing import Any

from pydantic import model_validator

from cacheconf.sdk.models import SdkBaseModel

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "3.2"

VAL_OFF = 0
VAL_ON = 1
# Cache mode "use the network setting"
VAL_ON2 = 2

VERSION_KEY = "_version"

# Site options
O_CACHE = "cache"
O_CACHE_PRIV = "cache-priv"
O_CACHE_COMMENTER = "cache-commenter"
O_CACHE_REST = "cache-rest"
O_CACHE_PAGE_LOGIN = "cache-page_login"
O_CACHE_FAVICON = "cache-favicon"
O_CACHE_RES = "cache-resources"
O_CACHE_MOBILE = "cache-mobile"
O_CACHE_BROWSER = "cache-browser"
O_CACHE_TTL_PUB = "cache-ttl_pub"
O_CACHE_TTL_PRIV = "cache-ttl_priv"
O_CACHE_TTL_FRONTPAGE = "cache-ttl_frontpage"
O_CACHE_TTL_FEED = "cache-ttl_feed"
O_CACHE_EXC_ROLES = "cache-exc_roles"
O_PURGE_ON_UPGRADE = "purge-upgrade"
O_DEBUG = "debug"
O_DEBUG_DISABLE_ALL = "debug-disable_all"
O_UTIL_CHECK_ADVCACHE = "util-check_advcache"
O_OBJECT = "object"
O_OBJECT_HOST = "object-host"
O_OBJECT_PORT = "object-port"
O_OPTM_EXC_ROLES = "optm-exc_roles"
O_CDN = "cdn"
O_CDN_QUIC = "cdn-quic"
O_CDN_ORI = "cdn-ori"
O_CDN_MAPPING = "cdn-mapping"
O_CRWL = "crawler"
O_CRWL_USLEEP = "crawler-usleep"
O_CRWL_RUN_DURATION = "crawler-run_duration"
O_CRWL_COOKIES = "crawler-cookies"

# Network-only options
NETWORK_O_ENABLED = "network-enabled"
NETWORK_O_USE_PRIMARY = "network-use_primary"

# Fields of one CDN mapping row
CDN_MAPPING_URL = "url"
CDN_MAPPING_INC_IMG = "inc_img"
CDN_MAPPING_INC_CSS = "inc_css"
CDN_MAPPING_INC_JS = "inc_js"
CDN_MAPPING_FILETYPE = "filetype"


class OptionKind(str, Enum):
    FLAG = "flag"
    SCALAR = "scalar"
    LIST = "list"
    MAPPING = "mapping"


class OptionScope(str, Enum):
    SITE = "site"
    NETWORK = "network"


def infer_kind(value: Any) -> OptionKind:
    """Infer the option kind from a default value."""
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return OptionKind.FLAG
    if isinstance(value, list):
        return OptionKind.LIST
    if isinstance(value, dict):
        return OptionKind.MAPPING
    return OptionKind.SCALAR


class OptionSpec(SdkBaseModel):
    """Declaration of one option.

    Attributes:
        name: Stable option key
        default: Cheap static default, also defines the option kind
        kind: Inferred from `default` when not given
        choices: Allowed values for enumerated scalars
        factory: Computes the real default from host facts (an environment
            mapping); used by `OptionSchema.default_vals`
    """

    name: str
    default: Any
    kind: OptionKind | None = None
    choices: tuple[Any, ...] | None = None
    factory: Callable[[Mapping[str, str]], Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _infer_kind(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("kind") is None:
            data = {**data, "kind": infer_kind(data.get("default"))}
        return data

    def real_default(self, environ: Mapping[str, str]) -> Any:
        if self.factory is None:
            return copy.deepcopy(self.default)
        return self.factory(environ)


def _env_str(var: str, fallback: str) -> Callable[[Mapping[str, str]], Any]:
    def factory(environ: Mapping[str, str]) -> Any:
        return environ.get(var) or fallback

    return factory


def _env_int(var: str, fallback: int) -> Callable[[Mapping[str, str]], Any]:
    def factory(environ: Mapping[str, str]) -> Any:
        raw = environ.get(var)
        if not raw:
            return fallback
        try:
            return int(raw)
        except ValueError:
            logger.warning(f"[conf] Ignoring non-numeric {var}={raw!r}")
            return fallback

    return factory


_DEBUG_CHOICES = (0, 1, 2)
_CACHE_CHOICES = (VAL_OFF, VAL_ON, VAL_ON2)

SITE_OPTIONS: list[OptionSpec] = [
    OptionSpec(name=VERSION_KEY, default=""),
    OptionSpec(name=O_CACHE, default=VAL_ON, choices=_CACHE_CHOICES),
    OptionSpec(name=O_CACHE_PRIV, default=True),
    OptionSpec(name=O_CACHE_COMMENTER, default=True),
    OptionSpec(name=O_CACHE_REST, default=True),
    OptionSpec(name=O_CACHE_PAGE_LOGIN, default=True),
    OptionSpec(name=O_CACHE_FAVICON, default=True),
    OptionSpec(name=O_CACHE_RES, default=True),
    OptionSpec(name=O_CACHE_MOBILE, default=False),
    OptionSpec(name=O_CACHE_BROWSER, default=False),
    OptionSpec(name=O_CACHE_TTL_PUB, default=604800),
    OptionSpec(name=O_CACHE_TTL_PRIV, default=1800),
    OptionSpec(name=O_CACHE_TTL_FRONTPAGE, default=604800),
    OptionSpec(name=O_CACHE_TTL_FEED, default=0),
    OptionSpec(name=O_CACHE_EXC_ROLES, default=[]),
    OptionSpec(name=O_PURGE_ON_UPGRADE, default=True),
    OptionSpec(name=O_DEBUG, default=0, choices=_DEBUG_CHOICES),
    OptionSpec(name=O_DEBUG_DISABLE_ALL, default=False),
    OptionSpec(name=O_UTIL_CHECK_ADVCACHE, default=True),
    OptionSpec(name=O_OBJECT, default=False),
    OptionSpec(
        name=O_OBJECT_HOST,
        default="localhost",
        factory=_env_str("CACHECONF_OBJECT_HOST", "localhost"),
    ),
    OptionSpec(
        name=O_OBJECT_PORT,
        default=11211,
        factory=_env_int("CACHECONF_OBJECT_PORT", 11211),
    ),
    OptionSpec(name=O_OPTM_EXC_ROLES, default=[]),
    OptionSpec(name=O_CDN, default=False),
    OptionSpec(name=O_CDN_QUIC, default=False),
    OptionSpec(name=O_CDN_ORI, default="", factory=_env_str("CACHECONF_SITE_URL", "")),
    OptionSpec(name=O_CDN_MAPPING, default=[]),
    OptionSpec(name=O_CRWL, default=False),
    OptionSpec(name=O_CRWL_USLEEP, default=500),
    OptionSpec(name=O_CRWL_RUN_DURATION, default=400),
    OptionSpec(name=O_CRWL_COOKIES, default=[]),
]

NETWORK_OPTIONS: list[OptionSpec] = [
    OptionSpec(name=VERSION_KEY, default=""),
    OptionSpec(name=NETWORK_O_ENABLED, default=True),
    OptionSpec(name=NETWORK_O_USE_PRIMARY, default=False),
    OptionSpec(name=O_CACHE_FAVICON, default=True),
    OptionSpec(name=O_CACHE_RES, default=True),
    OptionSpec(name=O_CACHE_MOBILE, default=False),
    OptionSpec(name=O_CACHE_BROWSER, default=False),
    OptionSpec(name=O_PURGE_ON_UPGRADE, default=True),
    OptionSpec(name=O_DEBUG_DISABLE_ALL, default=False),
    OptionSpec(name=O_OBJECT, default=False),
    OptionSpec(
        name=O_OBJECT_HOST,
        default="localhost",
        factory=_env_str("CACHECONF_OBJECT_HOST", "localhost"),
    ),
    OptionSpec(
        name=O_OBJECT_PORT,
        default=11211,
        factory=_env_int("CACHECONF_OBJECT_PORT", 11211),
    ),
]


def _kind_json_schema(spec: OptionSpec) -> dict[str, Any]:
    if spec.choices is not None:
        return {"enum": list(spec.choices)}
    if spec.kind is OptionKind.FLAG:
        return {"type": "boolean"}
    if spec.kind is OptionKind.LIST:
        return {"type": "array"}
    if spec.kind is OptionKind.MAPPING:
        return {"type": "object"}
    if isinstance(spec.default, int):
        return {"type": "integer"}
    return {"type": "string"}


class OptionSchema:
    """The declared option set of both scopes.

    Calls never touch storage and always return fresh containers, so the
    result of `default_keys` can be mutated by the caller.

    Example:
        >>> schema = OptionSchema()
        >>> schema.default_keys()[O_CACHE]
        1
        >>> schema.default_vals(environ={"CACHECONF_OBJECT_PORT": "11311"})[O_OBJECT_PORT]
        11311
    """

    def __init__(
        self,
        site: Iterable[OptionSpec] | None = None,
        network: Iterable[OptionSpec] | None = None,
        version: str = SCHEMA_VERSION,
    ) -> None:
        self.version = version
        self._specs: dict[OptionScope, dict[str, OptionSpec]] = {
            OptionScope.SITE: {s.name: s for s in (SITE_OPTIONS if site is None else site)},
            OptionScope.NETWORK: {
                s.name: s for s in (NETWORK_OPTIONS if network is None else network)
            },
        }

    def keys(self, scope: OptionScope = OptionScope.SITE) -> list[str]:
        return list(self._specs[scope])

    def get_spec(self, key: str, scope: OptionScope = OptionScope.SITE) -> OptionSpec | None:
        return self._specs[scope].get(key)

    def kind_of(self, key: str, scope: OptionScope = OptionScope.SITE) -> OptionKind | None:
        spec = self.get_spec(key, scope)
        return spec.kind if spec else None

    def default_keys(self, scope: OptionScope = OptionScope.SITE) -> dict[str, Any]:
        """Every key with its static default, in declaration order."""
        defaults = {name: copy.deepcopy(spec.default) for name, spec in self._specs[scope].items()}
        if VERSION_KEY in defaults:
            defaults[VERSION_KEY] = self.version
        return defaults

    def default_vals(
        self,
        scope: OptionScope = OptionScope.SITE,
        environ: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """Every key with its real default, computing factory-backed defaults.

        Args:
            scope: Which option set to describe
            environ: Host facts for factories; defaults to `os.environ`
        """
        env = os.environ if environ is None else environ
        defaults = {name: spec.real_default(env) for name, spec in self._specs[scope].items()}
        if VERSION_KEY in defaults:
            defaults[VERSION_KEY] = self.version
        return defaults

    def network_default_keys(self) -> dict[str, Any]:
        return self.default_keys(OptionScope.NETWORK)

    def network_default_vals(self, environ: Mapping[str, str] | None = None) -> dict[str, Any]:
        return self.default_vals(OptionScope.NETWORK, environ)

    def json_schema(self, scope: OptionScope = OptionScope.SITE) -> dict[str, Any]:
        """JSON Schema describing a complete option set of the given scope."""
        return {
            "type": "object",
            "properties": {
                name: _kind_json_schema(spec) for name, spec in self._specs[scope].items()
            },
            "additionalProperties": False,
        }
