"""Centralized package information for cacheconf.

Single source of truth for the package name and version. The option
schema carries its own version (see `cacheconf.server.core.config.schema`),
which is what stored option sets are compared against.
"""

from importlib.metadata import PackageNotFoundError, version

__all__ = ["PACKAGE_NAME", "PACKAGE_VERSION"]

PACKAGE_NAME = "cacheconf"

try:
    PACKAGE_VERSION = version(PACKAGE_NAME)
except PackageNotFoundError:
    PACKAGE_VERSION = "unknown"
