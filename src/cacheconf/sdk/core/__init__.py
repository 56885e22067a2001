"""cacheconf SDK core - package information shared across the project."""

from .version import PACKAGE_NAME, PACKAGE_VERSION

__all__ = ["PACKAGE_NAME", "PACKAGE_VERSION"]
