"""cacheconf SDK - building blocks shared by the configuration engine.

## Core Modules

### Models (`cacheconf.sdk.models`)
Base Pydantic model with the project-wide model configuration.

### Storage (`cacheconf.sdk.storage`)
The `OptionStore` protocol and its implementations. Every stored option
name is namespaced with `conf_name()` so it never collides with unrelated
settings of the host framework.

### Core (`cacheconf.sdk.core`)
Package name and version information.
"""
