"""cacheconf - configuration resolution for a multi-tenant page cache.

The package is split the same way as the runtime:

- ``cacheconf.sdk``: shared models, version information and the option
  persistence adapters (in-memory and DuckDB)
- ``cacheconf.server``: the configuration engine (schema, migration,
  resolution, mutation), the admin API and the CLI
"""
