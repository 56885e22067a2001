"""cacheconf server - the configuration engine and its outer surfaces.

This package contains:
- Core configuration engine (schema, migration, resolution, mutation)
- Admin API for querying and changing options over a Unix socket
- Command line interface
"""
