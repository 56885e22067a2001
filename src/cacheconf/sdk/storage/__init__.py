"""Option persistence adapters.

This package defines what the configuration engine needs from a key/value
store and ships two implementations:

- `MemoryOptionStore`: dictionaries, used by tests and dry runs
- `DuckDBOptionStore`: a DuckDB database file shared by every tenant
"""

from .duckdb_store import DuckDBOptionStore
from .memory import MemoryOptionStore
from .protocol import CONF_PREFIX, OptionStore, conf_name

__all__ = [
    "CONF_PREFIX",
    "OptionStore",
    "conf_name",
    "MemoryOptionStore",
    "DuckDBOptionStore",
]
