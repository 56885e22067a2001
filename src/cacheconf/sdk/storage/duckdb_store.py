"""
DuckDB option store.

All tenants of a deployment share one database file. Per-tenant values live
in ``options`` keyed by ``(tenant_id, name)``; network values live in
``network_options`` keyed by ``name``. Values are stored as JSON text so any
option kind (flag sentinel, scalar, structured container) round-trips.
"""

import contextlib
import json
import logging
from pathlib import Path
from typing import Any

import duckdb

logger = logging.getLogger(__name__)

_SCHEMA_SQL = [
    """
    CREATE TABLE IF NOT EXISTS options (
        tenant_id INTEGER NOT NULL,
        name VARCHAR NOT NULL,
        value VARCHAR,
        PRIMARY KEY (tenant_id, name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS network_options (
        name VARCHAR PRIMARY KEY,
        value VARCHAR
    )
    """,
]

_MISSING = object()


class DuckDBOptionStore:
    """`OptionStore` backed by a DuckDB database file.

    Args:
        path: Database file path, or ":memory:" for a private in-process database
        tenant_id: Tenant whose options `get`/`add`/`update` operate on
        readonly: Open the database read-only (writes will raise)
    """

    def __init__(self, path: str | Path, tenant_id: int = 1, readonly: bool = False) -> None:
        self.path = str(path)
        self.tenant_id = tenant_id
        self.readonly = readonly
        self.conn: duckdb.DuckDBPyConnection | None = None
        self._connect()

    def __enter__(self) -> "DuckDBOptionStore":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __del__(self) -> None:
        with contextlib.suppress(Exception):
            self.close()

    def _connect(self) -> None:
        logger.debug(f"Connecting to DuckDB option store at: {self.path}")

        if self.path != ":memory:":
            db_dir = Path(self.path).parent
            if not db_dir.exists():
                logger.info(f"Creating directory {db_dir} for option store")
                db_dir.mkdir(parents=True, exist_ok=True)

        if self.readonly and self.path != ":memory:":
            if not Path(self.path).exists():
                # Read-only connections need an existing database with the tables in place
                with duckdb.connect(self.path) as temp_conn:
                    for statement in _SCHEMA_SQL:
                        temp_conn.execute(statement)
            self.conn = duckdb.connect(self.path, read_only=True)
            logger.info("Opened option store in read-only mode")
            return

        self.conn = duckdb.connect(self.path)
        for statement in _SCHEMA_SQL:
            self.conn.execute(statement)

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    @property
    def _db(self) -> duckdb.DuckDBPyConnection:
        if self.conn is None:
            raise RuntimeError("Option store is closed")
        return self.conn

    def _fetch(self, tenant_id: int | None, name: str) -> Any:
        if tenant_id is None:
            row = self._db.execute(
                "SELECT value FROM network_options WHERE name = ?", [name]
            ).fetchone()
        else:
            row = self._db.execute(
                "SELECT value FROM options WHERE tenant_id = ? AND name = ?", [tenant_id, name]
            ).fetchone()
        if row is None:
            return _MISSING
        return json.loads(row[0]) if row[0] is not None else None

    def get(self, name: str, default: Any = None) -> Any:
        return self.get_for_tenant(self.tenant_id, name, default)

    def get_for_tenant(self, tenant_id: int, name: str, default: Any = None) -> Any:
        value = self._fetch(tenant_id, name)
        return default if value is _MISSING else value

    def get_network(self, name: str, default: Any = None) -> Any:
        value = self._fetch(None, name)
        return default if value is _MISSING else value

    def add(self, name: str, value: Any) -> bool:
        if self._fetch(self.tenant_id, name) is not _MISSING:
            return False
        self._db.execute(
            "INSERT INTO options (tenant_id, name, value) VALUES (?, ?, ?) ON CONFLICT DO NOTHING",
            [self.tenant_id, name, json.dumps(value)],
        )
        return True

    def add_network(self, name: str, value: Any) -> bool:
        if self._fetch(None, name) is not _MISSING:
            return False
        self._db.execute(
            "INSERT INTO network_options (name, value) VALUES (?, ?) ON CONFLICT DO NOTHING",
            [name, json.dumps(value)],
        )
        return True

    def update(self, name: str, value: Any) -> bool:
        if self._fetch(self.tenant_id, name) == value:
            return False
        self._db.execute(
            """
            INSERT INTO options (tenant_id, name, value) VALUES (?, ?, ?)
            ON CONFLICT (tenant_id, name) DO UPDATE SET value = excluded.value
            """,
            [self.tenant_id, name, json.dumps(value)],
        )
        return True

    def update_network(self, name: str, value: Any) -> bool:
        if self._fetch(None, name) == value:
            return False
        self._db.execute(
            """
            INSERT INTO network_options (name, value) VALUES (?, ?)
            ON CONFLICT (name) DO UPDATE SET value = excluded.value
            """,
            [name, json.dumps(value)],
        )
        return True
