"""SQLite-backed relational connector for reporting and reference data."""
from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import List, Optional, Sequence

from .base import ConnectorError, ConnectorKind


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class SqliteRelationalConnector:
    """Stored queries are modelled as views: procedure(name) selects from one."""

    kind = ConnectorKind.RELATIONAL

    def __init__(self, database: str | Path | None) -> None:
        self.database = database
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def connected(self) -> bool:
        return self._conn is not None

    def connect(self) -> None:
        if self.database is None:
            raise ConnectorError(self.kind, "database is not configured")
        try:
            path = Path(self.database)
            path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(path, check_same_thread=False)
        except (sqlite3.Error, OSError) as exc:
            raise ConnectorError(self.kind, f"cannot open {self.database}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        self._conn = conn

    def disconnect(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.close()
        except sqlite3.Error as exc:
            raise ConnectorError(self.kind, str(exc)) from exc
        finally:
            self._conn = None

    def _require(self) -> sqlite3.Connection:
        if self._conn is None:
            raise ConnectorError(self.kind, f"not connected to {self.database}")
        return self._conn

    def procedure(self, name: str) -> List[sqlite3.Row]:
        conn = self._require()
        if not name:
            raise ConnectorError(self.kind, "procedure name is not configured")
        try:
            return conn.execute(f"SELECT * FROM {quote_identifier(name)}").fetchall()
        except sqlite3.Error as exc:
            raise ConnectorError(self.kind, f"procedure {name} failed: {exc}") from exc

    def execute_update(self, sql: str, params: Sequence[object] = ()) -> int:
        conn = self._require()
        try:
            with conn:
                cursor = conn.execute(sql, tuple(params))
            return cursor.rowcount
        except sqlite3.Error as exc:
            raise ConnectorError(self.kind, f"update failed: {exc}") from exc


__all__ = ["SqliteRelationalConnector", "quote_identifier"]
