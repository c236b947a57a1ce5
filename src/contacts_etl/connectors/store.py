"""Row model and SQLite-backed multi-version row store."""
from __future__ import annotations

import sqlite3
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .base import ConnectorError, ConnectorKind

CellKey = Tuple[str, str]  # (family, qualifier)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class Cell:
    family: str
    qualifier: str
    value: str
    timestamp: Optional[int] = None


@dataclass
class RowMutation:
    """One pending write against one row."""

    row_key: str
    cells: List[Cell] = field(default_factory=list)

    def add(
        self, family: str, qualifier: str, value: str, timestamp: Optional[int] = None
    ) -> "RowMutation":
        self.cells.append(Cell(family, qualifier, value, timestamp))
        return self

    def to_dict(self) -> dict:
        return {
            "row_key": self.row_key,
            "cells": [
                {
                    "family": cell.family,
                    "qualifier": cell.qualifier,
                    "value": cell.value,
                    "timestamp": cell.timestamp,
                }
                for cell in self.cells
            ],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "RowMutation":
        row_key = payload.get("row_key")
        if not row_key:
            raise ValueError("row_key is required")
        cells = [
            Cell(
                family=str(item["family"]),
                qualifier=str(item["qualifier"]),
                value=str(item["value"]),
                timestamp=item.get("timestamp"),
            )
            for item in payload.get("cells") or []
        ]
        return cls(row_key=str(row_key), cells=cells)


@dataclass(frozen=True)
class CellVersion:
    timestamp: int
    value: str


@dataclass
class RowSnapshot:
    """Stored state of a row; versions per cell are newest first."""

    row_key: str
    versions: Dict[CellKey, List[CellVersion]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.versions

    def latest(self) -> Dict[CellKey, str]:
        return {key: versions[0].value for key, versions in self.versions.items() if versions}


class SqliteRowStore:
    """Row store keeping every table in one SQLite file.

    Each cell write is a new version keyed by its timestamp; writing the same
    (row, family, qualifier, timestamp) twice overwrites the earlier value.
    """

    kind = ConnectorKind.STORE

    def __init__(self, db_path: str | Path | None, max_versions: int = 3) -> None:
        self.db_path = db_path
        self.max_versions = max(1, int(max_versions))
        self.table: Optional[str] = None
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def connected(self) -> bool:
        return self._conn is not None

    def connect(self) -> None:
        if self.db_path is None:
            raise ConnectorError(self.kind, "store path is not configured")
        try:
            path = Path(self.db_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            with conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS cells (
                        table_name TEXT NOT NULL,
                        row_key TEXT NOT NULL,
                        family TEXT NOT NULL,
                        qualifier TEXT NOT NULL,
                        ts INTEGER NOT NULL,
                        value TEXT NOT NULL,
                        PRIMARY KEY (table_name, row_key, family, qualifier, ts)
                    )
                    """
                )
        except (sqlite3.Error, OSError) as exc:
            raise ConnectorError(self.kind, f"cannot open store {self.db_path}: {exc}") from exc
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

    def set_table(self, name: str | None) -> None:
        self.table = name

    def _require(self) -> Tuple[sqlite3.Connection, str]:
        if self._conn is None:
            raise ConnectorError(self.kind, "store is not connected")
        if not self.table:
            raise ConnectorError(self.kind, "no table selected")
        return self._conn, self.table

    def multi_put(self, mutations: Iterable[RowMutation]) -> None:
        conn, table = self._require()
        now = _now_ms()
        rows = [
            (
                table,
                mutation.row_key,
                cell.family,
                cell.qualifier,
                cell.timestamp if cell.timestamp is not None else now,
                cell.value,
            )
            for mutation in mutations
            for cell in mutation.cells
        ]
        try:
            with conn:
                conn.executemany(
                    """
                    INSERT OR REPLACE INTO cells (
                        table_name, row_key, family, qualifier, ts, value
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    rows,
                )
        except sqlite3.Error as exc:
            raise ConnectorError(self.kind, f"multi put on {table} failed: {exc}") from exc

    def get_row(self, row_key: str) -> RowSnapshot:
        conn, table = self._require()
        try:
            rows = conn.execute(
                """
                SELECT family, qualifier, ts, value
                  FROM cells
                 WHERE table_name = ? AND row_key = ?
                 ORDER BY family, qualifier, ts DESC
                """,
                (table, row_key),
            ).fetchall()
        except sqlite3.Error as exc:
            raise ConnectorError(self.kind, f"get row {row_key} failed: {exc}") from exc

        snapshot = RowSnapshot(row_key=row_key)
        for row in rows:
            versions = snapshot.versions.setdefault((row["family"], row["qualifier"]), [])
            if len(versions) < self.max_versions:
                versions.append(CellVersion(timestamp=row["ts"], value=row["value"]))
        return snapshot


__all__ = [
    "Cell",
    "CellVersion",
    "RowMutation",
    "RowSnapshot",
    "SqliteRowStore",
]
