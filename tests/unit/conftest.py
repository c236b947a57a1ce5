"""In-memory connectors and context fixtures for unit tests."""
from __future__ import annotations

import io
import itertools
from typing import Dict, List, Optional, Tuple

import pytest

from contacts_etl.config import PropertiesProvider
from contacts_etl.connectors.base import ConnectorError, ConnectorKind
from contacts_etl.connectors.factory import ConnectorFactory
from contacts_etl.connectors.store import CellVersion, RowMutation, RowSnapshot
from contacts_etl.context import ApplicationContext

BASE_PROPERTIES = {
    "application": {"logs": "console", "archival": True, "env_name": "Dev"},
    "store": {"contacts_table": "contacts", "contacts_temp_table": "contacts_temp"},
    "relational": {
        "acquittal_table": "acquittal",
        "cartography_procedure": "cartography_entries",
    },
}


class FakeConnector:
    kind = ConnectorKind.STORE

    def __init__(self) -> None:
        self.connected = False
        self.fail_connect = False
        self.fail_disconnect = False
        self.connect_calls = 0
        self.disconnect_calls = 0

    def connect(self) -> None:
        self.connect_calls += 1
        if self.fail_connect:
            raise ConnectorError(self.kind, "connection refused")
        self.connected = True

    def disconnect(self) -> None:
        self.disconnect_calls += 1
        if self.fail_disconnect:
            raise ConnectorError(self.kind, "disconnect failed")
        self.connected = False


class FakeStore(FakeConnector):
    kind = ConnectorKind.STORE

    def __init__(self) -> None:
        super().__init__()
        self.table: Optional[str] = None
        self.writes: List[Tuple[str, List[RowMutation]]] = []
        self.reads: List[Tuple[str, str]] = []
        self.fail_tables: set = set()
        self.rows: Dict[str, Dict[str, RowSnapshot]] = {}
        self._clock = itertools.count(1000)

    def set_table(self, name):
        self.table = name

    def multi_put(self, mutations):
        if not self.connected:
            raise ConnectorError(self.kind, "store is not connected")
        if self.table in self.fail_tables:
            raise ConnectorError(self.kind, f"write to {self.table} failed")
        batch = list(mutations)
        self.writes.append((self.table, batch))
        table_rows = self.rows.setdefault(self.table, {})
        for mutation in batch:
            snapshot = table_rows.setdefault(mutation.row_key, RowSnapshot(mutation.row_key))
            for cell in mutation.cells:
                ts = cell.timestamp if cell.timestamp is not None else next(self._clock)
                versions = snapshot.versions.setdefault((cell.family, cell.qualifier), [])
                versions.append(CellVersion(ts, cell.value))
                versions.sort(key=lambda v: v.timestamp, reverse=True)

    def get_row(self, row_key):
        self.reads.append((self.table, row_key))
        return self.rows.get(self.table, {}).get(row_key, RowSnapshot(row_key))

    def writes_to(self, table: str) -> List[List[RowMutation]]:
        return [batch for name, batch in self.writes if name == table]


class FakeAppender(io.StringIO):
    def __init__(self, fail_close: bool = False) -> None:
        super().__init__()
        self.fail_close = fail_close
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        if self.fail_close:
            raise OSError("close failed")
        super().close()


class FakeFilesystem(FakeConnector):
    kind = ConnectorKind.FILESYSTEM

    def __init__(self) -> None:
        super().__init__()
        self.appenders: Dict[str, FakeAppender] = {}
        self.fail_open: set = set()
        self.fail_close: set = set()
        self.fail_dedupe: set = set()
        self.deduplicated: List[str] = []

    def get_appender(self, path):
        if path in self.fail_open:
            raise OSError(f"cannot open {path}")
        appender = FakeAppender(fail_close=path in self.fail_close)
        self.appenders[path] = appender
        return appender

    def deduplicate_lines(self, path):
        if path in self.fail_dedupe:
            raise OSError(f"cannot deduplicate {path}")
        self.deduplicated.append(path)
        return 0


class FakeRelational(FakeConnector):
    kind = ConnectorKind.RELATIONAL

    def __init__(self, name: str = "reporting") -> None:
        super().__init__()
        self.name = name
        self.updates: List[Tuple[str, tuple]] = []
        self.fail_update = False
        self.procedure_rows: list = []
        self.fail_procedure = False

    def procedure(self, name):
        if self.fail_procedure or not self.connected:
            raise ConnectorError(self.kind, f"procedure {name} failed")
        return list(self.procedure_rows)

    def execute_update(self, sql, params=()):
        if self.fail_update or not self.connected:
            raise ConnectorError(self.kind, "update failed")
        self.updates.append((sql, tuple(params)))
        return 1


class FakeQueue(FakeConnector):
    kind = ConnectorKind.QUEUE

    def __init__(self) -> None:
        super().__init__()
        self.topic = None

    def set_topic(self, name):
        self.topic = name

    def publish(self, key, payload):
        pass


class FakeFactory(ConnectorFactory):
    """Hands out pre-built fakes and counts how often each is requested."""

    def __init__(self, properties: PropertiesProvider) -> None:
        super().__init__(properties)
        self.store = FakeStore()
        self.filesystem = FakeFilesystem()
        self.relational = FakeRelational("reporting")
        self.cartography = FakeRelational("cartography")
        self.queue = FakeQueue()
        self.overrides: List[FakeRelational] = []
        self.override_fail_connect = False
        self.created: Dict[str, int] = {}

    def _count(self, name: str) -> None:
        self.created[name] = self.created.get(name, 0) + 1

    def create_store(self):
        self._count("store")
        return self.store

    def create_filesystem(self):
        self._count("filesystem")
        return self.filesystem

    def create_relational(self):
        self._count("relational")
        return self.relational

    def create_cartography(self):
        self._count("cartography")
        return self.cartography

    def create_reporting_override(self):
        self._count("override")
        override = FakeRelational("override")
        override.fail_connect = self.override_fail_connect
        self.overrides.append(override)
        return override

    def create_queue(self):
        self._count("queue")
        return self.queue


def merge_properties(overrides: dict | None = None) -> dict:
    merged = {section: dict(values) for section, values in BASE_PROPERTIES.items()}
    for section, values in (overrides or {}).items():
        merged.setdefault(section, {}).update(values)
    return merged


@pytest.fixture
def make_context():
    """Build a context wired to fakes; returns (context, factory)."""
    contexts = []

    def _make(overrides: dict | None = None):
        properties = PropertiesProvider.from_mapping(merge_properties(overrides))
        factory = FakeFactory(properties)
        context = ApplicationContext(properties, factory=factory)
        contexts.append(context)
        return context, factory

    yield _make
    for context in contexts:
        context.loggers.close()


@pytest.fixture
def mutation():
    def _mutation(row_key: str, **cells: str) -> RowMutation:
        built = RowMutation(row_key)
        for qualifier, value in cells.items():
            built.add("c", qualifier, value)
        return built

    return _mutation
