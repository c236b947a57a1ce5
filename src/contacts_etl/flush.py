"""Commits buffered row mutations to the contacts tables."""
from __future__ import annotations

from typing import Dict, List, Mapping

from .buffer import RowBuffer
from .config import PropertiesProvider, Property
from .connectors.base import ConnectorError, RowStore
from .connectors.registry import ConnectorRegistry
from .connectors.store import CellKey, RowMutation, RowSnapshot
from .logs import ContactLogger, ErrorClass


def reconcile(snapshot: RowSnapshot, mutation: RowMutation) -> RowMutation:
    """Collapse a stored row to one version per cell.

    Stored values win. Cells present only in the local mutation (not yet
    visible in the snapshot) keep their local value. Timestamps are dropped so
    the store stamps the reconciled row at write time.
    """
    values: Dict[CellKey, str] = {}
    for cell in mutation.cells:
        values[(cell.family, cell.qualifier)] = cell.value
    values.update(snapshot.latest())

    reconciled = RowMutation(row_key=mutation.row_key)
    for (family, qualifier), value in sorted(values.items()):
        reconciled.add(family, qualifier, value)
    return reconciled


class FlushController:
    """Drains the write buffer into the primary and staging tables.

    The buffer is reset only when every commit of a call succeeded, so a
    failed flush can be retried with the exact same batch.
    """

    def __init__(
        self,
        registry: ConnectorRegistry,
        buffer: RowBuffer,
        properties: PropertiesProvider,
        logger: ContactLogger,
    ) -> None:
        self._registry = registry
        self._buffer = buffer
        self._properties = properties
        self._logger = logger

    def flush(self, delta: bool = False) -> bool:
        """Commit the buffer to the primary table, then to staging when ``delta``."""
        with self._buffer.guard():
            puts = self._buffer.get_all()
            if not puts:
                self._warn_empty()
                return False
            try:
                store = self._registry.store()
                self._commit(store, Property.STORE_CONTACTS_TABLE, list(puts.values()))
                if delta:
                    reconciled = self._read_back(store, puts)
                    self._commit(store, Property.STORE_CONTACTS_TEMP_TABLE, reconciled)
            except ConnectorError as exc:
                self._logger.error(ErrorClass.STORE, f"Could not write puts to store {exc}")
                return False
            self._buffer.reset()
            return True

    def flush_temp(self) -> bool:
        """Refresh the staging table from the primary table without writing to it."""
        with self._buffer.guard():
            puts = self._buffer.get_all()
            if not puts:
                self._warn_empty()
                return False
            try:
                store = self._registry.store()
                reconciled = self._read_back(store, puts)
                self._commit(store, Property.STORE_CONTACTS_TEMP_TABLE, reconciled)
            except ConnectorError as exc:
                self._logger.error(ErrorClass.STORE, f"Could not write puts to store {exc}")
                return False
            self._buffer.reset()
            return True

    def _warn_empty(self) -> None:
        self._logger.warning(ErrorClass.DATA, "No put operation executed; puts map was empty")

    def _commit(self, store: RowStore, table: Property, mutations: List[RowMutation]) -> None:
        name = self._properties.get(table)
        store.set_table(name)
        store.multi_put(mutations)
        self._logger.info(f"Committed {len(mutations)} mutation(s) to {name}")

    def _read_back(
        self, store: RowStore, puts: Mapping[str, RowMutation]
    ) -> List[RowMutation]:
        # Assumes read-after-write visibility on the primary table.
        store.set_table(self._properties.get(Property.STORE_CONTACTS_TABLE))
        return [reconcile(store.get_row(key), mutation) for key, mutation in puts.items()]


__all__ = ["FlushController", "reconcile"]
