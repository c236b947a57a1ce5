from __future__ import annotations

import pytest

from contacts_etl.connectors.base import ConnectorError
from contacts_etl.connectors.store import CellVersion, RowMutation, SqliteRowStore


@pytest.fixture
def store(tmp_path):
    row_store = SqliteRowStore(tmp_path / "store" / "contacts.db", max_versions=2)
    row_store.connect()
    row_store.set_table("contacts")
    yield row_store
    row_store.disconnect()


def test_get_row_returns_versions_newest_first(store):
    store.multi_put([RowMutation("row1").add("c", "name", "v1", 10)])
    store.multi_put([RowMutation("row1").add("c", "name", "v2", 20)])
    store.multi_put([RowMutation("row1").add("c", "name", "v3", 30).add("c", "city", "Lyon", 30)])

    snapshot = store.get_row("row1")

    assert snapshot.versions[("c", "name")] == [CellVersion(30, "v3"), CellVersion(20, "v2")]
    assert snapshot.latest() == {("c", "name"): "v3", ("c", "city"): "Lyon"}


def test_same_timestamp_overwrites_cell(store):
    store.multi_put([RowMutation("row1").add("c", "name", "first", 10)])
    store.multi_put([RowMutation("row1").add("c", "name", "second", 10)])

    assert store.get_row("row1").versions[("c", "name")] == [CellVersion(10, "second")]


def test_cells_without_timestamp_are_stamped(store):
    store.multi_put([RowMutation("row1").add("c", "name", "Ada")])

    (version,) = store.get_row("row1").versions[("c", "name")]
    assert version.value == "Ada"
    assert version.timestamp > 0


def test_tables_are_isolated(store):
    store.multi_put([RowMutation("row1").add("c", "name", "primary", 1)])
    store.set_table("contacts_temp")

    assert store.get_row("row1").is_empty


def test_missing_row_is_empty(store):
    assert store.get_row("nope").is_empty


def test_store_requires_table_and_connection(tmp_path):
    row_store = SqliteRowStore(tmp_path / "contacts.db")
    with pytest.raises(ConnectorError):
        row_store.multi_put([RowMutation("row1").add("c", "name", "x")])

    row_store.connect()
    with pytest.raises(ConnectorError):
        row_store.get_row("row1")
    row_store.disconnect()
    assert not row_store.connected


def test_unconfigured_store_fails_to_connect():
    with pytest.raises(ConnectorError):
        SqliteRowStore(None).connect()


def test_mutation_dict_round_trip_rejects_missing_key():
    mutation = RowMutation("row1").add("c", "name", "Ada", 5)
    assert RowMutation.from_dict(mutation.to_dict()) == mutation
    with pytest.raises(ValueError):
        RowMutation.from_dict({"cells": []})
