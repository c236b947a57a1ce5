"""Unit tests for the properties loader."""
from __future__ import annotations

import logging
from pathlib import Path

from contacts_etl.config import Environment, PropertiesProvider, Property
from contacts_etl.logs import LogDestination, classified


def test_properties_loader_parses_sections(tmp_path: Path) -> None:
    config_payload = """
    application:
      logs: file
      archival: "true"
      env_name: Prod
    store:
      path: /data/contacts.db
      contacts_table: contacts
      contacts_temp_table: contacts_temp
    relational:
      acquittal_table: acquittal
    queue:
      brokers:
        - broker-1:9092
        - broker-2:9092
    """
    config_file = tmp_path / "contacts.yaml"
    config_file.write_text(config_payload)

    properties = PropertiesProvider.load(config_file)

    assert properties.get(Property.STORE_CONTACTS_TABLE) == "contacts"
    assert properties.get(Property.APPLICATION_LOGS) == "file"
    assert properties.get(Property.QUEUE_BROKERS) == "broker-1:9092,broker-2:9092"
    assert properties.archival_enabled() is True
    assert properties.environment() is Environment.PROD
    assert properties.log_destination() is LogDestination.FILE


def test_missing_property_is_logged_and_returns_none(caplog) -> None:
    properties = PropertiesProvider.from_mapping({"store": {"contacts_table": "contacts"}})
    caplog.set_level(logging.ERROR)

    assert properties.get(Property.STORE_CONTACTS_TEMP_TABLE) is None
    assert properties.get(Property.QUEUE_BROKERS) is None

    assert [classified(r) for r in caplog.records] == ["other", "other"]
    assert "store.contacts_temp_table" in caplog.records[0].getMessage()


def test_missing_file_yields_empty_properties(tmp_path: Path, caplog) -> None:
    caplog.set_level(logging.ERROR)

    properties = PropertiesProvider.load(tmp_path / "absent.yaml")

    assert properties.get(Property.STORE_PATH) is None
    assert properties.archival_enabled() is False
    assert properties.log_destination() is LogDestination.CONSOLE
    assert "Unable to locate properties file" in caplog.records[0].getMessage()


def test_invalid_file_is_logged_not_raised(tmp_path: Path, caplog) -> None:
    config_file = tmp_path / "contacts.yaml"
    config_file.write_text("filesystem:\n  backend: ftp\n")
    caplog.set_level(logging.ERROR)

    properties = PropertiesProvider.load(config_file)

    assert properties.model.filesystem.backend is None
    assert "Invalid properties file" in caplog.records[0].getMessage()


def test_config_path_from_environment(tmp_path: Path, monkeypatch) -> None:
    config_file = tmp_path / "from-env.yaml"
    config_file.write_text("store:\n  contacts_table: env_contacts\n")
    monkeypatch.setenv("CONTACTS_CONFIG_PATH", str(config_file))

    properties = PropertiesProvider.load()

    assert properties.get(Property.STORE_CONTACTS_TABLE) == "env_contacts"
    assert properties.source == str(config_file)


def test_only_prod_bypasses_reporting_cache() -> None:
    assert Environment.from_name("Prod").bypasses_reporting_cache
    assert not Environment.from_name("Dev").bypasses_reporting_cache
    assert not Environment.QUALIF.bypasses_reporting_cache
    assert Environment.from_name("prod") is None
