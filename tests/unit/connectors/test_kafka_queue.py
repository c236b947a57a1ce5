from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from contacts_etl.connectors import queue as queue_module
from contacts_etl.connectors.base import ConnectorError
from contacts_etl.connectors.queue import KafkaQueueConnector


@pytest.fixture
def producer(monkeypatch):
    instance = MagicMock()
    instance.flush.return_value = 0
    factory = MagicMock(return_value=instance)
    monkeypatch.setattr(queue_module, "Producer", factory)
    return factory, instance


def test_connect_builds_idempotent_producer(producer):
    factory, _ = producer
    connector = KafkaQueueConnector("broker-1:9092,broker-2:9092", client_id="contacts-etl")

    connector.connect()

    assert connector.connected
    factory.assert_called_once_with(
        {
            "bootstrap.servers": "broker-1:9092,broker-2:9092",
            "client.id": "contacts-etl",
            "enable.idempotence": True,
        }
    )


def test_publish_serialises_payload_to_selected_topic(producer):
    _, instance = producer
    connector = KafkaQueueConnector("broker:9092")
    connector.connect()
    connector.set_topic("contacts")

    connector.publish("row1", {"name": "Ada", "city": "Lyon"})

    kwargs = instance.produce.call_args.kwargs
    assert kwargs["topic"] == "contacts"
    assert kwargs["key"] == b"row1"
    assert json.loads(kwargs["value"]) == {"name": "Ada", "city": "Lyon"}
    instance.poll.assert_called_once_with(0)


def test_publish_requires_topic_and_connection(producer):
    connector = KafkaQueueConnector("broker:9092")
    with pytest.raises(ConnectorError):
        connector.publish("row1", {})

    connector.connect()
    with pytest.raises(ConnectorError):
        connector.publish("row1", {})


def test_disconnect_flushes_and_reports_undelivered(producer):
    _, instance = producer
    instance.flush.return_value = 3
    connector = KafkaQueueConnector("broker:9092", flush_timeout=2.5)
    connector.connect()

    with pytest.raises(ConnectorError) as excinfo:
        connector.disconnect()

    instance.flush.assert_called_once_with(2.5)
    assert "3 message(s)" in str(excinfo.value)
    assert not connector.connected


def test_connect_without_brokers_fails(producer):
    factory, _ = producer
    with pytest.raises(ConnectorError):
        KafkaQueueConnector(None).connect()
    factory.assert_not_called()
