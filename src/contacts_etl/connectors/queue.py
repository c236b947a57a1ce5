"""Kafka queue connector."""
from __future__ import annotations

import json
import uuid
from typing import Any, Mapping, Optional

from confluent_kafka import KafkaException, Producer

from .base import ConnectorError, ConnectorKind


def _producer_conf(brokers: str, client_id: str) -> dict[str, Any]:
    return {
        "bootstrap.servers": brokers,
        "client.id": client_id,
        "enable.idempotence": True,
    }


class KafkaQueueConnector:
    kind = ConnectorKind.QUEUE

    def __init__(
        self,
        brokers: Optional[str],
        client_id: Optional[str] = None,
        flush_timeout: float = 10.0,
    ) -> None:
        self.brokers = brokers
        self.client_id = client_id or uuid.uuid4().hex
        self.flush_timeout = flush_timeout
        self.topic: Optional[str] = None
        self._producer: Optional[Producer] = None

    @property
    def connected(self) -> bool:
        return self._producer is not None

    def connect(self) -> None:
        if not self.brokers:
            raise ConnectorError(self.kind, "queue brokers are not configured")
        try:
            self._producer = Producer(_producer_conf(self.brokers, self.client_id))
        except KafkaException as exc:
            raise ConnectorError(self.kind, f"cannot create producer: {exc}") from exc

    def disconnect(self) -> None:
        producer, self._producer = self._producer, None
        if producer is None:
            return
        pending = producer.flush(self.flush_timeout)
        if pending:
            raise ConnectorError(self.kind, f"{pending} message(s) not delivered before disconnect")

    def set_topic(self, name: Optional[str]) -> None:
        self.topic = name

    def publish(self, key: str, payload: Mapping[str, object]) -> None:
        if self._producer is None:
            raise ConnectorError(self.kind, "queue is not connected")
        if not self.topic:
            raise ConnectorError(self.kind, "no topic selected")
        body = json.dumps(payload, ensure_ascii=True, separators=(",", ":")).encode("utf-8")
        try:
            self._producer.produce(topic=self.topic, key=key.encode("utf-8"), value=body)
            self._producer.poll(0)
        except (KafkaException, BufferError) as exc:
            raise ConnectorError(self.kind, f"publish to {self.topic} failed: {exc}") from exc


__all__ = ["KafkaQueueConnector"]
