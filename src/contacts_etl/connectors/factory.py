"""Builds connectors from pipeline properties."""
from __future__ import annotations

from ..config import PropertiesProvider, Property
from .base import FilesystemConnector, QueueConnector, RelationalConnector, RowStore
from .filesystem import LocalFilesystemConnector
from .object_store import ObjectStorageFilesystemConnector, S3Config
from .queue import KafkaQueueConnector
from .relational import SqliteRelationalConnector
from .store import SqliteRowStore


class ConnectorFactory:
    def __init__(self, properties: PropertiesProvider) -> None:
        self.properties = properties

    def create_store(self) -> RowStore:
        max_versions = self.properties.model.store.max_versions or 3
        return SqliteRowStore(self.properties.get(Property.STORE_PATH), max_versions=max_versions)

    def create_filesystem(self) -> FilesystemConnector:
        if self.properties.model.filesystem.backend == "object":
            section = self.properties.model.filesystem
            return ObjectStorageFilesystemConnector(
                S3Config(
                    bucket=self.properties.get(Property.FILESYSTEM_BUCKET),
                    prefix=section.prefix or "",
                    endpoint_url=section.endpoint_url,
                    region=section.region,
                    access_key=section.access_key,
                    secret_key=section.secret_key,
                )
            )
        return LocalFilesystemConnector(self.properties.model.filesystem.root)

    def create_relational(self) -> RelationalConnector:
        return SqliteRelationalConnector(self.properties.get(Property.RELATIONAL_REPORTING_DB))

    def create_cartography(self) -> RelationalConnector:
        return SqliteRelationalConnector(self.properties.get(Property.RELATIONAL_CARTOGRAPHY_DB))

    def create_reporting_override(self) -> RelationalConnector:
        return SqliteRelationalConnector(
            self.properties.get(Property.RELATIONAL_ACQUITTAL_OVERRIDE_DB)
        )

    def create_queue(self) -> QueueConnector:
        return KafkaQueueConnector(
            self.properties.get(Property.QUEUE_BROKERS),
            client_id=self.properties.model.queue.client_id,
        )


__all__ = ["ConnectorFactory"]
