"""Process-wide access point to connectors, buffers and loggers."""
from __future__ import annotations

import threading
from datetime import datetime
from pathlib import Path
from typing import IO, ClassVar, Dict, Optional

from .acquittal import AcquittalAction, AcquittalReporter
from .appenders import AppenderRegistry
from .buffer import RowBuffer
from .cartography import Cartography, CartographyError, load_cartography
from .config import PropertiesProvider, Property
from .connectors.base import FilesystemConnector, QueueConnector, RelationalConnector, RowStore
from .connectors.factory import ConnectorFactory
from .connectors.registry import ConnectorRegistry
from .connectors.store import RowMutation
from .flush import FlushController
from .logs import GLOBAL_PROCESS, ContactLogger, ErrorClass, LoggerRegistry


class ApplicationContext:
    """Owns every stateful resource of a pipeline process.

    Construct it directly to inject properties or a connector factory, or use
    ``get_instance()`` for the shared process-wide context.
    """

    _instance: ClassVar[Optional["ApplicationContext"]] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        properties: PropertiesProvider,
        factory: Optional[ConnectorFactory] = None,
        loggers: Optional[LoggerRegistry] = None,
    ) -> None:
        self.properties = properties
        self.factory = factory or ConnectorFactory(properties)
        self.loggers = loggers or LoggerRegistry(
            destination=properties.log_destination(),
            log_dir=properties.model.application.log_dir or "logs",
        )
        self.logger = self.loggers.get(type(self), GLOBAL_PROCESS)
        self.connectors = ConnectorRegistry(self.factory, self.logger)
        self.puts = RowBuffer()
        self.appenders = AppenderRegistry(
            self.connectors, self.logger, archival_enabled=properties.archival_enabled()
        )
        self.flusher = FlushController(self.connectors, self.puts, properties, self.logger)
        self.reporter = AcquittalReporter(properties, self.connectors, self.factory, self.logger)
        self._cartography: Optional[Cartography] = None

    @classmethod
    def from_environment(cls, config_path: str | Path | None = None) -> "ApplicationContext":
        return cls(PropertiesProvider.load(config_path))

    @classmethod
    def get_instance(cls) -> "ApplicationContext":
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls.from_environment()
        return cls._instance

    @classmethod
    def clear_instance(cls) -> None:
        with cls._instance_lock:
            cls._instance = None

    # connectors

    def get_property(self, name: Property):
        return self.properties.get(name)

    def store(self) -> RowStore:
        return self.connectors.store()

    def filesystem(self) -> FilesystemConnector:
        return self.connectors.filesystem()

    def relational(self) -> RelationalConnector:
        return self.connectors.relational()

    def queue(self, topic: Optional[str] = None) -> QueueConnector:
        return self.connectors.queue(topic)

    def cartography(self) -> Cartography:
        """Load the cartography once; raises CartographyError on failure."""
        if self._cartography is None:
            connector = self.factory.create_cartography()
            try:
                self._cartography = load_cartography(
                    connector,
                    self.properties.get(Property.RELATIONAL_CARTOGRAPHY_PROCEDURE),
                )
            except CartographyError as exc:
                self.logger.error(
                    ErrorClass.RELATIONAL,
                    f"Error while executing cartography stored procedure: {exc}",
                )
                raise
        return self._cartography

    # buffered writes

    def get_puts(self) -> Dict[str, RowMutation]:
        return self.puts.get_all()

    def reset_contact_puts(self) -> None:
        self.puts.reset()

    def flush_contacts(self, delta: bool = False) -> bool:
        return self.flusher.flush(delta=delta)

    def flush_temp_contacts(self) -> bool:
        return self.flusher.flush_temp()

    # appenders

    def get_appender(self, path: str) -> Optional[IO[str]]:
        return self.appenders.get_appender(path)

    def remove_duplicates_from_files(self) -> None:
        self.appenders.remove_duplicates()

    @property
    def archived(self) -> bool:
        return self.appenders.archival_enabled

    # logging and reporting

    def get_logger(self, component: str | type, process: str) -> ContactLogger:
        return self.loggers.get(component, process)

    def acquit(self, table: str, action: AcquittalAction | str, timestamp: datetime) -> bool:
        return self.reporter.report(table, action, timestamp)

    def close_context(self) -> None:
        """Close appenders (when archival is on), every connector, then log files."""
        try:
            self.appenders.close_all()
        finally:
            try:
                self.connectors.close_all()
            finally:
                self.loggers.close()


__all__ = ["ApplicationContext"]
