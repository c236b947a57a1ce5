"""Completion markers written to the reporting database."""
from __future__ import annotations

from datetime import datetime
from enum import Enum

from .config import PropertiesProvider, Property
from .connectors.base import ConnectorError, ConnectorKind, RelationalConnector
from .connectors.factory import ConnectorFactory
from .connectors.registry import ConnectorRegistry
from .connectors.relational import quote_identifier
from .logs import ContactLogger, ErrorClass


class AcquittalAction(str, Enum):
    START = "start"
    END = "end"


def acquittal_statement(acquittal_table: str) -> str:
    return (
        f"INSERT INTO {quote_identifier(acquittal_table)} "
        "(target_table, action, recorded_at) VALUES (?, ?, ?)"
    )


class AcquittalReporter:
    """Writes one acquittal row per call.

    Environments flagged ``bypasses_reporting_cache`` write through a fresh
    connection to the override database instead of the cached reporting
    handle; that connection is closed after the write.
    """

    def __init__(
        self,
        properties: PropertiesProvider,
        registry: ConnectorRegistry,
        factory: ConnectorFactory,
        logger: ContactLogger,
    ) -> None:
        self._properties = properties
        self._registry = registry
        self._factory = factory
        self._logger = logger

    def report(self, table: str, action: AcquittalAction | str, timestamp: datetime) -> bool:
        acquittal_table = self._properties.get(Property.RELATIONAL_ACQUITTAL_TABLE)
        action = action.value if isinstance(action, AcquittalAction) else str(action)
        environment = self._properties.environment()
        bypass = environment is not None and environment.bypasses_reporting_cache

        if bypass:
            connector = self._open_override()
        else:
            connector = self._registry.relational()

        try:
            if not acquittal_table:
                raise ConnectorError(ConnectorKind.RELATIONAL, "acquittal table is not configured")
            connector.execute_update(
                acquittal_statement(acquittal_table),
                (table, action, timestamp.isoformat(sep=" ")),
            )
        except ConnectorError as exc:
            self._logger.error(
                ErrorClass.RELATIONAL, f"Could not write to acquittal table : {exc}"
            )
            return False
        finally:
            if bypass:
                self._close_override(connector)
        return True

    def _open_override(self) -> RelationalConnector:
        connector = self._factory.create_reporting_override()
        try:
            connector.connect()
        except ConnectorError as exc:
            self._logger.warning(
                ErrorClass.RELATIONAL, f"Acquittal override connection failed : {exc}"
            )
        return connector

    def _close_override(self, connector: RelationalConnector) -> None:
        try:
            connector.disconnect()
        except ConnectorError as exc:
            self._logger.warning(
                ErrorClass.RELATIONAL, f"could not close acquittal override connection {exc}"
            )


__all__ = ["AcquittalAction", "AcquittalReporter", "acquittal_statement"]
