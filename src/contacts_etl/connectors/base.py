"""Backend-neutral interfaces for the connectors the pipeline drives."""
from __future__ import annotations

from enum import Enum
from typing import IO, TYPE_CHECKING, Iterable, Mapping, Protocol, Sequence

if TYPE_CHECKING:
    from .store import RowMutation, RowSnapshot


class ConnectorKind(str, Enum):
    STORE = "store"
    FILESYSTEM = "filesystem"
    RELATIONAL = "relational"
    QUEUE = "queue"


class ConnectorError(Exception):
    """Raised by connectors for any connect, read or write failure."""

    def __init__(self, kind: ConnectorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class Connector(Protocol):
    @property
    def connected(self) -> bool:
        """Whether the last connect() succeeded and disconnect() was not called."""

    def connect(self) -> None:
        """Open the underlying client; raises ConnectorError."""

    def disconnect(self) -> None:
        """Release the underlying client; raises ConnectorError."""


class RowStore(Connector, Protocol):
    """Row oriented, multi-version store holding the contacts tables."""

    def set_table(self, name: str | None) -> None:
        """Select the table used by subsequent reads and writes."""

    def multi_put(self, mutations: Iterable["RowMutation"]) -> None:
        """Commit a batch of mutations atomically to the selected table."""

    def get_row(self, row_key: str) -> "RowSnapshot":
        """Return the stored versions for one row of the selected table."""


class FilesystemConnector(Connector, Protocol):
    def get_appender(self, path: str) -> IO[str]:
        """Return a text stream appending to ``path``."""

    def deduplicate_lines(self, path: str) -> int:
        """Drop repeated lines from ``path`` in place; returns lines removed."""


class RelationalConnector(Connector, Protocol):
    def procedure(self, name: str) -> Sequence[Sequence[object]]:
        """Run a named stored query and return its rows."""

    def execute_update(self, sql: str, params: Sequence[object] = ()) -> int:
        """Execute and commit a statement; returns the affected row count."""


class QueueConnector(Connector, Protocol):
    def set_topic(self, name: str | None) -> None:
        """Select the topic used by publish()."""

    def publish(self, key: str, payload: Mapping[str, object]) -> None:
        """Send one JSON message to the selected topic."""


__all__ = [
    "Connector",
    "ConnectorError",
    "ConnectorKind",
    "FilesystemConnector",
    "QueueConnector",
    "RelationalConnector",
    "RowStore",
]
