"""Process-lifetime cache holding one connector per backend kind."""
from __future__ import annotations

from typing import Callable, Dict, Optional

from ..logs import ContactLogger, ErrorClass
from .base import (
    Connector,
    ConnectorError,
    ConnectorKind,
    FilesystemConnector,
    QueueConnector,
    RelationalConnector,
    RowStore,
)
from .factory import ConnectorFactory

_ERROR_CLASSES = {
    ConnectorKind.STORE: ErrorClass.STORE,
    ConnectorKind.FILESYSTEM: ErrorClass.FILESYSTEM,
    ConnectorKind.RELATIONAL: ErrorClass.RELATIONAL,
    ConnectorKind.QUEUE: ErrorClass.QUEUE,
}

# Disconnect order used by close_all.
_CLOSE_ORDER = (
    ConnectorKind.STORE,
    ConnectorKind.FILESYSTEM,
    ConnectorKind.RELATIONAL,
    ConnectorKind.QUEUE,
)


def error_class(kind: ConnectorKind) -> ErrorClass:
    return _ERROR_CLASSES[kind]


class ConnectorRegistry:
    """Creates connectors on first use and keeps them until close_all().

    A connector whose connect() failed is still cached and returned; callers
    must tolerate a handle with ``connected == False``.
    """

    def __init__(self, factory: ConnectorFactory, logger: ContactLogger) -> None:
        self._factory = factory
        self._logger = logger
        self._handles: Dict[ConnectorKind, Connector] = {}

    def _get(self, kind: ConnectorKind, build: Callable[[], Connector]) -> Connector:
        handle = self._handles.get(kind)
        if handle is None:
            handle = build()
            self._handles[kind] = handle
            try:
                handle.connect()
            except ConnectorError as exc:
                self._logger.error(
                    error_class(kind), f"Unable to connect to {kind.value} : {exc}"
                )
        return handle

    def store(self) -> RowStore:
        return self._get(ConnectorKind.STORE, self._factory.create_store)

    def filesystem(self) -> FilesystemConnector:
        return self._get(ConnectorKind.FILESYSTEM, self._factory.create_filesystem)

    def relational(self) -> RelationalConnector:
        return self._get(ConnectorKind.RELATIONAL, self._factory.create_relational)

    def queue(self, topic: Optional[str] = None) -> QueueConnector:
        handle = self._get(ConnectorKind.QUEUE, self._factory.create_queue)
        if topic is not None:
            handle.set_topic(topic)
        return handle

    def peek(self, kind: ConnectorKind) -> Optional[Connector]:
        """Return the cached handle for ``kind`` without creating it."""
        return self._handles.get(kind)

    def close_all(self) -> None:
        handles, self._handles = self._handles, {}
        for kind in _CLOSE_ORDER:
            handle = handles.get(kind)
            if handle is None:
                continue
            try:
                handle.disconnect()
            except (ConnectorError, OSError) as exc:
                self._logger.error(
                    error_class(kind), f"could not close {kind.value} connection {exc}"
                )


__all__ = ["ConnectorRegistry", "error_class"]
