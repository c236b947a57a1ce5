"""Connectors for the backends the contacts pipeline writes to."""
from .base import ConnectorError, ConnectorKind
from .factory import ConnectorFactory
from .registry import ConnectorRegistry
from .store import Cell, RowMutation, RowSnapshot

__all__ = [
    "Cell",
    "ConnectorError",
    "ConnectorFactory",
    "ConnectorKind",
    "ConnectorRegistry",
    "RowMutation",
    "RowSnapshot",
]
