"""Cartography reference data: id -> (strategy, template) entries."""
from __future__ import annotations

import json
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Set

from tabulate import tabulate

from .connectors.base import ConnectorError, RelationalConnector

Cartography = Dict[str, Set["CartographyEntry"]]


class CartographyError(Exception):
    """Raised when the cartography lookup cannot be completed."""


@dataclass(frozen=True)
class CartographyEntry:
    id: str
    strategy: str
    template: str


def load_cartography(connector: RelationalConnector, procedure: Optional[str]) -> Cartography:
    """Run the cartography procedure and group its rows by id.

    Rows are read positionally as (id, template, strategy). The connector is
    disconnected whether or not the procedure succeeded.
    """
    entries: Cartography = defaultdict(set)
    try:
        connector.connect()
        try:
            rows = connector.procedure(procedure)
        finally:
            connector.disconnect()
        for row in rows:
            entry = CartographyEntry(id=str(row[0]), template=str(row[1]), strategy=str(row[2]))
            entries[entry.id].add(entry)
    except (ConnectorError, IndexError) as exc:
        raise CartographyError(f"cartography procedure {procedure} failed: {exc}") from exc
    return dict(entries)


def format_cartography(cartography: Mapping[str, Set[CartographyEntry]], output_format: str = "table") -> str:
    rows: List[CartographyEntry] = sorted(
        (entry for entries in cartography.values() for entry in entries),
        key=lambda e: (e.id, e.strategy, e.template),
    )
    if not rows:
        return "No cartography entries found."
    if output_format == "json":
        payload = [
            {"id": row.id, "strategy": row.strategy, "template": row.template}
            for row in rows
        ]
        return json.dumps(payload, indent=2)
    table_data = [[row.id, row.strategy, row.template] for row in rows]
    return tabulate(table_data, headers=["id", "strategy", "template"], tablefmt="plain")


__all__ = [
    "CartographyEntry",
    "CartographyError",
    "format_cartography",
    "load_cartography",
]
