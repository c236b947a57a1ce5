"""Batch loading of contact mutations from JSON lines files."""
from __future__ import annotations

import json
import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator

from .acquittal import AcquittalAction
from .connectors.store import RowMutation
from .context import ApplicationContext

logger = logging.getLogger(__name__)


class FlushMode(str, Enum):
    PLAIN = "plain"
    DELTA = "delta"
    TEMP = "temp"


def read_mutations(path: str | Path) -> Iterator[RowMutation]:
    with Path(path).open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                yield RowMutation.from_dict(json.loads(line))
            except (ValueError, KeyError, TypeError) as exc:
                raise ValueError(f"{path}:{line_number}: invalid mutation: {exc}") from exc


def load_contacts(
    context: ApplicationContext,
    mutations: Iterable[RowMutation],
    mode: FlushMode = FlushMode.PLAIN,
    acquittal_table: str | None = None,
) -> bool:
    """Buffer ``mutations`` and flush them; acquits start/end when a table is given."""
    if acquittal_table:
        context.acquit(acquittal_table, AcquittalAction.START, datetime.now())

    with context.puts.guard():
        count = 0
        for mutation in mutations:
            context.puts.put(mutation.row_key, mutation)
            count += 1
        logger.info("Buffered %s mutation(s) into %s row(s)", count, len(context.puts))

        if mode is FlushMode.TEMP:
            flushed = context.flush_temp_contacts()
        else:
            flushed = context.flush_contacts(delta=mode is FlushMode.DELTA)

    if flushed and acquittal_table:
        context.acquit(acquittal_table, AcquittalAction.END, datetime.now())
    return flushed


__all__ = ["FlushMode", "load_contacts", "read_mutations"]
