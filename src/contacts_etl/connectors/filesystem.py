"""Local filesystem connector for streaming output files."""
from __future__ import annotations

from pathlib import Path
from typing import IO, Iterable, List

from .base import ConnectorError, ConnectorKind


def unique_lines(lines: Iterable[str]) -> List[str]:
    """Keep the first occurrence of each line, preserving order."""
    seen = set()
    kept = []
    for line in lines:
        normalized = line.rstrip("\n")
        if normalized in seen:
            continue
        seen.add(normalized)
        kept.append(normalized + "\n")
    return kept


class LocalFilesystemConnector:
    """Resolves appender paths under a root directory."""

    kind = ConnectorKind.FILESYSTEM

    def __init__(self, root: Path | str | None = None) -> None:
        self._root = Path(root) if root else Path("data/contacts")
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConnectorError(self.kind, f"cannot create root {self._root}: {exc}") from exc
        self._connected = True

    def disconnect(self) -> None:
        self._connected = False

    def resolve(self, path: str) -> Path:
        return self._root / path.lstrip("/")

    def get_appender(self, path: str) -> IO[str]:
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        return target.open("a", encoding="utf-8")

    def deduplicate_lines(self, path: str) -> int:
        target = self.resolve(path)
        if not target.exists():
            return 0
        # Rewritten in place so open append handles keep the same file.
        with target.open("r+", encoding="utf-8") as handle:
            try:
                lines = handle.readlines()
            except UnicodeDecodeError as exc:
                raise ConnectorError(self.kind, f"{target} is not valid UTF-8: {exc}") from exc
            kept = unique_lines(lines)
            handle.seek(0)
            handle.writelines(kept)
            handle.truncate()
        return len(lines) - len(kept)


__all__ = ["LocalFilesystemConnector", "unique_lines"]
