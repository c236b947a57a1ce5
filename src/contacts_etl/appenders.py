"""Append handles for streaming output files, one per path."""
from __future__ import annotations

from typing import IO, Dict, List, Optional

from .connectors.base import ConnectorError
from .connectors.registry import ConnectorRegistry
from .logs import ContactLogger, ErrorClass


class AppenderRegistry:
    """Tracks open append streams by path.

    Deduplication rewrites files in place and must not run while other
    threads are still appending; callers serialize the two.
    """

    def __init__(
        self,
        registry: ConnectorRegistry,
        logger: ContactLogger,
        archival_enabled: bool,
    ) -> None:
        self._registry = registry
        self._logger = logger
        self.archival_enabled = archival_enabled
        self._appenders: Dict[str, IO[str]] = {}

    def get_appender(self, path: str) -> Optional[IO[str]]:
        appender = self._appenders.get(path)
        if appender is not None:
            return appender
        try:
            appender = self._registry.filesystem().get_appender(path)
        except (ConnectorError, OSError) as exc:
            self._logger.error(
                ErrorClass.FILESYSTEM,
                f"Unable to open file appender for path : {path} {exc}",
            )
            return None
        self._appenders[path] = appender
        return appender

    def paths(self) -> List[str]:
        return list(self._appenders)

    def __len__(self) -> int:
        return len(self._appenders)

    def remove_duplicates(self) -> None:
        if not self._appenders:
            return
        filesystem = self._registry.filesystem()
        for path, appender in self._appenders.items():
            try:
                appender.flush()
                removed = filesystem.deduplicate_lines(path)
            except (ConnectorError, OSError, ValueError) as exc:
                self._logger.error(
                    ErrorClass.FILESYSTEM,
                    f"unable to remove duplicates from file : {path} {exc}",
                )
                continue
            if removed:
                self._logger.info(f"Removed {removed} duplicate line(s) from {path}")

    def close_all(self) -> None:
        """Close every appender; skipped entirely when archival is disabled."""
        if not self.archival_enabled:
            return
        appenders, self._appenders = self._appenders, {}
        for path, appender in appenders.items():
            try:
                appender.close()
            except (ConnectorError, OSError) as exc:
                self._logger.error(
                    ErrorClass.FILESYSTEM,
                    f"unable to close file appender {path} {exc}",
                )


__all__ = ["AppenderRegistry"]
