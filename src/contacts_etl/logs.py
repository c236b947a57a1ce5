"""Classified logging for operator-visible pipeline events."""
from __future__ import annotations

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple

LOGGER_ROOT = "contacts_etl.process"
GLOBAL_PROCESS = "contacts-global"


class ErrorClass(str, Enum):
    """Fixed classifications attached to every logged failure."""

    STORE = "store"
    FILESYSTEM = "filesystem"
    RELATIONAL = "relational"
    QUEUE = "queue"
    OTHER = "other"
    DATA = "data"


class LogDestination(str, Enum):
    CONSOLE = "console"
    FILE = "file"


class ContactLogger:
    """Logging sink bound to one (component, process) pair.

    Failures are reported as ``error(classification, message)``; the
    classification travels with the record as the ``classification`` extra so
    handlers and tests can filter on it.
    """

    def __init__(self, component: str, process: str) -> None:
        self.component = component
        self.process = process
        self._logger = logging.getLogger(f"{LOGGER_ROOT}.{process}.{component}")

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, classification: ErrorClass, message: str) -> None:
        self._logger.log(
            level,
            "[%s] %s",
            classification.value,
            message,
            extra={
                "classification": classification.value,
                "contact_component": self.component,
                "contact_process": self.process,
            },
        )

    def error(self, classification: ErrorClass, message: str) -> None:
        self._log(logging.ERROR, classification, message)

    def warning(self, classification: ErrorClass, message: str) -> None:
        self._log(logging.WARNING, classification, message)

    warn = warning

    def info(self, message: str) -> None:
        self._logger.info(
            message,
            extra={"contact_component": self.component, "contact_process": self.process},
        )


class LoggerRegistry:
    """Caches one ContactLogger per (component, process) pair."""

    def __init__(
        self,
        destination: LogDestination = LogDestination.CONSOLE,
        log_dir: str | Path = "logs",
    ) -> None:
        self.destination = destination
        self.log_dir = Path(log_dir)
        self._loggers: Dict[Tuple[str, str], ContactLogger] = {}
        self._file_processes: set[str] = set()
        self._lock = threading.Lock()

    def get(self, component: str | type, process: str = GLOBAL_PROCESS) -> ContactLogger:
        if isinstance(component, type):
            component = f"{component.__module__}.{component.__qualname__}"
        key = (component, process)
        with self._lock:
            logger = self._loggers.get(key)
            if logger is None:
                if self.destination is LogDestination.FILE:
                    self._attach_file_handler(process)
                logger = ContactLogger(component, process)
                self._loggers[key] = logger
        return logger

    def _attach_file_handler(self, process: str) -> None:
        if process in self._file_processes:
            return
        self.log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(self.log_dir / f"{process}.log", encoding="utf-8")
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        process_logger = logging.getLogger(f"{LOGGER_ROOT}.{process}")
        process_logger.addHandler(handler)
        process_logger.propagate = False
        self._file_processes.add(process)

    def close(self) -> None:
        """Detach and close file handlers installed by this registry."""
        for process in self._file_processes:
            process_logger = logging.getLogger(f"{LOGGER_ROOT}.{process}")
            for handler in list(process_logger.handlers):
                if isinstance(handler, logging.FileHandler):
                    process_logger.removeHandler(handler)
                    handler.close()
            process_logger.propagate = True
        self._file_processes.clear()


def classified(record: logging.LogRecord) -> Optional[str]:
    """Return the classification carried by a record, if any."""
    return getattr(record, "classification", None)


__all__ = [
    "ContactLogger",
    "ErrorClass",
    "GLOBAL_PROCESS",
    "LogDestination",
    "LoggerRegistry",
    "classified",
]
