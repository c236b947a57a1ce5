"""Typed property loader for the contacts pipeline."""
from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .env import load_env
from .logs import ErrorClass, LogDestination

load_env()

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/contacts.yaml"


class Property(str, Enum):
    """Every property name the pipeline may look up, as a dotted path."""

    APPLICATION_LOGS = "application.logs"
    APPLICATION_LOG_DIR = "application.log_dir"
    APPLICATION_ARCHIVAL = "application.archival"
    APPLICATION_ENV_NAME = "application.env_name"
    STORE_PATH = "store.path"
    STORE_MAX_VERSIONS = "store.max_versions"
    STORE_CONTACTS_TABLE = "store.contacts_table"
    STORE_CONTACTS_TEMP_TABLE = "store.contacts_temp_table"
    FILESYSTEM_BACKEND = "filesystem.backend"
    FILESYSTEM_ROOT = "filesystem.root"
    FILESYSTEM_BUCKET = "filesystem.bucket"
    FILESYSTEM_PREFIX = "filesystem.prefix"
    FILESYSTEM_ENDPOINT_URL = "filesystem.endpoint_url"
    FILESYSTEM_REGION = "filesystem.region"
    FILESYSTEM_ACCESS_KEY = "filesystem.access_key"
    FILESYSTEM_SECRET_KEY = "filesystem.secret_key"
    RELATIONAL_REPORTING_DB = "relational.reporting_db"
    RELATIONAL_CARTOGRAPHY_DB = "relational.cartography_db"
    RELATIONAL_CARTOGRAPHY_PROCEDURE = "relational.cartography_procedure"
    RELATIONAL_ACQUITTAL_TABLE = "relational.acquittal_table"
    RELATIONAL_ACQUITTAL_OVERRIDE_DB = "relational.acquittal_override_db"
    QUEUE_BROKERS = "queue.brokers"
    QUEUE_CLIENT_ID = "queue.client_id"


class Environment(str, Enum):
    DEV = "Dev"
    QUALIF = "Qualif"
    PROD = "Prod"

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional["Environment"]:
        for env in cls:
            if env.value == name:
                return env
        return None

    @property
    def bypasses_reporting_cache(self) -> bool:
        """Acquittals in this environment go through a dedicated connection."""
        return self is Environment.PROD


class ApplicationSection(BaseModel):
    logs: Optional[LogDestination] = None
    log_dir: Optional[str] = None
    archival: Optional[bool] = None
    env_name: Optional[str] = None


class StoreSection(BaseModel):
    path: Optional[str] = None
    max_versions: Optional[int] = None
    contacts_table: Optional[str] = None
    contacts_temp_table: Optional[str] = None


class FilesystemSection(BaseModel):
    backend: Optional[Literal["local", "object"]] = None
    root: Optional[str] = None
    bucket: Optional[str] = None
    prefix: Optional[str] = None
    endpoint_url: Optional[str] = None
    region: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None


class RelationalSection(BaseModel):
    reporting_db: Optional[str] = None
    cartography_db: Optional[str] = None
    cartography_procedure: Optional[str] = None
    acquittal_table: Optional[str] = None
    acquittal_override_db: Optional[str] = None


class QueueSection(BaseModel):
    brokers: Optional[str] = None
    client_id: Optional[str] = None

    @field_validator("brokers", mode="before")
    @classmethod
    def _join_brokers(cls, value):
        if isinstance(value, (list, tuple)):
            return ",".join(str(item).strip() for item in value if str(item).strip())
        return value


class ContextProperties(BaseModel):
    model_config = ConfigDict(extra="ignore")

    application: ApplicationSection = Field(default_factory=ApplicationSection)
    store: StoreSection = Field(default_factory=StoreSection)
    filesystem: FilesystemSection = Field(default_factory=FilesystemSection)
    relational: RelationalSection = Field(default_factory=RelationalSection)
    queue: QueueSection = Field(default_factory=QueueSection)


class PropertiesProvider:
    """Resolves named properties; lookups never raise."""

    def __init__(self, model: ContextProperties, source: str = "<memory>") -> None:
        self.model = model
        self.source = source

    @classmethod
    def load(cls, path: str | Path | None = None) -> "PropertiesProvider":
        """Read YAML properties; a missing or invalid file yields empty properties."""
        config_path = Path(path or os.getenv("CONTACTS_CONFIG_PATH", DEFAULT_CONFIG_PATH))
        if not config_path.exists():
            logger.error(
                "Unable to locate properties file : %s",
                config_path,
                extra={"classification": ErrorClass.OTHER.value},
            )
            return cls(ContextProperties(), source=str(config_path))
        try:
            with config_path.open("r", encoding="utf-8") as fp:
                raw = yaml.safe_load(fp) or {}
            model = ContextProperties(**raw)
        except (yaml.YAMLError, ValidationError, TypeError) as exc:
            logger.error(
                "Invalid properties file %s: %s",
                config_path,
                exc,
                extra={"classification": ErrorClass.OTHER.value},
            )
            model = ContextProperties()
        return cls(model, source=str(config_path))

    @classmethod
    def from_mapping(cls, raw: dict) -> "PropertiesProvider":
        return cls(ContextProperties(**raw))

    def get(self, name: Property) -> Any:
        cursor: Any = self.model
        for part in Property(name).value.split("."):
            cursor = getattr(cursor, part, None)
            if cursor is None:
                break
        if cursor is None:
            logger.error(
                "Property : %s ,is not defined in properties file : %s",
                Property(name).value,
                self.source,
                extra={"classification": ErrorClass.OTHER.value},
            )
            return None
        if isinstance(cursor, Enum):
            return cursor.value
        return cursor

    def environment(self) -> Optional[Environment]:
        return Environment.from_name(self.get(Property.APPLICATION_ENV_NAME))

    def archival_enabled(self) -> bool:
        return bool(self.get(Property.APPLICATION_ARCHIVAL))

    def log_destination(self) -> LogDestination:
        value = self.model.application.logs
        return value if value is not None else LogDestination.CONSOLE


__all__ = [
    "ContextProperties",
    "Environment",
    "Property",
    "PropertiesProvider",
]
