"""S3-compatible filesystem connector."""
from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from typing import Dict, Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from .base import ConnectorError, ConnectorKind
from .filesystem import unique_lines


@dataclass
class S3Config:
    bucket: str | None
    prefix: str = ""
    endpoint_url: str | None = None
    region: str | None = None
    access_key: str | None = None
    secret_key: str | None = None


def _object_key(prefix: str, path: str) -> str:
    return "/".join(part for part in (prefix.strip("/"), path.strip("/")) if part)


class S3Appender:
    """Append stream spooled to a local file and uploaded on flush/close."""

    def __init__(self, client: BaseClient, bucket: str, key: str) -> None:
        self.client = client
        self.bucket = bucket
        self.key = key
        self._tempfile = tempfile.NamedTemporaryFile(
            mode="a+", encoding="utf-8", delete=False
        )
        self.closed = False

    @property
    def spool_path(self) -> str:
        return self._tempfile.name

    def seed(self, content: str) -> None:
        self._tempfile.write(content)

    def write(self, text: str) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed appender")
        return self._tempfile.write(text)

    def deduplicate(self) -> int:
        """Drop repeated lines from the spool in place, then upload it."""
        self._tempfile.flush()
        self._tempfile.seek(0)
        lines = self._tempfile.readlines()
        kept = unique_lines(lines)
        self._tempfile.seek(0)
        self._tempfile.writelines(kept)
        self._tempfile.truncate()
        # The spool fd has no O_APPEND; later writes must land at the new end.
        self._tempfile.seek(0, os.SEEK_END)
        self.flush()
        return len(lines) - len(kept)

    def flush(self) -> None:
        if self.closed:
            return
        self._tempfile.flush()
        os.fsync(self._tempfile.fileno())
        try:
            self.client.upload_file(self._tempfile.name, self.bucket, self.key)
        except (BotoCoreError, ClientError, S3UploadFailedError) as exc:
            raise OSError(f"cannot upload {self.key}: {exc}") from exc

    def close(self) -> None:
        if self.closed:
            return
        try:
            self.flush()
        finally:
            self._tempfile.close()
            os.remove(self._tempfile.name)
            self.closed = True


class ObjectStorageFilesystemConnector:
    kind = ConnectorKind.FILESYSTEM

    def __init__(self, config: S3Config) -> None:
        self.config = config
        self.bucket = config.bucket
        self.prefix = (config.prefix or "").strip("/")
        self.client: Optional[BaseClient] = None
        self._spools: Dict[str, S3Appender] = {}

    @property
    def connected(self) -> bool:
        return self.client is not None

    def connect(self) -> None:
        if not self.bucket:
            raise ConnectorError(self.kind, "filesystem.bucket is required for object storage")
        try:
            session = boto3.session.Session()
            client = session.client(
                "s3",
                endpoint_url=self.config.endpoint_url,
                region_name=self.config.region,
                aws_access_key_id=self.config.access_key,
                aws_secret_access_key=self.config.secret_key,
            )
            client.head_bucket(Bucket=self.bucket)
        except (BotoCoreError, ClientError, ValueError) as exc:
            raise ConnectorError(self.kind, f"cannot reach bucket {self.bucket}: {exc}") from exc
        self.client = client

    def disconnect(self) -> None:
        self.client = None

    def _require_client(self) -> BaseClient:
        if self.client is None:
            raise ConnectorError(self.kind, "object storage is not connected")
        return self.client

    def _read_object(self, key: str) -> str:
        client = self._require_client()
        try:
            obj = client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if exc.response["Error"].get("Code") in ("404", "NoSuchKey", "NotFound"):
                return ""
            raise
        try:
            return obj["Body"].read().decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ConnectorError(self.kind, f"{key} is not valid UTF-8: {exc}") from exc

    def get_appender(self, path: str) -> S3Appender:
        client = self._require_client()
        key = _object_key(self.prefix, path)
        try:
            existing = self._read_object(key)
        except (BotoCoreError, ClientError) as exc:
            raise OSError(f"cannot open appender for {key}: {exc}") from exc
        appender = S3Appender(client, self.bucket, key)
        appender.seed(existing)
        self._spools[path] = appender
        return appender

    def deduplicate_lines(self, path: str) -> int:
        client = self._require_client()
        key = _object_key(self.prefix, path)
        appender = self._spools.get(path)
        try:
            if appender is not None and not appender.closed:
                return appender.deduplicate()

            lines = self._read_object(key).splitlines(keepends=True)
            kept = unique_lines(lines)
            client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body="".join(kept).encode("utf-8"),
                ContentType="text/plain",
            )
        except (BotoCoreError, ClientError) as exc:
            raise OSError(f"cannot deduplicate {key}: {exc}") from exc
        return len(lines) - len(kept)


__all__ = ["ObjectStorageFilesystemConnector", "S3Appender", "S3Config"]
