"""Capability wrapper over the S3-compatible object store.

The rest of the services only rely on the ``ObjectStore`` protocol: list, put,
presigned GET and delete. ``MinioObjectStore`` implements it with the MinIO SDK,
which also speaks to Cloudflare R2 and AWS S3.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from minio import Minio
from minio.error import MinioException, S3Error
from urllib3.exceptions import HTTPError

from .errors import StoreError
from .keys import DELIMITER

logger = logging.getLogger(__name__)

_MISSING_KEY_CODES = {"NoSuchKey", "NoSuchObject"}


@dataclass(slots=True)
class StoredObject:
    """Metadata for one object returned by a listing."""

    key: str
    size: int = 0
    modified_at: datetime | None = None


@dataclass(slots=True)
class ListResult:
    objects: list[StoredObject] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)

    @property
    def keys(self) -> list[str]:
        return [obj.key for obj in self.objects]


class ObjectStore(Protocol):
    def list_objects(self, prefix: str | None = None, delimiter: str | None = None) -> ListResult:
        """List objects under ``prefix``; with a delimiter only one level is returned."""

    def put_object(self, key: str, data: bytes, content_type: str) -> None:
        """Store ``data`` under ``key``."""

    def presigned_get(self, key: str, ttl: timedelta) -> str:
        """Return a time-limited URL for reading ``key``."""

    def delete_object(self, key: str) -> None:
        """Delete ``key``; deleting a missing key is not an error."""


def normalize_timestamp(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class MinioObjectStore:
    """``ObjectStore`` backed by a single bucket reached through a MinIO client."""

    def __init__(self, client: Minio, bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    def list_objects(self, prefix: str | None = None, delimiter: str | None = None) -> ListResult:
        if delimiter not in (None, DELIMITER):
            raise ValueError(f"Unsupported delimiter '{delimiter}'; only '/' is available")

        result = ListResult()
        try:
            # The SDK follows continuation tokens, so this drains every page.
            for obj in self.client.list_objects(
                self.bucket,
                prefix=prefix or None,
                recursive=delimiter is None,
            ):
                if obj.is_dir:
                    result.common_prefixes.append(obj.object_name)
                    continue
                result.objects.append(
                    StoredObject(
                        key=obj.object_name,
                        size=obj.size or 0,
                        modified_at=normalize_timestamp(obj.last_modified),
                    )
                )
        except (MinioException, HTTPError) as exc:
            logger.error("Failed listing bucket '%s' (prefix=%r): %s", self.bucket, prefix, exc)
            raise StoreError("list", prefix or "", str(exc)) from exc

        return result

    def put_object(self, key: str, data: bytes, content_type: str) -> None:
        try:
            self.client.put_object(
                self.bucket,
                key,
                io.BytesIO(data),
                length=len(data),
                content_type=content_type or "application/octet-stream",
            )
        except (MinioException, HTTPError) as exc:
            logger.error("Failed uploading '%s/%s': %s", self.bucket, key, exc)
            raise StoreError("put", key, str(exc)) from exc

    def presigned_get(self, key: str, ttl: timedelta) -> str:
        try:
            return self.client.presigned_get_object(self.bucket, key, expires=ttl)
        except (MinioException, HTTPError) as exc:
            logger.error("Failed presigning '%s/%s': %s", self.bucket, key, exc)
            raise StoreError("presign", key, str(exc)) from exc

    def delete_object(self, key: str) -> None:
        try:
            self.client.remove_object(self.bucket, key)
        except S3Error as exc:
            if getattr(exc, "code", None) in _MISSING_KEY_CODES:
                logger.debug("Object '%s/%s' already absent", self.bucket, key)
                return
            logger.error("Failed removing '%s/%s': %s", self.bucket, key, exc)
            raise StoreError("delete", key, str(exc)) from exc
        except (MinioException, HTTPError) as exc:
            logger.error("Failed removing '%s/%s': %s", self.bucket, key, exc)
            raise StoreError("delete", key, str(exc)) from exc
