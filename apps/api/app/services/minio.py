"""MinIO client helpers and bootstrap utilities."""

from __future__ import annotations

import logging

from minio import Minio
from minio.error import S3Error

from app.core.config import Settings, get_settings

from .remote import MinioObjectStore

logger = logging.getLogger(__name__)


def get_minio_client(settings: Settings | None = None) -> Minio:
    """Create a MinIO client using application settings."""

    config = settings or get_settings()
    return Minio(
        config.minio_endpoint,
        access_key=config.minio_access_key,
        secret_key=config.minio_secret_key,
        secure=config.minio_secure,
        region=config.minio_region,
    )


def get_object_store(settings: Settings | None = None) -> MinioObjectStore:
    """Return the ``ObjectStore`` for the configured bucket."""

    config = settings or get_settings()
    return MinioObjectStore(get_minio_client(config), config.minio_bucket)


def ensure_bucket(client: Minio, bucket: str) -> None:
    """Create ``bucket`` when it does not exist yet."""

    try:
        if client.bucket_exists(bucket):
            logger.debug("Bucket '%s' already exists", bucket)
            return
        client.make_bucket(bucket)
        logger.info("Created bucket '%s'", bucket)
    except S3Error as exc:
        logger.error("Failed to ensure bucket '%s': %s", bucket, exc)
        raise RuntimeError(f"Unable to ensure bucket '{bucket}'") from exc
