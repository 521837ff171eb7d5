"""Deletion of single objects and of whole folders."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from app.core.config import Settings

from .errors import ForbiddenOperation, InvalidPath, StorageError
from .keys import DELIMITER, to_key
from .remote import ObjectStore
from .reports import DeletionReport, UnitOutcome

logger = logging.getLogger(__name__)


def delete_file(store: ObjectStore, key: str) -> None:
    """Delete one object. Store failures propagate to the caller."""

    if not key or key.startswith(DELIMITER):
        raise InvalidPath(key, "expected a non-empty object key without a leading '/'")
    store.delete_object(key)
    logger.info("Deleted object '%s'", key)


def folder_prefix(folder_path: str) -> str:
    """Listing prefix for everything below ``folder_path``; the root is refused."""

    folder_key = to_key(folder_path)
    if not folder_key:
        raise ForbiddenOperation("The root folder cannot be deleted")
    return f"{folder_key}{DELIMITER}"


async def _delete_unit(store: ObjectStore, key: str, semaphore: asyncio.Semaphore) -> UnitOutcome:
    async with semaphore:
        try:
            await asyncio.to_thread(store.delete_object, key)
        except StorageError as exc:
            logger.warning("Deleting '%s' failed: %s", key, exc)
            return UnitOutcome.failure("delete", key, exc)
    return UnitOutcome(kind="delete", key=key, ok=True)


async def iter_delete_folder(
    store: ObjectStore,
    folder_path: str,
    settings: Settings,
) -> AsyncIterator[UnitOutcome]:
    """Delete every object under ``folder_path``, yielding one outcome per key.

    Objects are independent so deletions run concurrently in chunks of
    ``settings.delete_concurrency``; the walk can be abandoned between chunks.
    """

    prefix = folder_prefix(folder_path)
    listing = await asyncio.to_thread(store.list_objects, prefix)
    keys = listing.keys
    if not keys:
        logger.info("No objects found under '%s'", prefix)
        return

    chunk_size = max(1, settings.delete_concurrency)
    semaphore = asyncio.Semaphore(chunk_size)
    for start in range(0, len(keys), chunk_size):
        chunk = keys[start : start + chunk_size]
        for outcome in await asyncio.gather(*(_delete_unit(store, key, semaphore) for key in chunk)):
            yield outcome


async def delete_folder(store: ObjectStore, folder_path: str, settings: Settings) -> DeletionReport:
    """Recursively delete ``folder_path``. An empty folder is a successful no-op."""

    report = DeletionReport(prefix=folder_prefix(folder_path))
    async for outcome in iter_delete_folder(store, folder_path, settings):
        report.add(outcome)

    logger.info(
        "Deleted %d objects under '%s' (%d failed)",
        report.objects_removed,
        report.prefix,
        report.failed_count,
    )
    return report
