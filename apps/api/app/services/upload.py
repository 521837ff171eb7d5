"""Folder-aware uploads: single files, batches, empty folders and whole directory trees."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import AsyncIterator, Iterable, Sequence

from app.core.config import Settings

from .entries import DirectoryEntry, FileEntry, UploadItem, build_directory_tree, is_directory
from .errors import FileTooLarge, StorageError, StoreError
from .keys import (
    MARKER_BODY,
    MARKER_CONTENT_TYPE,
    MARKER_NAME,
    join_key,
    join_path,
    public_url,
    sanitize_folder_name,
    to_key,
    to_path,
)
from .remote import ObjectStore
from .reports import BatchReport, UnitOutcome

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UploadedFile:
    """Metadata returned for a stored object, including presigned and public URLs."""

    name: str
    key: str
    size: int
    modified_at: datetime
    parent_path: str
    url: str | None
    public_url: str


def put_one_file(
    store: ObjectStore,
    item: UploadItem,
    target_folder_path: str,
    settings: Settings,
) -> UploadedFile:
    """Store ``item`` inside ``target_folder_path``.

    Files above ``settings.max_upload_bytes`` are rejected before the store is
    contacted; folder markers are exempt from the ceiling and are never
    presigned. A failed ``put`` propagates as ``StoreError``; once the object
    is stored, a failed presign only leaves ``url`` empty.
    """

    if item.name != MARKER_NAME and item.size > settings.max_upload_bytes:
        raise FileTooLarge(item.name, item.size, settings.max_upload_bytes)

    folder_path = to_path(to_key(target_folder_path))
    key = join_key(folder_path, item.name)
    store.put_object(key, item.data, item.content_type)

    url: str | None = None
    if item.name != MARKER_NAME:
        try:
            url = store.presigned_get(key, settings.presigned_url_ttl)
        except StoreError as exc:
            logger.warning("Stored '%s' but could not presign it: %s", key, exc)

    logger.debug("Stored '%s' (%d bytes)", key, item.size)
    return UploadedFile(
        name=item.name,
        key=key,
        size=item.size,
        modified_at=datetime.now(UTC),
        parent_path=folder_path,
        url=url,
        public_url=public_url(settings.public_host, key),
    )


def marker_item() -> UploadItem:
    return UploadItem(name=MARKER_NAME, data=MARKER_BODY, content_type=MARKER_CONTENT_TYPE)


def ensure_marker(store: ObjectStore, folder_path: str, settings: Settings) -> UploadedFile:
    """Write the folder marker for ``folder_path``; rewriting an existing marker is harmless."""
    return put_one_file(store, marker_item(), folder_path, settings)


def create_folder(store: ObjectStore, parent_path: str, name: str, settings: Settings) -> str:
    """Create an empty folder called ``name`` below ``parent_path`` and return its path."""

    folder_name = sanitize_folder_name(name)
    folder_path = join_path(to_path(to_key(parent_path)), folder_name)
    ensure_marker(store, folder_path, settings)
    logger.info("Created folder '%s'", folder_path)
    return folder_path


async def _put_unit(
    store: ObjectStore,
    item: UploadItem,
    folder_path: str,
    settings: Settings,
    semaphore: asyncio.Semaphore,
) -> UnitOutcome:
    kind = "marker" if item.name == MARKER_NAME else "file"
    key = join_key(folder_path, item.name)
    async with semaphore:
        try:
            uploaded = await asyncio.to_thread(put_one_file, store, item, folder_path, settings)
        except StorageError as exc:
            logger.warning("Upload of '%s' failed: %s", key, exc)
            return UnitOutcome.failure(kind, key, exc)
    return UnitOutcome(kind=kind, key=key, ok=True, result=uploaded)


async def _put_level(
    store: ObjectStore,
    items: Sequence[UploadItem],
    folder_path: str,
    settings: Settings,
) -> list[UnitOutcome]:
    semaphore = asyncio.Semaphore(max(1, settings.upload_concurrency))
    tasks = [_put_unit(store, item, folder_path, settings, semaphore) for item in items]
    return list(await asyncio.gather(*tasks))


async def upload_files(
    store: ObjectStore,
    items: Sequence[UploadItem],
    target_folder_path: str,
    settings: Settings,
) -> BatchReport:
    """Upload several files into one folder concurrently.

    Every file is attempted; a failing file never prevents its siblings from
    being stored. Outcomes keep the input order.
    """

    folder_path = to_path(to_key(target_folder_path))
    report = BatchReport()
    for outcome in await _put_level(store, items, folder_path, settings):
        report.add(outcome)

    logger.info(
        "Uploaded %d of %d files to '%s'",
        report.succeeded_count,
        len(items),
        folder_path,
    )
    return report


def _load_within_limit(entry: FileEntry, settings: Settings) -> UploadItem:
    size = entry.size
    if size > settings.max_upload_bytes:
        raise FileTooLarge(entry.name, size, settings.max_upload_bytes)
    return entry.load()


def _list_children(directory: DirectoryEntry) -> list[FileEntry | DirectoryEntry]:
    return list(directory.iter_children())


async def _put_entry(
    store: ObjectStore,
    entry: FileEntry,
    folder_path: str,
    settings: Settings,
    semaphore: asyncio.Semaphore,
) -> UnitOutcome:
    # Contents are read only once a slot is free and dropped after the put.
    key = join_key(folder_path, entry.name)
    async with semaphore:
        try:
            item = await asyncio.to_thread(_load_within_limit, entry, settings)
            uploaded = await asyncio.to_thread(put_one_file, store, item, folder_path, settings)
        except (StorageError, OSError) as exc:
            logger.warning("Upload of '%s' failed: %s", key, exc)
            return UnitOutcome.failure("file", key, exc)
    return UnitOutcome(kind="file", key=key, ok=True, result=uploaded)


async def iter_upload_tree(
    store: ObjectStore,
    root: DirectoryEntry,
    target_parent_path: str,
    settings: Settings,
) -> AsyncIterator[UnitOutcome]:
    """Upload the directory ``root`` below ``target_parent_path`` level by level.

    For each folder the marker is written first, then the folder's files are
    uploaded concurrently, and only then are its subfolders queued. A deeper
    level therefore never starts before its ancestors' markers are stored.
    A folder that cannot be read yields one failed outcome and is skipped
    together with its contents. One outcome is yielded per unit; stopping
    iteration abandons the walk.
    """

    parent = to_path(to_key(target_parent_path))
    queue: deque[tuple[DirectoryEntry, str]] = deque([(root, join_path(parent, root.name))])

    while queue:
        directory, folder_path = queue.popleft()

        marker_outcomes = await _put_level(store, [marker_item()], folder_path, settings)
        for outcome in marker_outcomes:
            yield outcome

        try:
            children = await asyncio.to_thread(_list_children, directory)
        except OSError as exc:
            logger.warning("Unable to read folder '%s' for upload: %s", folder_path, exc)
            yield UnitOutcome.failure("file", to_key(folder_path), exc)
            continue

        entries: list[FileEntry] = []
        for child in children:
            if is_directory(child):
                queue.append((child, join_path(folder_path, child.name)))
            elif child.name != MARKER_NAME:
                entries.append(child)

        semaphore = asyncio.Semaphore(max(1, settings.upload_concurrency))
        tasks = [_put_entry(store, entry, folder_path, settings, semaphore) for entry in entries]
        for outcome in await asyncio.gather(*tasks):
            yield outcome


async def upload_tree(
    store: ObjectStore,
    root: DirectoryEntry,
    target_parent_path: str,
    settings: Settings,
) -> BatchReport:
    report = BatchReport()
    async for outcome in iter_upload_tree(store, root, target_parent_path, settings):
        report.add(outcome)

    logger.info(
        "Uploaded folder '%s' into '%s': %d succeeded, %d failed",
        root.name,
        target_parent_path,
        report.succeeded_count,
        report.failed_count,
    )
    return report


async def upload_relative_paths(
    store: ObjectStore,
    items: Iterable[tuple[str, UploadItem]],
    target_parent_path: str,
    settings: Settings,
) -> BatchReport:
    """Upload files described by folder-relative paths such as ``photos/2024/a.png``.

    Each distinct top-level folder becomes one tree upload; the combined
    outcomes are returned in a single report.
    """

    report = BatchReport()
    for root in build_directory_tree(items):
        partial = await upload_tree(store, root, target_parent_path, settings)
        report.succeeded.extend(partial.succeeded)
        report.failed.extend(partial.failed)
    return report
