"""Per-folder projections derived from one snapshot of the bucket."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from .keys import ROOT_PATH, base_name, folder_key_of, is_file_key, parent_path, to_key, to_path
from .remote import ObjectStore, StoredObject
from .tree import FolderNode, build_folder_tree, find_folder

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FileRecord:
    """A real file as presented to consumers; never a marker or placeholder."""

    name: str
    key: str
    size: int
    modified_at: datetime | None
    parent_path: str


@dataclass(slots=True)
class FolderView:
    path: str
    child_folders: list[FolderNode] = field(default_factory=list)
    direct_files: list[FileRecord] = field(default_factory=list)

    @property
    def total_bytes(self) -> int:
        return sum(record.size for record in self.direct_files)


def to_file_record(obj: StoredObject) -> FileRecord:
    return FileRecord(
        name=base_name(obj.key),
        key=obj.key,
        size=obj.size,
        modified_at=obj.modified_at,
        parent_path=to_path(folder_key_of(obj.key)),
    )


def file_records(objects: Iterable[StoredObject]) -> list[FileRecord]:
    return [to_file_record(obj) for obj in objects if is_file_key(obj.key)]


def direct_files(objects: Iterable[StoredObject], folder_path: str) -> list[FileRecord]:
    """Files stored directly in ``folder_path``, excluding anything nested deeper.

    At the root a file qualifies only when its key has no ``/`` at all.
    """

    folder_key = to_key(folder_path)
    return [
        to_file_record(obj)
        for obj in objects
        if is_file_key(obj.key) and folder_key_of(obj.key) == folder_key
    ]


def child_folders(root: FolderNode, folder_path: str) -> list[FolderNode]:
    node = find_folder(root, folder_path)
    if node is None:
        return []
    return list(node.children.values())


def breadcrumbs(folder_path: str) -> list[tuple[str, str]]:
    """Return ``(name, path)`` pairs from the root down to ``folder_path``."""

    crumbs = [("", ROOT_PATH)]
    current = ROOT_PATH
    for segment in [segment for segment in to_key(folder_path).split("/") if segment]:
        current = f"{current.rstrip('/')}/{segment}"
        crumbs.append((segment, current))
    return crumbs


@dataclass(slots=True)
class StoreSnapshot:
    """Every object of the bucket at one point in time, plus the tree inferred from it."""

    objects: list[StoredObject]
    tree: FolderNode

    @classmethod
    def from_objects(cls, objects: list[StoredObject]) -> "StoreSnapshot":
        return cls(objects=objects, tree=build_folder_tree(obj.key for obj in objects))

    def exists(self, folder_path: str) -> bool:
        return find_folder(self.tree, folder_path) is not None

    def view(self, folder_path: str) -> FolderView:
        return FolderView(
            path=to_path(to_key(folder_path)),
            child_folders=child_folders(self.tree, folder_path),
            direct_files=direct_files(self.objects, folder_path),
        )

    def nearest_existing(self, folder_path: str) -> str:
        """Closest existing ancestor of ``folder_path``, used after a folder disappears."""

        current = to_path(to_key(folder_path))
        while current != ROOT_PATH and not self.exists(current):
            current = parent_path(current)
        return current


def take_snapshot(store: ObjectStore) -> StoreSnapshot:
    """List the whole bucket without a delimiter and derive the folder tree."""

    listing = store.list_objects()
    snapshot = StoreSnapshot.from_objects(listing.objects)
    logger.debug("Snapshot holds %d objects", len(listing.objects))
    return snapshot
