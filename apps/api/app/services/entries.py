"""Lazily walkable directory trees fed to the tree upload.

A ``DirectoryEntry`` yields its children on demand and can be iterated again,
so uploads can walk it with an explicit queue regardless of where the files
come from: an HTTP folder upload described by relative paths, or a local
directory on disk.
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterable, Iterator, Protocol, Union

from .errors import InvalidPath


@dataclass(slots=True)
class UploadItem:
    """Bytes to store together with their name and pass-through content type."""

    name: str
    data: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.data)


class FileEntry(Protocol):
    name: str

    @property
    def size(self) -> int:
        ...

    @property
    def content_type(self) -> str:
        ...

    def load(self) -> UploadItem:
        ...


class DirectoryEntry(Protocol):
    name: str

    def iter_children(self) -> Iterator[Union["FileEntry", "DirectoryEntry"]]:
        ...


def is_directory(entry: object) -> bool:
    return hasattr(entry, "iter_children")


def guess_content_type(name: str) -> str:
    content_type, _ = mimetypes.guess_type(name)
    return content_type or "application/octet-stream"


@dataclass(slots=True)
class MemoryFileEntry:
    item: UploadItem

    @property
    def name(self) -> str:
        return self.item.name

    @property
    def size(self) -> int:
        return self.item.size

    @property
    def content_type(self) -> str:
        return self.item.content_type

    def load(self) -> UploadItem:
        return self.item


@dataclass(slots=True)
class MemoryDirectoryEntry:
    name: str
    files: list[MemoryFileEntry] = field(default_factory=list)
    directories: dict[str, "MemoryDirectoryEntry"] = field(default_factory=dict)

    def iter_children(self) -> Iterator[MemoryFileEntry | "MemoryDirectoryEntry"]:
        yield from self.files
        yield from self.directories.values()

    def subdirectory(self, name: str) -> "MemoryDirectoryEntry":
        if name not in self.directories:
            self.directories[name] = MemoryDirectoryEntry(name=name)
        return self.directories[name]


def _split_relative_path(relative_path: str) -> list[str]:
    normalized = relative_path.replace("\\", "/").strip("/")
    parts = list(PurePosixPath(normalized).parts)
    if not parts or any(part in {"..", "."} for part in parts):
        raise InvalidPath(relative_path, "relative path must name a file inside a folder")
    return parts


def build_directory_tree(items: Iterable[tuple[str, UploadItem]]) -> list[MemoryDirectoryEntry]:
    """Group ``(relative_path, item)`` pairs into one tree per top-level folder.

    ``photos/2024/a.png`` places ``a.png`` in ``2024`` below the ``photos`` root.
    The file name stored is the last path segment, whatever ``item.name`` says.
    """

    roots: dict[str, MemoryDirectoryEntry] = {}
    for relative_path, item in items:
        parts = _split_relative_path(relative_path)
        if len(parts) < 2:
            raise InvalidPath(relative_path, "relative path must include its top-level folder")

        root = roots.setdefault(parts[0], MemoryDirectoryEntry(name=parts[0]))
        directory = root
        for segment in parts[1:-1]:
            directory = directory.subdirectory(segment)
        directory.files.append(
            MemoryFileEntry(UploadItem(name=parts[-1], data=item.data, content_type=item.content_type))
        )
    return list(roots.values())


@dataclass(slots=True)
class LocalFileEntry:
    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    @property
    def content_type(self) -> str:
        return guess_content_type(self.path.name)

    def load(self) -> UploadItem:
        return UploadItem(
            name=self.path.name,
            data=self.path.read_bytes(),
            content_type=self.content_type,
        )


@dataclass(slots=True)
class LocalDirectoryEntry:
    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    def iter_children(self) -> Iterator[LocalFileEntry | "LocalDirectoryEntry"]:
        for child in sorted(self.path.iterdir(), key=lambda item: item.name):
            if child.is_symlink():
                continue
            if child.is_dir():
                yield LocalDirectoryEntry(child)
            elif child.is_file():
                yield LocalFileEntry(child)
