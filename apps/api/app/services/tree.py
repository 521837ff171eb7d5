"""Folder tree inference from the flat key set of a bucket."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .errors import InvalidPath
from .keys import ROOT_PATH, base_name, depth, parent_chain, parent_path

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FolderNode:
    """One inferred folder; ``children`` keeps insertion order and is keyed by path."""

    name: str
    path: str
    children: dict[str, "FolderNode"] = field(default_factory=dict)

    def add_child(self, node: "FolderNode") -> "FolderNode":
        existing = self.children.get(node.path)
        if existing is not None:
            return existing
        self.children[node.path] = node
        return node

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "path": self.path,
            "children": [child.to_dict() for child in self.children.values()],
        }


def _collect_candidate_paths(keys: Iterable[str]) -> set[str]:
    candidates = {ROOT_PATH}
    for key in keys:
        try:
            candidates.update(parent_chain(key))
        except InvalidPath as exc:
            logger.warning("Skipping malformed object key %r during tree inference: %s", key, exc)
    return candidates


def build_folder_tree(keys: Iterable[str]) -> FolderNode:
    """Reconstruct the folder hierarchy implied by ``keys``.

    ``keys`` must be the global key set of the bucket: a folder is inferred from
    any key beneath it, whether a real file, a ``.keep`` marker or a placeholder.
    Paths are attached in order of depth so every parent exists before its
    children. A path whose parent is missing is logged and left out.
    """

    root = FolderNode(name="", path=ROOT_PATH)
    index: dict[str, FolderNode] = {ROOT_PATH: root}

    candidates = _collect_candidate_paths(keys)
    for path in sorted(candidates, key=lambda item: (depth(item), item)):
        if path == ROOT_PATH or path in index:
            continue

        parent = index.get(parent_path(path))
        if parent is None:
            logger.warning("Parent folder %s not found for %s; omitting subtree", parent_path(path), path)
            continue

        index[path] = parent.add_child(FolderNode(name=base_name(path), path=path))

    return root


def iter_folders(root: FolderNode) -> Iterator[FolderNode]:
    """Yield every node of the tree, parents before children."""

    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(list(node.children.values())))


def find_folder(root: FolderNode, path: str) -> FolderNode | None:
    """Return the node whose path equals ``path`` exactly."""

    node: FolderNode | None = root
    current = ""
    for segment in [segment for segment in path.split("/") if segment]:
        current = f"{current}/{segment}"
        node = node.children.get(current)
        if node is None:
            return None
    return node
