"""Tests for folder tree inference."""

from __future__ import annotations

import logging

from app.services.keys import parent_chain
from app.services.tree import FolderNode, build_folder_tree, find_folder, iter_folders


def _paths(root: FolderNode) -> list[str]:
    return [node.path for node in iter_folders(root)]


def test_empty_key_set_yields_lone_root() -> None:
    root = build_folder_tree([])

    assert root.path == "/"
    assert root.children == {}


def test_scenario_tree_has_expected_shape() -> None:
    root = build_folder_tree(["a/b/x.png", "a/b/c/y.png", "d.png"])

    assert list(root.children) == ["/a"]
    a = root.children["/a"]
    assert a.name == "a"
    assert list(a.children) == ["/a/b"]
    b = a.children["/a/b"]
    assert list(b.children) == ["/a/b/c"]
    assert b.children["/a/b/c"].children == {}


def test_every_chain_element_appears_exactly_once() -> None:
    keys = [
        "photos/2024/jan/a.png",
        "photos/2024/jan/b.png",
        "photos/2024/.keep",
        "photos/2023/c.png",
        "docs/readme.md",
        "top.txt",
        "empty/.keep",
    ]

    paths = _paths(build_folder_tree(keys))

    expected = {path for key in keys for path in parent_chain(key)}
    assert sorted(paths) == sorted(expected)
    assert len(paths) == len(set(paths))
    assert paths.count("/") == 1


def test_folder_with_content_but_no_marker_is_still_inferred() -> None:
    root = build_folder_tree(["reports/q1/summary.pdf"])

    assert find_folder(root, "/reports/q1") is not None


def test_marker_only_folder_is_inferred() -> None:
    root = build_folder_tree(["empty/.keep"])

    node = find_folder(root, "/empty")
    assert node is not None
    assert node.children == {}


def test_placeholder_keys_contribute_their_own_folder() -> None:
    root = build_folder_tree(["made-by-console/"])

    assert find_folder(root, "/made-by-console") is not None


def test_malformed_key_is_skipped_without_aborting(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="app.services.tree"):
        root = build_folder_tree(["good/file.txt", "bad//file.txt", "/leading.txt"])

    assert _paths(root) == ["/", "/good"]
    assert "bad//file.txt" in caplog.text


def test_children_are_unique_by_path() -> None:
    node = FolderNode(name="", path="/")
    first = node.add_child(FolderNode(name="a", path="/a"))
    second = node.add_child(FolderNode(name="a", path="/a"))

    assert first is second
    assert len(node.children) == 1


def test_find_folder_requires_exact_match() -> None:
    root = build_folder_tree(["a/b/x.png"])

    assert find_folder(root, "/") is root
    assert find_folder(root, "/a/b").path == "/a/b"
    assert find_folder(root, "/a/b/").path == "/a/b"
    assert find_folder(root, "/a/bc") is None
    assert find_folder(root, "/b") is None


def test_to_dict_nests_children() -> None:
    root = build_folder_tree(["a/b/x.png"])

    assert root.to_dict() == {
        "name": "",
        "path": "/",
        "children": [
            {
                "name": "a",
                "path": "/a",
                "children": [{"name": "b", "path": "/a/b", "children": []}],
            }
        ],
    }
