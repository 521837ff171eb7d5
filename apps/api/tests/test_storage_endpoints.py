"""Integration-style tests for the folder browsing and mutation endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.main import app


@pytest.fixture()
def store(make_store):
    return make_store(["a/b/x.png", "a/b/c/y.png", "d.png", "a/.keep"])


@pytest.fixture()
def client(monkeypatch, settings, store):
    from app.routers import storage

    monkeypatch.setattr(storage, "get_settings", lambda: settings)
    app.dependency_overrides[storage.get_store] = lambda: store

    yield TestClient(app)

    app.dependency_overrides.pop(storage.get_store, None)


def test_read_folder_tree(client) -> None:
    response = client.get("/storage/tree")

    assert response.status_code == 200
    body = response.json()
    assert body["path"] == "/"
    assert [child["path"] for child in body["children"]] == ["/a"]
    b = body["children"][0]["children"][0]
    assert b["path"] == "/a/b"
    assert [child["path"] for child in b["children"]] == ["/a/b/c"]


def test_read_root_folder(client, store) -> None:
    response = client.get("/storage/folders", params={"path": "/"})

    assert response.status_code == 200
    body = response.json()
    assert [folder["path"] for folder in body["folders"]] == ["/a"]
    assert body["folders"][0]["has_children"] is True
    assert [file["key"] for file in body["files"]] == ["d.png"]
    assert body["breadcrumbs"] == [{"name": "", "path": "/"}]
    assert store.calls == [("list", "")]


def test_read_nested_folder_lists_direct_files_only(client) -> None:
    response = client.get("/storage/folders", params={"path": "/a/b"})

    assert response.status_code == 200
    body = response.json()
    assert [folder["name"] for folder in body["folders"]] == ["c"]
    assert body["folders"][0]["has_children"] is False
    file = body["files"][0]
    assert file["key"] == "a/b/x.png"
    assert file["parent_path"] == "/a/b"
    assert file["url"] == "https://signed.test/a/b/x.png?expires=600"
    assert file["public_url"] == "https://files.test/a/b/x.png"
    assert body["total_bytes"] == 1


def test_folder_with_only_a_marker_has_no_files(client) -> None:
    response = client.get("/storage/folders", params={"path": "/a"})

    assert response.status_code == 200
    assert response.json()["files"] == []


def test_unknown_folder_returns_404(client) -> None:
    response = client.get("/storage/folders", params={"path": "/nope"})

    assert response.status_code == 404


def test_malformed_folder_path_returns_400(client) -> None:
    response = client.get("/storage/folders", params={"path": "a//b"})

    assert response.status_code == 400


def test_create_folder_writes_marker(client, store) -> None:
    response = client.post("/storage/folders", json={"parent_path": "/a", "name": "new:stuff"})

    assert response.status_code == 201
    assert response.json() == {"path": "/a/new_stuff", "name": "new_stuff"}
    assert store.calls_for("put") == ["a/new_stuff/.keep"]


def test_create_folder_with_unusable_name_returns_400(client, store) -> None:
    response = client.post("/storage/folders", json={"parent_path": "/", "name": ".."})

    assert response.status_code == 400
    assert store.calls_for("put") == []


def test_upload_single_file(client, store) -> None:
    response = client.post(
        "/storage/files",
        files=[("files", ("cat.png", b"meow", "image/png"))],
        data={"path": "/pets"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["succeeded"] == 1
    assert body["failed"] == 0
    assert body["files"][0]["key"] == "pets/cat.png"
    assert store.content_types["pets/cat.png"] == "image/png"


def test_upload_too_large_file_returns_413_without_store_call(client, store, settings) -> None:
    response = client.post(
        "/storage/files",
        files=[("files", ("big.bin", b"x" * (settings.max_upload_bytes + 1), "application/octet-stream"))],
        data={"path": "/"},
    )

    assert response.status_code == 413
    assert store.calls_for("put") == []


def test_upload_store_failure_returns_502(client, store) -> None:
    store.fail_on.add(("put", "cat.png"))

    response = client.post("/storage/files", files=[("files", ("cat.png", b"meow", "image/png"))])

    assert response.status_code == 502


def test_upload_reserved_marker_name_returns_400(client, store) -> None:
    response = client.post("/storage/files", files=[("files", (".keep", b"", "text/plain"))])

    assert response.status_code == 400
    assert store.calls_for("put") == []


def test_batch_upload_with_one_failure_returns_multi_status(client, store) -> None:
    store.fail_on.add(("put", "inbox/two.txt"))

    response = client.post(
        "/storage/files",
        files=[
            ("files", ("one.txt", b"1", "text/plain")),
            ("files", ("two.txt", b"2", "text/plain")),
            ("files", ("three.txt", b"3", "text/plain")),
        ],
        data={"path": "/inbox"},
    )

    assert response.status_code == 207
    body = response.json()
    assert body["succeeded"] == 2
    assert body["failed"] == 1
    assert body["failures"][0]["key"] == "inbox/two.txt"
    assert {"inbox/one.txt", "inbox/three.txt"} <= set(store.objects)


def test_folder_upload_with_relative_paths(client, store) -> None:
    response = client.post(
        "/storage/files",
        files=[
            ("files", ("a.png", b"a", "image/png")),
            ("files", ("b.png", b"b", "image/png")),
        ],
        data={"path": "/", "relative_paths": ["album/a.png", "album/raw/b.png"]},
    )

    assert response.status_code == 201
    assert response.json()["succeeded"] == 4
    puts = store.calls_for("put")
    assert puts.index("album/raw/.keep") < puts.index("album/raw/b.png")
    assert {"album/.keep", "album/a.png", "album/raw/.keep", "album/raw/b.png"} <= set(store.objects)


def test_relative_paths_must_match_files(client) -> None:
    response = client.post(
        "/storage/files",
        files=[("files", ("a.png", b"a", "image/png"))],
        data={"relative_paths": ["album/a.png", "album/b.png"]},
    )

    assert response.status_code == 400


def test_read_file_url(client) -> None:
    response = client.get("/storage/files/url", params={"key": "a/b/x.png"})

    assert response.status_code == 200
    assert response.json() == {
        "key": "a/b/x.png",
        "url": "https://signed.test/a/b/x.png?expires=600",
        "public_url": "https://files.test/a/b/x.png",
        "expires_in": 600,
    }


def test_file_url_for_marker_is_rejected(client) -> None:
    response = client.get("/storage/files/url", params={"key": "a/.keep"})

    assert response.status_code == 400


def test_delete_file(client, store) -> None:
    response = client.delete("/storage/files", params={"key": "d.png"})

    assert response.status_code == 204
    assert "d.png" not in store.objects


def test_delete_file_store_failure_returns_502(client, store) -> None:
    store.fail_on.add(("delete", "d.png"))

    response = client.delete("/storage/files", params={"key": "d.png"})

    assert response.status_code == 502
    assert "d.png" in store.objects


def test_delete_folder_removes_subtree(client, store) -> None:
    response = client.delete("/storage/folders", params={"path": "/a/b"})

    assert response.status_code == 200
    body = response.json()
    assert body["prefix"] == "a/b/"
    assert body["objects_removed"] == 2
    assert body["failed"] == 0
    assert body["redirect_path"] == "/a"
    assert set(store.objects) == {"d.png", "a/.keep"}


def test_delete_root_is_forbidden(client, store) -> None:
    response = client.delete("/storage/folders", params={"path": "/"})

    assert response.status_code == 403
    assert store.calls == []


def test_delete_folder_partial_failure_returns_multi_status(client, store) -> None:
    store.fail_on.add(("delete", "a/b/c/y.png"))

    response = client.delete("/storage/folders", params={"path": "/a"})

    assert response.status_code == 207
    body = response.json()
    assert body["failed"] == 1
    assert body["failures"][0]["key"] == "a/b/c/y.png"
    assert body["redirect_path"] == "/a"


def test_delete_folder_survives_failed_refresh(client, store) -> None:
    store.fail_on.add(("list", ""))

    response = client.delete("/storage/folders", params={"path": "/a/b"})

    assert response.status_code == 200
    body = response.json()
    assert body["objects_removed"] == 2
    assert body["redirect_path"] == "/a"
    assert "a/b/x.png" not in store.objects


def test_oversized_part_is_rejected_without_reading(client, store, settings, monkeypatch) -> None:
    from starlette.datastructures import UploadFile as StarletteUploadFile

    read_names: list[str] = []
    original_read = StarletteUploadFile.read

    async def recording_read(self, size: int = -1) -> bytes:
        read_names.append(self.filename)
        return await original_read(self, size)

    monkeypatch.setattr(StarletteUploadFile, "read", recording_read)

    response = client.post(
        "/storage/files",
        files=[
            ("files", ("small.txt", b"ok", "text/plain")),
            ("files", ("big.bin", b"x" * (settings.max_upload_bytes + 1), "application/octet-stream")),
        ],
        data={"path": "/inbox"},
    )

    assert response.status_code == 207
    body = response.json()
    assert body["succeeded"] == 1
    assert body["failures"][0]["key"] == "inbox/big.bin"
    assert body["failures"][0]["error_type"] == "FileTooLarge"
    assert "big.bin" not in read_names
    assert store.calls_for("put") == ["inbox/small.txt"]


def test_oversized_part_in_folder_upload_is_reported(client, store, settings) -> None:
    response = client.post(
        "/storage/files",
        files=[
            ("files", ("a.png", b"a", "image/png")),
            ("files", ("b.bin", b"x" * (settings.max_upload_bytes + 1), "application/octet-stream")),
        ],
        data={"path": "/", "relative_paths": ["album/a.png", "album/raw/b.bin"]},
    )

    assert response.status_code == 207
    assert response.json()["failures"][0]["key"] == "album/raw/b.bin"
    assert "album/raw/b.bin" not in store.objects
    assert "album/a.png" in store.objects
