"""Shared fixtures: an in-memory object store that records every call."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta
from typing import Iterable

import pytest

from app.core.config import Settings
from app.services.errors import StoreError
from app.services.remote import ListResult, StoredObject


class FakeObjectStore:
    """Dict-backed ``ObjectStore`` recording list/put/delete calls in order."""

    def __init__(self, keys: Iterable[str] = (), fail_on: Iterable[tuple[str, str]] = ()) -> None:
        self.objects: dict[str, StoredObject] = {}
        self.bodies: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []
        self.presigned: list[str] = []
        self.fail_on = set(fail_on)
        self._lock = threading.Lock()
        for key in keys:
            self.seed(key)

    def seed(self, key: str, data: bytes = b"x") -> None:
        self.objects[key] = StoredObject(
            key=key,
            size=len(data),
            modified_at=datetime(2024, 5, 1, tzinfo=UTC),
        )
        self.bodies[key] = data

    def _record(self, operation: str, key: str) -> None:
        with self._lock:
            self.calls.append((operation, key))
        if (operation, key) in self.fail_on:
            raise StoreError(operation, key, "simulated failure")

    def list_objects(self, prefix: str | None = None, delimiter: str | None = None) -> ListResult:
        self._record("list", prefix or "")
        prefix = prefix or ""
        result = ListResult()
        seen_prefixes: set[str] = set()
        with self._lock:
            keys = sorted(key for key in self.objects if key.startswith(prefix))
            for key in keys:
                rest = key[len(prefix):]
                if delimiter and delimiter in rest:
                    common = prefix + rest.split(delimiter, 1)[0] + delimiter
                    if common not in seen_prefixes:
                        seen_prefixes.add(common)
                        result.common_prefixes.append(common)
                    continue
                result.objects.append(self.objects[key])
        return result

    def put_object(self, key: str, data: bytes, content_type: str) -> None:
        self._record("put", key)
        with self._lock:
            self.objects[key] = StoredObject(key=key, size=len(data), modified_at=datetime.now(UTC))
            self.bodies[key] = data
            self.content_types[key] = content_type

    def presigned_get(self, key: str, ttl: timedelta) -> str:
        if ("presign", key) in self.fail_on:
            raise StoreError("presign", key, "simulated failure")
        with self._lock:
            self.presigned.append(key)
        return f"https://signed.test/{key}?expires={int(ttl.total_seconds())}"

    def delete_object(self, key: str) -> None:
        self._record("delete", key)
        with self._lock:
            self.objects.pop(key, None)
            self.bodies.pop(key, None)

    def calls_for(self, operation: str) -> list[str]:
        return [key for op, key in self.calls if op == operation]


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        public_host="files.test",
        max_upload_bytes=1024,
        presigned_url_ttl_seconds=600,
        upload_concurrency=4,
        delete_concurrency=4,
    )


@pytest.fixture()
def fake_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture()
def make_store():
    """Factory for stores pre-seeded with keys or configured to fail on given calls."""
    return FakeObjectStore
