"""Error taxonomy shared by the storage services."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .reports import BatchReport


class StorageError(Exception):
    """Base class for every failure raised by the storage services."""


class InvalidPath(StorageError):
    """Raised when a logical path or object key is malformed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Invalid path '{path}': {reason}")
        self.path = path
        self.reason = reason


class InvalidFolderName(StorageError):
    """Raised when a folder name is empty once hostile characters are replaced."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Folder name '{name}' is not usable")
        self.name = name


class FileTooLarge(StorageError):
    """Raised when a file exceeds the configured upload ceiling."""

    def __init__(self, name: str, size: int, limit: int) -> None:
        super().__init__(
            f"File '{name}' is {size / (1024 * 1024):.1f}MB; files must be at most {limit} bytes"
        )
        self.name = name
        self.size = size
        self.limit = limit


class ForbiddenOperation(StorageError):
    """Raised for operations that are never allowed, such as deleting the root."""


class StoreError(StorageError):
    """Raised when the object store rejects or fails a request."""

    def __init__(self, operation: str, key: str, message: str) -> None:
        super().__init__(f"Object store {operation} failed for '{key}': {message}")
        self.operation = operation
        self.key = key


class PartialBatchFailure(StorageError):
    """Raised when at least one unit of a batch or tree operation failed."""

    def __init__(self, report: "BatchReport") -> None:
        super().__init__(
            f"{report.failed_count} of {report.total} operations failed "
            f"({report.succeeded_count} succeeded)"
        )
        self.report = report
