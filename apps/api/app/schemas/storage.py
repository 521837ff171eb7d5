"""Pydantic schemas for storage-related endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class FolderNodeRead(BaseModel):
    """A folder inferred from the bucket's keys, with its subfolders."""

    name: str
    path: str = Field(..., description="Logical path starting with '/'")
    children: list["FolderNodeRead"] = Field(default_factory=list)


class FileRead(BaseModel):
    """A real file stored in the bucket; folder markers never appear here."""

    name: str
    key: str = Field(..., description="Object key without a leading slash")
    size: int = Field(..., ge=0)
    modified_at: datetime | None = None
    parent_path: str
    url: str | None = Field(default=None, description="Time-limited presigned GET URL")
    public_url: str


class FolderChildRead(BaseModel):
    name: str
    path: str
    has_children: bool = False


class BreadcrumbRead(BaseModel):
    name: str
    path: str


class FolderViewRead(BaseModel):
    """Direct contents of one folder."""

    path: str
    folders: list[FolderChildRead]
    files: list[FileRead]
    total_bytes: int = Field(..., ge=0, description="Bytes held by direct files, markers excluded")
    breadcrumbs: list[BreadcrumbRead]


class CreateFolderRequest(BaseModel):
    parent_path: str = Field(default="/", description="Folder receiving the new subfolder")
    name: str = Field(..., min_length=1, max_length=255)


class CreateFolderResponse(BaseModel):
    path: str
    name: str


class UnitOutcomeRead(BaseModel):
    kind: Literal["file", "marker", "delete"]
    key: str
    ok: bool
    reason: str | None = None
    error_type: str | None = None


class BatchReportRead(BaseModel):
    """Aggregate outcome of a multi-object upload or deletion."""

    succeeded: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    files: list[FileRead] = Field(default_factory=list)
    failures: list[UnitOutcomeRead] = Field(default_factory=list)


class FolderDeleteResponse(BaseModel):
    path: str
    prefix: str
    objects_removed: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    failures: list[UnitOutcomeRead] = Field(default_factory=list)
    redirect_path: str = Field(..., description="Closest folder still present after the deletion")


class FileUrlResponse(BaseModel):
    key: str
    url: str
    public_url: str
    expires_in: int = Field(..., ge=0, description="Seconds until the presigned URL expires")


__all__ = [
    "BatchReportRead",
    "BreadcrumbRead",
    "CreateFolderRequest",
    "CreateFolderResponse",
    "FileRead",
    "FileUrlResponse",
    "FolderChildRead",
    "FolderDeleteResponse",
    "FolderNodeRead",
    "FolderViewRead",
    "UnitOutcomeRead",
]
