"""Pydantic schemas used by the FastAPI application."""

from .storage import (
    BatchReportRead,
    BreadcrumbRead,
    CreateFolderRequest,
    CreateFolderResponse,
    FileRead,
    FileUrlResponse,
    FolderChildRead,
    FolderDeleteResponse,
    FolderNodeRead,
    FolderViewRead,
    UnitOutcomeRead,
)

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
