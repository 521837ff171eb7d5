"""Service layer: folder reconciliation over an S3-compatible bucket."""

from .deletion import delete_file, delete_folder, iter_delete_folder
from .entries import LocalDirectoryEntry, UploadItem, build_directory_tree
from .errors import (
    FileTooLarge,
    ForbiddenOperation,
    InvalidFolderName,
    InvalidPath,
    PartialBatchFailure,
    StorageError,
    StoreError,
)
from .minio import ensure_bucket, get_minio_client, get_object_store
from .remote import ListResult, MinioObjectStore, ObjectStore, StoredObject
from .reports import BatchReport, DeletionReport, UnitOutcome
from .tree import FolderNode, build_folder_tree, find_folder
from .upload import (
    UploadedFile,
    create_folder,
    iter_upload_tree,
    put_one_file,
    upload_files,
    upload_relative_paths,
    upload_tree,
)
from .view import FileRecord, FolderView, StoreSnapshot, breadcrumbs, take_snapshot

__all__ = [
    "BatchReport",
    "DeletionReport",
    "FileRecord",
    "FileTooLarge",
    "FolderNode",
    "FolderView",
    "ForbiddenOperation",
    "InvalidFolderName",
    "InvalidPath",
    "ListResult",
    "LocalDirectoryEntry",
    "MinioObjectStore",
    "ObjectStore",
    "PartialBatchFailure",
    "StorageError",
    "StoreError",
    "StoreSnapshot",
    "StoredObject",
    "UnitOutcome",
    "UploadItem",
    "UploadedFile",
    "breadcrumbs",
    "build_directory_tree",
    "build_folder_tree",
    "create_folder",
    "delete_file",
    "delete_folder",
    "ensure_bucket",
    "find_folder",
    "get_minio_client",
    "get_object_store",
    "iter_delete_folder",
    "iter_upload_tree",
    "put_one_file",
    "take_snapshot",
    "upload_files",
    "upload_relative_paths",
    "upload_tree",
]
