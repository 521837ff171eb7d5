"""Endpoints for browsing the bucket as folders and mutating it."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from fastapi.responses import JSONResponse

from app.core.config import Settings, get_settings
from app.monitoring import record_storage_operation
from app.schemas.storage import (
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
from app.services import (
    BatchReport,
    FileTooLarge,
    ForbiddenOperation,
    InvalidFolderName,
    InvalidPath,
    ObjectStore,
    PartialBatchFailure,
    StorageError,
    StoreError,
    UnitOutcome,
    UploadItem,
    UploadedFile,
    breadcrumbs,
    create_folder,
    delete_file,
    delete_folder,
    get_object_store,
    take_snapshot,
    upload_files,
    upload_relative_paths,
)
from app.services.keys import MARKER_NAME, is_file_key, join_key, parent_path, public_url, to_key, to_path
from app.services.view import FileRecord

router = APIRouter(prefix="/storage", tags=["Storage"])
logger = logging.getLogger(__name__)

_SINGLE_UPLOAD_STATUS = {
    FileTooLarge.__name__: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    StoreError.__name__: status.HTTP_502_BAD_GATEWAY,
}


def get_store() -> ObjectStore:
    return get_object_store(get_settings())


def _http_error(exc: StorageError) -> HTTPException:
    if isinstance(exc, (InvalidPath, InvalidFolderName)):
        return HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, ForbiddenOperation):
        return HTTPException(status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, FileTooLarge):
        return HTTPException(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc))
    if isinstance(exc, StoreError):
        return HTTPException(status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    logger.error("Unhandled storage error: %s", exc)
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Storage operation failed")


def _normalize_folder_path(path: str) -> str:
    try:
        return to_path(to_key(path))
    except InvalidPath as exc:
        raise _http_error(exc) from exc


def _file_read(record: FileRecord, store: ObjectStore, settings: Settings) -> FileRead:
    try:
        url = store.presigned_get(record.key, settings.presigned_url_ttl)
    except StoreError as exc:
        raise _http_error(exc) from exc
    return FileRead(
        name=record.name,
        key=record.key,
        size=record.size,
        modified_at=record.modified_at,
        parent_path=record.parent_path,
        url=url,
        public_url=public_url(settings.public_host, record.key),
    )


def _uploaded_read(uploaded: UploadedFile) -> FileRead:
    return FileRead(
        name=uploaded.name,
        key=uploaded.key,
        size=uploaded.size,
        modified_at=uploaded.modified_at,
        parent_path=uploaded.parent_path,
        url=uploaded.url,
        public_url=uploaded.public_url,
    )


def _outcome_read(outcome: UnitOutcome) -> UnitOutcomeRead:
    return UnitOutcomeRead(
        kind=outcome.kind,
        key=outcome.key,
        ok=outcome.ok,
        reason=outcome.reason,
        error_type=outcome.error_type,
    )


def _batch_response(report: BatchReport) -> BatchReportRead | JSONResponse:
    body = BatchReportRead(
        succeeded=report.succeeded_count,
        failed=report.failed_count,
        files=[
            _uploaded_read(outcome.result)
            for outcome in report.succeeded
            if outcome.kind == "file" and isinstance(outcome.result, UploadedFile)
        ],
        failures=[_outcome_read(outcome) for outcome in report.failed],
    )
    try:
        report.raise_for_failures()
    except PartialBatchFailure as exc:
        logger.warning("Upload finished with failures: %s", exc)
        return JSONResponse(status_code=status.HTTP_207_MULTI_STATUS, content=body.model_dump(mode="json"))
    return body


@router.get("/tree", response_model=FolderNodeRead)
def read_folder_tree(store: ObjectStore = Depends(get_store)):
    """Return the complete folder hierarchy inferred from every key in the bucket."""

    try:
        snapshot = take_snapshot(store)
    except StoreError as exc:
        raise _http_error(exc) from exc
    return snapshot.tree.to_dict()


@router.get("/folders", response_model=FolderViewRead)
def read_folder(
    path: str = Query(default="/", description="Logical folder path, '/' for the root"),
    store: ObjectStore = Depends(get_store),
):
    """List the subfolders and files stored directly inside ``path``."""

    settings = get_settings()
    folder_path = _normalize_folder_path(path)

    try:
        snapshot = take_snapshot(store)
    except StoreError as exc:
        raise _http_error(exc) from exc

    if not snapshot.exists(folder_path):
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Folder not found")

    view = snapshot.view(folder_path)
    return FolderViewRead(
        path=view.path,
        folders=[
            FolderChildRead(name=child.name, path=child.path, has_children=bool(child.children))
            for child in view.child_folders
        ],
        files=[_file_read(record, store, settings) for record in view.direct_files],
        total_bytes=view.total_bytes,
        breadcrumbs=[BreadcrumbRead(name=name, path=crumb) for name, crumb in breadcrumbs(view.path)],
    )


@router.post("/folders", response_model=CreateFolderResponse, status_code=status.HTTP_201_CREATED)
def create_folder_endpoint(payload: CreateFolderRequest, store: ObjectStore = Depends(get_store)):
    """Create an empty folder by storing its marker object."""

    settings = get_settings()
    try:
        folder_path = create_folder(store, payload.parent_path, payload.name, settings)
    except StorageError as exc:
        record_storage_operation("create_folder", "failed")
        raise _http_error(exc) from exc

    record_storage_operation("create_folder", "succeeded")
    return CreateFolderResponse(path=folder_path, name=folder_path.rsplit("/", 1)[-1])


@router.post("/files", response_model=BatchReportRead, status_code=status.HTTP_201_CREATED)
async def upload_files_endpoint(
    files: list[UploadFile] = File(...),
    path: str = Form(default="/"),
    relative_paths: list[str] | None = Form(default=None),
    store: ObjectStore = Depends(get_store),
):
    """Upload files into ``path``.

    When ``relative_paths`` is given (one per file, e.g. ``photos/2024/a.png``)
    the files are uploaded as folder trees, creating every folder marker first.
    """

    settings = get_settings()
    folder_path = _normalize_folder_path(path)

    if relative_paths and len(relative_paths) != len(files):
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            detail="relative_paths must contain one entry per uploaded file",
        )

    items: list[tuple[str, UploadItem]] = []
    rejected: list[UnitOutcome] = []
    for index, upload in enumerate(files):
        if not upload.filename:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="File must have a filename")
        if not relative_paths and (upload.filename == MARKER_NAME or "/" in upload.filename):
            raise HTTPException(
                status.HTTP_400_BAD_REQUEST,
                detail=f"File name '{upload.filename}' is reserved or contains '/'",
            )

        target_name = relative_paths[index] if relative_paths else upload.filename
        # Parts whose declared size exceeds the ceiling are never read.
        if upload.size is not None and upload.filename != MARKER_NAME and upload.size > settings.max_upload_bytes:
            too_large = FileTooLarge(upload.filename, upload.size, settings.max_upload_bytes)
            key = join_key(folder_path, target_name.replace("\\", "/").strip("/"))
            logger.warning("Rejected '%s' before reading: %s", key, too_large)
            rejected.append(UnitOutcome.failure("file", key, too_large))
            continue

        contents = await upload.read()
        items.append(
            (
                target_name,
                UploadItem(
                    name=upload.filename,
                    data=contents,
                    content_type=upload.content_type or "application/octet-stream",
                ),
            )
        )

    if relative_paths:
        try:
            report = await upload_relative_paths(store, items, folder_path, settings)
        except InvalidPath as exc:
            raise _http_error(exc) from exc
    else:
        report = await upload_files(store, [item for _, item in items], folder_path, settings)
    report.failed.extend(rejected)

    # A lone file reports its own failure with a specific status.
    if not relative_paths and len(files) == 1 and report.failed:
        failure = report.failed[0]
        record_storage_operation("upload", "failed")
        status_code = _SINGLE_UPLOAD_STATUS.get(failure.error_type or "", status.HTTP_400_BAD_REQUEST)
        raise HTTPException(status_code, detail=failure.reason)

    record_storage_operation("upload", "succeeded", report.succeeded_count)
    if report.failed:
        record_storage_operation("upload", "failed", report.failed_count)
    return _batch_response(report)


@router.get("/files/url", response_model=FileUrlResponse)
def read_file_url(
    key: str = Query(..., description="Object key of the file"),
    store: ObjectStore = Depends(get_store),
):
    """Issue a presigned URL and the public URL for one file."""

    settings = get_settings()
    if not is_file_key(key):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="key must reference a file")
    try:
        url = store.presigned_get(key, settings.presigned_url_ttl)
    except StoreError as exc:
        raise _http_error(exc) from exc
    return FileUrlResponse(
        key=key,
        url=url,
        public_url=public_url(settings.public_host, key),
        expires_in=settings.presigned_url_ttl_seconds,
    )


@router.delete("/files", status_code=status.HTTP_204_NO_CONTENT)
def delete_file_endpoint(
    key: str = Query(..., description="Object key of the file to delete"),
    store: ObjectStore = Depends(get_store),
):
    """Delete one file."""

    try:
        delete_file(store, key)
    except StorageError as exc:
        record_storage_operation("delete", "failed")
        raise _http_error(exc) from exc

    record_storage_operation("delete", "succeeded")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/folders", response_model=FolderDeleteResponse)
async def delete_folder_endpoint(
    path: str = Query(..., description="Logical path of the folder to delete"),
    store: ObjectStore = Depends(get_store),
):
    """Delete a folder and every object below it. The root cannot be deleted."""

    settings = get_settings()
    folder_path = _normalize_folder_path(path)

    try:
        report = await delete_folder(store, folder_path, settings)
    except StorageError as exc:
        record_storage_operation("delete", "failed")
        raise _http_error(exc) from exc

    try:
        snapshot = await asyncio.to_thread(take_snapshot, store)
        redirect_path = snapshot.nearest_existing(folder_path)
    except StoreError as exc:
        logger.warning("Unable to refresh listing after deleting '%s': %s", folder_path, exc)
        redirect_path = parent_path(folder_path)

    record_storage_operation("delete", "succeeded", report.objects_removed)
    if report.failed:
        record_storage_operation("delete", "failed", report.failed_count)

    body = FolderDeleteResponse(
        path=folder_path,
        prefix=report.prefix,
        objects_removed=report.objects_removed,
        failed=report.failed_count,
        failures=[_outcome_read(outcome) for outcome in report.failed],
        redirect_path=redirect_path,
    )
    try:
        report.raise_for_failures()
    except PartialBatchFailure as exc:
        logger.warning("Folder deletion of '%s' incomplete: %s", folder_path, exc)
        return JSONResponse(status_code=status.HTTP_207_MULTI_STATUS, content=body.model_dump(mode="json"))
    return body
