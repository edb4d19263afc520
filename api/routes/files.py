"""
File management endpoints.

POST   /api/v1/files                → upload one .csv/.tsv/.txt call log
GET    /api/v1/files                → list registered files
DELETE /api/v1/files/{id}           → soft-delete (optionally unlink bytes)
POST   /api/v1/files/{id}/restore   → re-activate a soft-deleted file

Every mutation invalidates the merge cache (merged dataset and all working
views).  An upload is validated and parsed completely before anything is
written, so a rejected upload leaves no state behind.
"""

import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from api.dependencies import get_cache, get_config, get_current_user, get_registry
from api.models import DataFileOut, FileOut, UploadOut
from pipeline.errors import UploadTooLargeError, ValidationError
from pipeline.ingest import compute_date_range
from pipeline.parsing import parse_bytes
from pipeline.registry import FileRegistry
from pipeline.schema import diff_columns
from utils.cache import MergeCache
from utils.common import format_bytes, sanitize_filename, stored_filename
from utils.config import AppConfig
from utils.patterns import UPLOAD_EXTENSIONS

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/files",
    tags=["files"],
    dependencies=[Depends(get_current_user)],
)

_CHUNK = 1024 * 1024


def _read_capped(upload: UploadFile, max_bytes: int) -> bytes:
    """Read the upload body, failing as soon as it exceeds ``max_bytes``."""
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = upload.file.read(_CHUNK)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise UploadTooLargeError(
                f"File exceeds the {format_bytes(max_bytes)} upload limit"
            )
        chunks.append(chunk)
    return b"".join(chunks)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=UploadOut,
    responses={
        400: {"description": "Unsupported type or unparseable file"},
        413: {"description": "File too large"},
    },
    summary="Upload a call-log file",
)
def upload_file(
    file: UploadFile = File(..., description="CSV, TSV or TXT call log"),
    user: str = Depends(get_current_user),
    registry: FileRegistry = Depends(get_registry),
    cache: MergeCache = Depends(get_cache),
    config: AppConfig = Depends(get_config),
) -> dict:
    """Register a new file and report its schema drift against the current dataset."""
    original_name = sanitize_filename(file.filename or "")
    if not UPLOAD_EXTENSIONS.search(original_name):
        raise ValidationError("Only .csv, .tsv and .txt files are accepted")

    raw = _read_capped(file, config.max_upload_bytes)
    rows, columns = parse_bytes(raw, source=original_name)
    schema_diff = diff_columns(registry.column_union(), columns)
    start, end = compute_date_range(rows, columns)

    config.data_dir.mkdir(parents=True, exist_ok=True)
    stored_path = config.data_dir / stored_filename(original_name)
    stored_path.write_bytes(raw)
    try:
        data_file = registry.create(
            stored_path=stored_path,
            original_name=original_name,
            size_bytes=len(raw),
            row_count=len(rows),
            columns=columns,
            date_range_start=start,
            date_range_end=end,
            uploaded_by=user,
        )
    except Exception:
        stored_path.unlink(missing_ok=True)
        raise
    cache.invalidate()

    if schema_diff.has_changes:
        logger.info("Upload %s schema drift: new=%s missing=%s", original_name,
                    schema_diff.new_columns, schema_diff.missing_columns)
    return {"file": data_file.to_dict(), "schemaDiff": schema_diff.to_dict()}


@router.get(
    "",
    response_model=list[DataFileOut],
    summary="List uploaded files",
)
def list_files(
    include_inactive: bool = Query(False, description="Include soft-deleted files"),
    registry: FileRegistry = Depends(get_registry),
) -> list[dict]:
    """Files in upload order, oldest first."""
    return [f.to_dict() for f in registry.list_files(include_inactive=include_inactive)]


@router.delete(
    "/{file_id}",
    response_model=FileOut,
    responses={404: {"description": "Unknown file id"}},
    summary="Soft-delete a file",
)
def delete_file(
    file_id: int,
    delete_file: bool = Query(False, description="Also remove the stored bytes"),
    registry: FileRegistry = Depends(get_registry),
    cache: MergeCache = Depends(get_cache),
) -> dict:
    data_file = registry.deactivate(file_id, delete_file=delete_file)
    cache.invalidate()
    return {"file": data_file.to_dict()}


@router.post(
    "/{file_id}/restore",
    response_model=FileOut,
    responses={404: {"description": "Unknown file id"}},
    summary="Restore a soft-deleted file",
)
def restore_file(
    file_id: int,
    registry: FileRegistry = Depends(get_registry),
    cache: MergeCache = Depends(get_cache),
) -> dict:
    data_file = registry.restore(file_id)
    cache.invalidate()
    return {"file": data_file.to_dict()}
