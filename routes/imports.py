"""
Bulk inventory import API routes.

Flow: parse an upload (cached under a preview_id), validate it against a
mapping as many times as needed, then import. The cached upload is
discarded after a successful import or an explicit DELETE.
"""

from fastapi import APIRouter, Depends, File, Header, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from typing import Optional
import structlog

from config import settings
from models.bulk_import import (
    ImportRequest,
    ImportResult,
    ParsedUploadResponse,
    ValidateRequest,
    ValidationReportResponse,
)
from parsers.import_file_parser import detect_file_kind, parse_import_file
from services import preview_cache_service
from services.audit_log_service import extract_request_metadata
from services.bulk_import_service import get_bulk_import_service
from services.column_mapping import (
    auto_detect_mapping,
    ensure_complete,
    is_complete,
    shared_headers,
)
from services.row_validator import validate_rows
from exceptions import (
    AppError,
    AuthenticationRequiredError,
    PermissionDeniedError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/inventory/import", tags=["Import"])

WRITE_PERMISSION = "inventory:write"


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# AUTH
# ===================

def require_inventory_writer(
    x_user_id: Optional[str] = Header(None),
    x_user_permissions: Optional[str] = Header(None),
) -> str:
    """
    Principal set by the upstream auth layer.

    Raises:
        AuthenticationRequiredError: No X-User-Id
        PermissionDeniedError: inventory:write not in X-User-Permissions
    """
    if not x_user_id:
        raise AuthenticationRequiredError()
    permissions = {p.strip() for p in (x_user_permissions or "").split(",") if p.strip()}
    if WRITE_PERMISSION not in permissions:
        logger.warning("import_permission_denied", user_id=x_user_id)
        raise PermissionDeniedError(WRITE_PERMISSION)
    return x_user_id


# ===================
# ROUTES
# ===================

@router.post("/parse", response_model=ParsedUploadResponse)
async def parse_upload(
    file: UploadFile = File(..., description="CSV or Excel (.xlsx) file"),
    actor_id: str = Depends(require_inventory_writer),
):
    """
    Parse an upload and suggest a column mapping.

    Nothing is saved until the import call.
    """
    try:
        kind = detect_file_kind(file.filename)
        content = await file.read()
        table = parse_import_file(content, kind)

        suggested = auto_detect_mapping(table.headers)
        preview_id = preview_cache_service.store_preview(table, file_name=file.filename)

        logger.info(
            "import_upload_parsed",
            preview_id=preview_id,
            file_name=file.filename,
            rows=table.total_rows,
            actor_id=actor_id,
        )

        return ParsedUploadResponse(
            preview_id=preview_id,
            file_name=file.filename,
            file_kind=table.file_kind,
            headers=list(table.headers),
            preview=[dict(r) for r in table.preview],
            total_rows=table.total_rows,
            suggested_mapping=suggested,
            mapping_complete=is_complete(suggested),
            expires_in_minutes=settings.import_preview_ttl_minutes,
        )

    except Exception as e:
        return handle_error(e)


@router.post("/validate", response_model=ValidationReportResponse)
async def validate_upload(
    data: ValidateRequest,
    actor_id: str = Depends(require_inventory_writer),
):
    """
    Validate a cached upload against a mapping.

    Raises:
        404: Preview expired
        422: Mapping incomplete
    """
    try:
        upload = preview_cache_service.require_preview(data.preview_id)
        ensure_complete(data.mapping)

        report = validate_rows(upload.table.rows, data.mapping, data.options)
        return report.to_response(
            max_errors=settings.import_max_result_errors,
            shared_headers=shared_headers(data.mapping),
        )

    except Exception as e:
        return handle_error(e)


@router.post("", response_model=ImportResult)
async def import_inventory(
    data: ImportRequest,
    request: Request,
    actor_id: str = Depends(require_inventory_writer),
):
    """
    Import rows from a cached upload (preview_id) or given inline.

    Partial success returns 200 with the failures listed in errors.
    """
    try:
        if data.preview_id:
            rows = list(preview_cache_service.require_preview(data.preview_id).table.rows)
        elif data.rows:
            rows = data.rows
        else:
            raise ValidationError(
                message="Either previewId or rows is required",
                code="IMPORT_NO_ROWS",
            )

        result = get_bulk_import_service().import_items(
            rows,
            data.mapping,
            data.options,
            actor_id=actor_id,
            request_metadata=extract_request_metadata(request.headers),
        )

        if data.preview_id:
            preview_cache_service.delete_preview(data.preview_id)

        return result

    except Exception as e:
        return handle_error(e)


@router.delete("/{preview_id}", status_code=204)
async def discard_upload(
    preview_id: str,
    actor_id: str = Depends(require_inventory_writer),
):
    """Discard a cached upload. Idempotent."""
    existed = preview_cache_service.delete_preview(preview_id)
    logger.info("import_preview_discarded", preview_id=preview_id, existed=existed)
    return Response(status_code=204)
