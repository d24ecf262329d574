"""CSV bulk import endpoints for users and products."""
import logging
from collections.abc import Awaitable, Callable
from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from greengrocer.core.config import settings
from greengrocer.core.deps import AdminUser
from greengrocer.core.limiter import limiter
from greengrocer.db.session import AsyncSessionLocal, get_session
from greengrocer.imports import (
    CSVParseError,
    ImportKind,
    ImportTooLargeError,
    get_template,
    preview_import,
    run_import,
)
from greengrocer.imports.batch import RecordCreator
from greengrocer.schemas.imports import ImportPreview, ImportResult
from greengrocer.services import audit as audit_svc
from greengrocer.services import notifications
from greengrocer.services import products as products_svc
from greengrocer.services import users as users_svc

logger = logging.getLogger(__name__)

router = APIRouter()

CREATORS: dict[ImportKind, Callable[[AsyncSession, Any], Awaitable[Any]]] = {
    ImportKind.users: users_svc.create_user_from_import,
    ImportKind.products: products_svc.create_product_from_import,
}

FIELDNAMES_HELP = "Comma-separated column names, required when has_header is false"

# ─── Helpers ───

def _split_fieldnames(fieldnames: str | None) -> list[str] | None:
    if not fieldnames:
        return None
    return [name.strip() for name in fieldnames.split(",")]


def _record_creator(db: AsyncSession, kind: ImportKind) -> RecordCreator:
    """Bind the single-record create operation to a session.

    Serialized imports reuse the request session; concurrent ones get a
    session per record since an AsyncSession cannot be shared across tasks.
    """
    create = CREATORS[kind]

    if settings.IMPORT_MAX_IN_FLIGHT_CREATES <= 1:
        async def create_in_request_session(record):
            return await create(db, record)
        return create_in_request_session

    async def create_in_own_session(record):
        async with AsyncSessionLocal() as session:
            return await create(session, record)
    return create_in_own_session


async def _import(
    kind: ImportKind,
    file: UploadFile,
    has_header: bool,
    fieldnames: str | None,
    db: AsyncSession,
    current_user,
) -> ImportResult:
    # A failed record rolls the session back and expires current_user
    actor = audit_svc.actor_fields(current_user)
    content = await file.read()
    try:
        result = await run_import(
            content,
            kind,
            _record_creator(db, kind),
            has_header=has_header,
            fieldnames=_split_fieldnames(fieldnames),
        )
    except ImportTooLargeError as exc:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc))
    except CSVParseError as exc:
        logger.info("Rejected %s import %r: %s", kind.value, file.filename, exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"CSV parsing error: {exc}")

    await audit_svc.log(
        db,
        action=f"{kind.value}.imported",
        entity_type="import",
        **actor,
        after={"total": result.total, "success": result.success, "failed": result.failed},
        notes=f"File {file.filename!r}",
    )
    await db.commit()

    notifications.notify_import_completed(kind.value, result, actor_email=actor["actor_email"])
    return result


# ─── POST /import/users ───

@router.post("/users", response_model=ImportResult, summary="Bulk import users from CSV (admin)")
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def import_users(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
    file: UploadFile = File(...),
    has_header: bool = Query(default=True),
    fieldnames: str | None = Query(default=None, description=FIELDNAMES_HELP),
):
    return await _import(ImportKind.users, file, has_header, fieldnames, db, current_user)


# ─── POST /import/products ───

@router.post("/products", response_model=ImportResult, summary="Bulk import products from CSV (admin)")
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def import_products(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
    file: UploadFile = File(...),
    has_header: bool = Query(default=True),
    fieldnames: str | None = Query(default=None, description=FIELDNAMES_HELP),
):
    return await _import(ImportKind.products, file, has_header, fieldnames, db, current_user)


# ─── POST /import/{kind}/preview ───

@router.post("/{kind}/preview", response_model=ImportPreview, summary="Validate a CSV without importing (admin)")
async def preview(
    kind: ImportKind,
    current_user: AdminUser,
    file: UploadFile = File(...),
    has_header: bool = Query(default=True),
    fieldnames: str | None = Query(default=None, description=FIELDNAMES_HELP),
):
    content = await file.read()
    try:
        return preview_import(content, kind, has_header=has_header, fieldnames=_split_fieldnames(fieldnames))
    except CSVParseError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"CSV parsing error: {exc}")


# ─── GET /import/templates/{kind} ───

@router.get("/templates/{kind}", summary="Download a sample CSV (admin)")
async def download_template(kind: ImportKind, current_user: AdminUser):
    filename, body = get_template(kind)
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
