"""Product catalogue endpoints."""
import logging
import uuid
from pathlib import Path
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from minio.error import S3Error
from sqlalchemy.ext.asyncio import AsyncSession

from greengrocer.core.deps import AdminUser
from greengrocer.db.session import get_session
from greengrocer.models.product import Product
from greengrocer.schemas.product import ProductCreate, ProductListResponse, ProductOut, ProductUpdate
from greengrocer.services import products as products_svc
from greengrocer.services import storage

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_IMAGE_BYTES = 5 * 1024 * 1024


async def _get_or_404(db: AsyncSession, product_id: uuid.UUID) -> Product:
    product = await products_svc.get_product(db, product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


# ─── GET /products ───

@router.get("", response_model=ProductListResponse, summary="List products with pagination (admin)")
async def list_products(
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    sort_field: str = Query(default="name_en"),
    sort_direction: Literal["asc", "desc"] = Query(default="asc"),
    q: str | None = Query(default=None, description="Match on any localized name or SKU"),
    is_active: bool | None = Query(default=None),
):
    try:
        products, total, total_pages = await products_svc.list_products(
            db,
            page=page,
            page_size=page_size,
            sort_field=sort_field,
            sort_direction=sort_direction,
            q=q,
            is_active=is_active,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    return ProductListResponse(
        items=[ProductOut.model_validate(p) for p in products],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


# ─── GET /products/{id} ───

@router.get("/{product_id}", response_model=ProductOut, summary="Get a product (admin)")
async def get_product(
    product_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
):
    return ProductOut.model_validate(await _get_or_404(db, product_id))


# ─── POST /products ───

@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED, summary="Create a product (admin)")
async def create_product(
    body: ProductCreate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
):
    try:
        product = await products_svc.create_product(db, **body.model_dump(), actor=current_user)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return ProductOut.model_validate(product)


# ─── PATCH /products/{id} ───

@router.patch("/{product_id}", response_model=ProductOut, summary="Update a product (admin)")
async def update_product(
    product_id: uuid.UUID,
    body: ProductUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
):
    product = await _get_or_404(db, product_id)
    try:
        product = await products_svc.update_product(
            db, product, body.model_dump(exclude_unset=True), actor=current_user
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return ProductOut.model_validate(product)


# ─── POST /products/{id}/toggle-status ───

@router.post("/{product_id}/toggle-status", response_model=ProductOut, summary="Flip is_active (admin)")
async def toggle_product_status(
    product_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
):
    product = await _get_or_404(db, product_id)
    product = await products_svc.toggle_product_status(db, product, actor=current_user)
    return ProductOut.model_validate(product)


# ─── POST /products/{id}/image ───

@router.post("/{product_id}/image", response_model=ProductOut, summary="Upload a product image (admin)")
async def upload_product_image(
    product_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
    file: UploadFile = File(...),
):
    product = await _get_or_404(db, product_id)
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail="File must be an image")
    content = await file.read()
    if len(content) > MAX_IMAGE_BYTES:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="Image exceeds 5 MB")

    old_object = storage.object_name_from_url(product.image_url)
    filename = f"{uuid.uuid4().hex}{Path(file.filename or '').suffix.lower()}"
    try:
        image_url = await run_in_threadpool(
            storage.upload_image, f"products/{product.id}", filename, content, file.content_type
        )
    except S3Error as exc:
        logger.error("Image upload failed for product %s: %s", product.id, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Image storage unavailable")

    product = await products_svc.update_product(db, product, {"image_url": image_url}, actor=current_user)

    if old_object:
        try:
            await run_in_threadpool(storage.delete_object, old_object)
        except S3Error as exc:
            logger.warning("Could not remove replaced image %s: %s", old_object, exc)
    return ProductOut.model_validate(product)


# ─── DELETE /products/{id} ───

@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a product (admin)")
async def delete_product(
    product_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
):
    product = await _get_or_404(db, product_id)
    await products_svc.delete_product(db, product, actor=current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
