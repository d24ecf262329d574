"""Product catalogue writes and queries."""
import logging
import math
import uuid
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from greengrocer.imports.rows import ProductImportRecord
from greengrocer.models.product import Product
from greengrocer.models.user import User
from greengrocer.services import audit as audit_svc

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "name_en": Product.name_en,
    "sku": Product.sku,
    "price": Product.price,
    "stock": Product.stock,
    "unit": Product.unit,
    "created_at": Product.created_at,
}


def _snapshot(product: Product) -> dict:
    return {
        "sku": product.sku,
        "name_en": product.name_en,
        "price": product.price,
        "stock": product.stock,
        "is_active": product.is_active,
    }


async def _sku_taken(db: AsyncSession, sku: str, exclude_id: uuid.UUID | None = None) -> bool:
    stmt = select(Product.id).where(Product.sku == sku)
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    return (await db.execute(stmt)).scalar_one_or_none() is not None


# ─── Create ───

async def create_product(
    db: AsyncSession,
    *,
    sku: str,
    name_en: str,
    name_vi: str | None = None,
    name_tr: str | None = None,
    description: str | None = None,
    price: Decimal = Decimal("0"),
    unit: str = "piece",
    stock: int = 0,
    image_url: str | None = None,
    is_active: bool = True,
    actor: User | None = None,
) -> Product:
    """Insert one product. Raises ValueError when the SKU is already in use."""
    sku = sku.strip()
    if await _sku_taken(db, sku):
        raise ValueError(f"A product with SKU '{sku}' already exists")

    product = Product(
        id=uuid.uuid4(),
        sku=sku,
        name_en=name_en.strip(),
        name_vi=name_vi,
        name_tr=name_tr,
        description=description,
        price=price,
        unit=unit or "piece",
        stock=stock,
        image_url=image_url,
        is_active=is_active,
    )
    db.add(product)
    try:
        await db.flush()
        await audit_svc.log(
            db,
            action="product.created",
            entity_type="product",
            entity_id=product.id,
            **audit_svc.actor_fields(actor),
            after=_snapshot(product),
        )
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ValueError(f"A product with SKU '{sku}' already exists") from exc
    except SQLAlchemyError:
        logger.error("Product insert failed for SKU %s", sku)
        await db.rollback()
        raise

    await db.refresh(product)
    logger.info("Created product %s (%s)", product.id, product.sku)
    return product


async def create_product_from_import(db: AsyncSession, record: ProductImportRecord) -> Product:
    """Single-record creator used by the CSV import batch."""
    return await create_product(
        db,
        sku=record.sku,
        name_en=record.name_en,
        name_vi=record.name_vi,
        name_tr=record.name_tr,
        description=record.description,
        price=record.price,
        unit=record.unit,
        stock=record.stock,
        is_active=record.is_active,
    )


# ─── Read ───

async def get_product(db: AsyncSession, product_id: uuid.UUID) -> Product | None:
    result = await db.execute(select(Product).where(Product.id == product_id))
    return result.scalar_one_or_none()


async def list_products(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    sort_field: str = "name_en",
    sort_direction: str = "asc",
    q: str | None = None,
    is_active: bool | None = None,
) -> tuple[list[Product], int, int]:
    """Return (products, total, total_pages) for one page."""
    if sort_field not in SORTABLE_FIELDS:
        raise ValueError(f"Cannot sort by '{sort_field}'")

    stmt = select(Product)
    if q:
        pattern = f"%{q}%"
        stmt = stmt.where(
            or_(
                Product.name_en.ilike(pattern),
                Product.name_vi.ilike(pattern),
                Product.name_tr.ilike(pattern),
                Product.sku.ilike(pattern),
            )
        )
    if is_active is not None:
        stmt = stmt.where(Product.is_active == is_active)

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

    column = SORTABLE_FIELDS[sort_field]
    stmt = stmt.order_by(column.desc() if sort_direction == "desc" else column.asc())
    stmt = stmt.offset((page - 1) * page_size).limit(page_size)
    products = list((await db.execute(stmt)).scalars().all())

    return products, total, math.ceil(total / page_size) if total else 0


# ─── Update / delete ───

async def update_product(
    db: AsyncSession,
    product: Product,
    changes: dict,
    actor: User | None = None,
) -> Product:
    new_sku = changes.get("sku")
    if new_sku and new_sku != product.sku and await _sku_taken(db, new_sku, exclude_id=product.id):
        raise ValueError(f"A product with SKU '{new_sku}' already exists")

    before = _snapshot(product)
    for field, value in changes.items():
        setattr(product, field, value)
    await audit_svc.log(
        db,
        action="product.updated",
        entity_type="product",
        entity_id=product.id,
        **audit_svc.actor_fields(actor),
        before=before,
        after=_snapshot(product),
    )
    await db.commit()
    await db.refresh(product)
    return product


async def toggle_product_status(db: AsyncSession, product: Product, actor: User | None = None) -> Product:
    return await update_product(db, product, {"is_active": not product.is_active}, actor=actor)


async def delete_product(db: AsyncSession, product: Product, actor: User | None = None) -> None:
    before = _snapshot(product)
    await db.delete(product)
    await audit_svc.log(
        db,
        action="product.deleted",
        entity_type="product",
        entity_id=product.id,
        **audit_svc.actor_fields(actor),
        before=before,
    )
    await db.commit()
    logger.info("Deleted product %s", product.id)
