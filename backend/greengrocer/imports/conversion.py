"""Validated rows → create-ready records, with import defaults applied."""
import logging
import uuid
from decimal import Decimal
from collections.abc import Callable
from typing import Any

from greengrocer.core.config import settings
from greengrocer.core.security import generate_password
from greengrocer.imports.rows import (
    ImportRecord,
    Invalid,
    ProductImportRecord,
    UserImportRecord,
    ValidatedRow,
)
from greengrocer.imports.validation import parse_price, parse_stock

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "customer"
DEFAULT_UNIT = "piece"


def synthesize_email(domain: str | None = None) -> str:
    """Unique placeholder login for users imported without an address."""
    return f"user_{uuid.uuid4().hex}@{domain or settings.IMPORT_DUMMY_EMAIL_DOMAIN}"


def parse_flag(value: Any, default: bool = True) -> bool:
    """'true' (any case) or a truthy bool → True; blank/absent → default; else False."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip()
    if not text:
        return default
    return text.lower() == "true"


def _optional(row: ValidatedRow, column: str) -> str | None:
    return row.get(column) or None


def to_user_record(row: ValidatedRow) -> UserImportRecord:
    email = row.get("email").lower()
    synthetic = not email
    if synthetic:
        email = synthesize_email()

    return UserImportRecord(
        row=row.row,
        data=row.data,
        name=row.get("name"),
        email=email,
        email_is_synthetic=synthetic,
        password=generate_password(),
        role=(row.get("role") or DEFAULT_ROLE).lower(),
        status="active" if parse_flag(row.data.get("is_active")) else "inactive",
        phone_number=_optional(row, "phone_number"),
        address=_optional(row, "address"),
        city=_optional(row, "city"),
        zip_code=_optional(row, "zip_code"),
        notes=_optional(row, "notes"),
    )


def to_product_record(row: ValidatedRow) -> ProductImportRecord:
    price = parse_price(row.get("price")) if row.has("price") else None
    stock = parse_stock(row.get("stock")) if row.has("stock") else None
    # Validation admits only parseable values, so None here means the column was blank
    return ProductImportRecord(
        row=row.row,
        data=row.data,
        sku=row.get("sku"),
        name_en=row.get("name"),
        name_vi=_optional(row, "name_vi"),
        name_tr=_optional(row, "name_tr"),
        description=_optional(row, "description"),
        price=price if price is not None else Decimal("0"),
        unit=row.get("unit") or DEFAULT_UNIT,
        stock=stock if stock is not None else 0,
        is_active=parse_flag(row.data.get("is_active")),
    )


def convert_row(
    row: ValidatedRow,
    converter: Callable[[ValidatedRow], ImportRecord],
) -> ImportRecord | Invalid:
    """Run a converter; an unexpected failure becomes an Invalid for the same row."""
    try:
        return converter(row)
    except Exception as exc:
        logger.warning("Row %d conversion failed: %s", row.row, exc, exc_info=True)
        return Invalid(row.row, str(exc) or "Data conversion error", row.data)
