"""Per-entity field rules for imported rows.

Rules never raise: every row gets a ValidationOutcome so one pass over the
file yields the complete error report. The first failing rule wins. Length
and range limits mirror the column types in greengrocer.models, so a row that
validates can always be stored.
"""
import re
from decimal import Decimal, InvalidOperation

from greengrocer.imports.rows import Invalid, RawRow, Valid, ValidatedRow, ValidationOutcome
from greengrocer.models.product import Product
from greengrocer.models.user import ROLES, AuthAccount, User

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# 1,250.50 but not 1,5 or 12,50
GROUPED_NUMBER_RE = re.compile(r"^\d{1,3}(,\d{3})+(\.\d*)?$")

CENT = Decimal("0.01")
MAX_PRICE = Decimal("9999999999.99")  # Numeric(12, 2)
MAX_STOCK = 2**31 - 1  # Integer


def _length(column) -> int:
    return column.type.length


USER_FIELD_LIMITS = {
    "name": ("Name", _length(User.__table__.c.name)),
    "email": ("Email", _length(AuthAccount.__table__.c.email)),
    "phone_number": ("Phone number", _length(User.__table__.c.phone_number)),
    "city": ("City", _length(User.__table__.c.city)),
    "zip_code": ("Zip code", _length(User.__table__.c.zip_code)),
}

PRODUCT_FIELD_LIMITS = {
    "sku": ("SKU", _length(Product.__table__.c.sku)),
    "name": ("Product name", _length(Product.__table__.c.name_en)),
    "name_vi": ("Vietnamese name", _length(Product.__table__.c.name_vi)),
    "name_tr": ("Turkish name", _length(Product.__table__.c.name_tr)),
    "unit": ("Unit", _length(Product.__table__.c.unit)),
}


# ─── Value parsers (shared with conversion) ───

def parse_price(value: str) -> Decimal | None:
    """Non-negative amount with at most two decimals that fits Numeric(12, 2), or None."""
    try:
        text = value.strip()
    except AttributeError:
        return None
    if "," in text:
        if not GROUPED_NUMBER_RE.match(text):
            return None
        text = text.replace(",", "")
    try:
        price = Decimal(text)
    except InvalidOperation:
        return None
    if not price.is_finite() or price < 0 or price > MAX_PRICE:
        return None
    if price != price.quantize(CENT):
        return None
    return price


def parse_stock(value: str) -> int | None:
    """Integer in [0, 2**31 - 1], or None."""
    try:
        stock = int(value.strip())
    except (ValueError, AttributeError):
        return None
    return stock if 0 <= stock <= MAX_STOCK else None


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


def _length_error(row: RawRow, limits: dict[str, tuple[str, int]]) -> str | None:
    for column, (label, limit) in limits.items():
        if len(row.get(column)) > limit:
            return f"{label} must be at most {limit} characters"
    return None


# ─── Users ───

def validate_user_row(row: RawRow) -> ValidationOutcome:
    if not row.has("name"):
        return Invalid(row.row, "Name is required", row.data)

    email = row.get("email")
    if email and not is_valid_email(email):
        return Invalid(row.row, "Invalid email format", row.data)

    role = row.get("role")
    if role and role.lower() not in ROLES:
        return Invalid(
            row.row,
            f"Invalid role '{role}'. Must be one of: {', '.join(ROLES)}",
            row.data,
        )

    too_long = _length_error(row, USER_FIELD_LIMITS)
    if too_long:
        return Invalid(row.row, too_long, row.data)

    return Valid(ValidatedRow(row=row.row, data=row.data))


# ─── Products ───

def validate_product_row(row: RawRow) -> ValidationOutcome:
    if not row.has("sku"):
        return Invalid(row.row, "SKU is required", row.data)
    if not row.has("name"):
        return Invalid(row.row, "Product name is required", row.data)
    if row.has("price") and parse_price(row.get("price")) is None:
        return Invalid(row.row, "Invalid price value", row.data)
    if row.has("stock") and parse_stock(row.get("stock")) is None:
        return Invalid(row.row, "Invalid stock value", row.data)

    too_long = _length_error(row, PRODUCT_FIELD_LIMITS)
    if too_long:
        return Invalid(row.row, too_long, row.data)

    return Valid(ValidatedRow(row=row.row, data=row.data))
