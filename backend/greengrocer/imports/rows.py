"""Row shapes flowing through the CSV import pipeline.

    RawRow ──validate──▶ Valid(ValidatedRow) | Invalid
    ValidatedRow ──convert──▶ UserImportRecord | ProductImportRecord | Invalid

Every shape carries ``row``, the 1-based position of the data line in the
parsed file (header and blank lines excluded), so errors raised at any stage
point back at the same line the user sees in their spreadsheet.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Union


@dataclass(frozen=True)
class RawRow:
    row: int
    data: dict[str, str]

    def get(self, column: str) -> str:
        """Stripped cell value, '' when the column is absent."""
        value = self.data.get(column)
        if value is None:
            return ""
        return str(value).strip()

    def has(self, column: str) -> bool:
        return self.get(column) != ""


@dataclass(frozen=True)
class ValidatedRow(RawRow):
    """A RawRow that passed its entity's field rules."""


@dataclass(frozen=True)
class Valid:
    row: ValidatedRow


@dataclass(frozen=True)
class Invalid:
    row: int
    message: str
    data: dict[str, Any] = field(default_factory=dict)


ValidationOutcome = Union[Valid, Invalid]


@dataclass
class UserImportRecord:
    row: int
    data: dict[str, Any]
    name: str
    email: str
    email_is_synthetic: bool
    password: str = field(repr=False)
    role: str = "customer"
    status: str = "active"
    phone_number: str | None = None
    address: str | None = None
    city: str | None = None
    zip_code: str | None = None
    notes: str | None = None


@dataclass
class ProductImportRecord:
    row: int
    data: dict[str, Any]
    sku: str
    name_en: str
    name_vi: str | None = None
    name_tr: str | None = None
    description: str | None = None
    price: Decimal = Decimal("0")
    unit: str = "piece"
    stock: int = 0
    is_active: bool = True


ImportRecord = Union[UserImportRecord, ProductImportRecord]
