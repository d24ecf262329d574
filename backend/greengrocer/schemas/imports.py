"""Pydantic schemas for CSV bulk import results."""
from typing import Any

from pydantic import BaseModel, Field, computed_field


class ImportRowError(BaseModel):
    row: int = Field(description="1-based position of the row in the uploaded file, header excluded")
    message: str
    data: dict[str, Any] = {}


class ImportResult(BaseModel):
    total: int
    success: int
    errors: list[ImportRowError] = []

    @computed_field
    @property
    def failed(self) -> int:
        return len({e.row for e in self.errors})


class PreviewRow(BaseModel):
    row: int
    data: dict[str, str]
    error: str | None = None
    email_type: str | None = None  # "real" | "dummy", user imports only


class ImportPreview(BaseModel):
    columns: list[str]
    total: int
    rows: list[PreviewRow]
