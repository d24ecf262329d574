"""Pydantic schemas for product endpoints."""
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ProductCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    name_en: str = Field(min_length=1)
    name_vi: str | None = None
    name_tr: str | None = None
    description: str | None = None
    price: Decimal = Field(default=Decimal("0"), ge=0)
    unit: str = "piece"
    stock: int = Field(default=0, ge=0)
    image_url: str | None = None
    is_active: bool = True


class ProductUpdate(BaseModel):
    sku: str | None = Field(default=None, min_length=1, max_length=64)
    name_en: str | None = None
    name_vi: str | None = None
    name_tr: str | None = None
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    unit: str | None = None
    stock: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    sku: str
    name_en: str
    name_vi: str | None
    name_tr: str | None
    description: str | None
    price: Decimal
    unit: str
    stock: int
    image_url: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    items: list[ProductOut]
    total: int
    page: int
    page_size: int
    total_pages: int
