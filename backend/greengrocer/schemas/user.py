"""Pydantic schemas for admin user management."""
import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr

Role = Literal["admin", "customer", "driver"]
Status = Literal["active", "inactive"]


class UserCreate(BaseModel):
    """Single-record create: provisions a login account plus the profile."""
    email: EmailStr
    password: str
    name: str
    role: Role = "customer"
    status: Status = "active"
    phone_number: str | None = None
    address: str | None = None
    city: str | None = None
    zip_code: str | None = None
    notes: str | None = None
    assigned_route: str | None = None


class UserUpdate(BaseModel):
    name: str | None = None
    phone_number: str | None = None
    role: Role | None = None
    status: Status | None = None
    address: str | None = None
    city: str | None = None
    zip_code: str | None = None
    notes: str | None = None
    assigned_route: str | None = None


class PasswordUpdate(BaseModel):
    password: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    name: str
    phone_number: str | None
    role: str
    status: str
    address: str | None
    city: str | None
    zip_code: str | None
    notes: str | None
    assigned_route: str | None
    created_at: datetime


class UserListResponse(BaseModel):
    """Paginated list of users."""
    items: list[UserOut]
    total: int
    page: int
    page_size: int
    total_pages: int
