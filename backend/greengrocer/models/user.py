import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from greengrocer.db.base import Base, TimestampMixin, UUIDMixin

ROLES = ("admin", "customer", "driver")
STATUSES = ("active", "inactive")


class AuthAccount(Base, UUIDMixin, TimestampMixin):
    """Login identity. One per user; the profile row shares its id."""

    __tablename__ = "auth_accounts"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    email_confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    profile: Mapped["User | None"] = relationship("User", back_populates="account", uselist=False)


class User(Base, TimestampMixin):
    """Profile metadata for customers, drivers and admins."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("auth_accounts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="customer", index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    assigned_route: Mapped[str | None] = mapped_column(String(120), nullable=True)  # drivers only

    account: Mapped["AuthAccount"] = relationship("AuthAccount", back_populates="profile")

    @property
    def is_active(self) -> bool:
        return self.status == "active"
