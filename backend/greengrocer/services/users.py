"""User management: login account provisioning plus profile metadata."""
import logging
import math
import uuid

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from greengrocer.core.config import settings
from greengrocer.core.security import hash_password
from greengrocer.imports.rows import UserImportRecord
from greengrocer.models.user import AuthAccount, User
from greengrocer.services import audit as audit_svc

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "name": User.name,
    "email": User.email,
    "role": User.role,
    "status": User.status,
    "city": User.city,
    "created_at": User.created_at,
}


def _check_password(password: str) -> None:
    if not password:
        raise ValueError("Password is required")
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValueError(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long"
        )


def _snapshot(user: User) -> dict:
    return {
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "status": user.status,
    }


async def _provision_account(db: AsyncSession, email: str, password: str) -> AuthAccount:
    existing = await db.execute(select(AuthAccount.id).where(AuthAccount.email == email))
    if existing.scalar_one_or_none() is not None:
        raise ValueError(f"A user with email '{email}' already exists")

    account = AuthAccount(
        id=uuid.uuid4(),
        email=email,
        password_hash=hash_password(password),
        email_confirmed=True,
    )
    db.add(account)
    try:
        await db.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent signup for the same address
        await db.rollback()
        raise ValueError(f"A user with email '{email}' already exists") from exc
    except SQLAlchemyError:
        logger.error("Account insert failed for %s", email)
        await db.rollback()
        raise
    return account


# ─── Create ───

async def create_user(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    name: str,
    role: str = "customer",
    status: str = "active",
    phone_number: str | None = None,
    address: str | None = None,
    city: str | None = None,
    zip_code: str | None = None,
    notes: str | None = None,
    assigned_route: str | None = None,
    actor: User | None = None,
) -> User:
    """Provision a login account, then insert the profile row keyed by its id.

    Both writes share one transaction: if the profile insert fails the account
    is discarded with it. Raises ValueError for missing fields, short
    passwords and duplicate emails.
    """
    email = (email or "").strip().lower()
    name = (name or "").strip()
    if not email:
        raise ValueError("Email is required")
    if not name:
        raise ValueError("Name is required")
    _check_password(password)

    account = await _provision_account(db, email, password)

    user = User(
        id=account.id,
        email=email,
        name=name,
        role=role or "customer",
        status=status or "active",
        phone_number=phone_number,
        address=address,
        city=city,
        zip_code=zip_code,
        notes=notes,
        assigned_route=assigned_route,
    )
    db.add(user)
    try:
        await db.flush()
        await audit_svc.log(
            db,
            action="user.created",
            entity_type="user",
            entity_id=user.id,
            **audit_svc.actor_fields(actor),
            after=_snapshot(user),
        )
        await db.commit()
    except SQLAlchemyError:
        logger.error("Profile insert failed for %s; discarding its auth account", email)
        await db.rollback()
        raise

    await db.refresh(user)
    logger.info("Created user %s (%s)", user.id, user.role)
    return user


async def create_user_from_import(db: AsyncSession, record: UserImportRecord) -> User:
    """Single-record creator used by the CSV import batch."""
    return await create_user(
        db,
        email=record.email,
        password=record.password,
        name=record.name,
        role=record.role,
        status=record.status,
        phone_number=record.phone_number,
        address=record.address,
        city=record.city,
        zip_code=record.zip_code,
        notes=record.notes,
    )


# ─── Read ───

async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def list_users(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    sort_field: str = "name",
    sort_direction: str = "asc",
    q: str | None = None,
    role: str | None = None,
) -> tuple[list[User], int, int]:
    """Return (users, total, total_pages) for one page."""
    if sort_field not in SORTABLE_FIELDS:
        raise ValueError(f"Cannot sort by '{sort_field}'")

    stmt = select(User)
    if role:
        stmt = stmt.where(User.role == role)
    if q:
        pattern = f"%{q.lower()}%"
        stmt = stmt.where(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

    count_stmt = select(func.count()).select_from(stmt.subquery())
    total = (await db.execute(count_stmt)).scalar_one()

    column = SORTABLE_FIELDS[sort_field]
    stmt = stmt.order_by(column.desc() if sort_direction == "desc" else column.asc())
    stmt = stmt.offset((page - 1) * page_size).limit(page_size)
    users = list((await db.execute(stmt)).scalars().all())

    return users, total, math.ceil(total / page_size) if total else 0


# ─── Update / delete ───

async def update_user(db: AsyncSession, user: User, changes: dict, actor: User | None = None) -> User:
    before = _snapshot(user)
    for field, value in changes.items():
        setattr(user, field, value)
    await audit_svc.log(
        db,
        action="user.updated",
        entity_type="user",
        entity_id=user.id,
        **audit_svc.actor_fields(actor),
        before=before,
        after=_snapshot(user),
    )
    await db.commit()
    await db.refresh(user)
    return user


async def toggle_user_status(db: AsyncSession, user: User, actor: User | None = None) -> User:
    new_status = "inactive" if user.status == "active" else "active"
    return await update_user(db, user, {"status": new_status}, actor=actor)


async def set_password(db: AsyncSession, user: User, password: str, actor: User | None = None) -> None:
    _check_password(password)
    await db.execute(
        update(AuthAccount)
        .where(AuthAccount.id == user.id)
        .values(password_hash=hash_password(password))
    )
    await audit_svc.log(
        db,
        action="user.password_reset",
        entity_type="user",
        entity_id=user.id,
        **audit_svc.actor_fields(actor),
    )
    await db.commit()


async def delete_user(db: AsyncSession, user: User, actor: User | None = None) -> None:
    """Remove the login account; the profile row goes with it (ON DELETE CASCADE)."""
    before = _snapshot(user)
    await db.execute(delete(AuthAccount).where(AuthAccount.id == user.id))
    await audit_svc.log(
        db,
        action="user.deleted",
        entity_type="user",
        entity_id=user.id,
        **audit_svc.actor_fields(actor),
        before=before,
    )
    await db.commit()
    logger.info("Deleted user %s", user.id)
