"""Import runs against a real AsyncSession, with one record failing in the database."""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest
import pytest_asyncio
from sqlalchemy import event, func, select
from sqlalchemy.exc import DataError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from greengrocer.api.v1 import import_routes
from greengrocer.core.config import settings
from greengrocer.db.base import Base
from greengrocer.imports import ImportKind
from greengrocer.imports.batch import DATABASE_ERROR_MESSAGE
from greengrocer.imports.pipeline import run_import
from greengrocer.models.audit import AuditLog
from greengrocer.models.product import Product
from greengrocer.models.user import AuthAccount, User
from greengrocer.services import audit as audit_svc


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")


def _fail_insert(engine, table: str, marker: str):
    """Make the INSERT into ``table`` whose parameters contain ``marker`` fail like Postgres would."""

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def reject(conn, cursor, statement, parameters, context, executemany):
        if statement.startswith(f"INSERT INTO {table} ") and marker in repr(parameters):
            raise DataError(
                statement,
                parameters,
                Exception("value too long for type character varying(64)"),
            )


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    # Server-side defaults in the models are Postgres functions
    @event.listens_for(engine.sync_engine, "connect")
    def register_functions(dbapi_conn, connection_record):
        dbapi_conn.create_function("now", 0, _now)
        dbapi_conn.create_function("gen_random_uuid", 0, lambda: uuid.uuid4().hex)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    async with factory() as session:
        yield session


@pytest.fixture(autouse=True)
def shared_request_session(monkeypatch):
    monkeypatch.setattr(settings, "IMPORT_MAX_IN_FLIGHT_CREATES", 1)


async def _count(session, model) -> int:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
async def test_product_rows_after_a_database_error_are_still_created(engine, session):
    _fail_insert(engine, "products", "BAD001")
    content = (
        b"sku,name,price,stock\n"
        b"TOM001,Tomato,2.50,10\n"
        b"BAD001,Broken,1.00,1\n"
        b"CAR001,Carrot,1.20,5\n"
        b"APP001,Apple,0.99,7\n"
    )

    result = await run_import(
        content,
        ImportKind.products,
        import_routes._record_creator(session, ImportKind.products),
        max_in_flight=1,
    )

    assert result.total == 4
    assert result.success == 3
    assert [(e.row, e.message) for e in result.errors] == [(2, DATABASE_ERROR_MESSAGE)]
    assert "INSERT" not in result.errors[0].message

    # The session is still usable for the import's own audit row
    await audit_svc.log(session, action="products.imported", entity_type="import", after={"success": 3})
    await session.commit()

    skus = (await session.execute(select(Product.sku).order_by(Product.sku))).scalars().all()
    assert skus == ["APP001", "CAR001", "TOM001"]
    tomato = (await session.execute(select(Product).where(Product.sku == "TOM001"))).scalar_one()
    assert tomato.price == Decimal("2.50")
    assert tomato.created_at is not None
    actions = (await session.execute(select(AuditLog.action))).scalars().all()
    assert actions.count("product.created") == 3
    assert "products.imported" in actions


@pytest.mark.asyncio
async def test_user_rows_after_a_database_error_are_still_created(engine, session):
    _fail_insert(engine, "auth_accounts", "bob@x.com")
    content = b"name,email\nAlice,alice@x.com\nBob,bob@x.com\nCarl,\nDana,dana@x.com\n"

    with patch("greengrocer.services.users.hash_password", return_value="hashed"):
        result = await run_import(
            content,
            ImportKind.users,
            import_routes._record_creator(session, ImportKind.users),
            max_in_flight=1,
        )

    assert result.success == 3
    assert [(e.row, e.message) for e in result.errors] == [(2, DATABASE_ERROR_MESSAGE)]
    assert "hashed" not in result.errors[0].message

    await audit_svc.log(session, action="users.imported", entity_type="import")
    await session.commit()

    names = (await session.execute(select(User.name).order_by(User.name))).scalars().all()
    assert names == ["Alice", "Carl", "Dana"]
    assert await _count(session, AuthAccount) == 3


@pytest.mark.asyncio
async def test_duplicate_sku_in_one_file_fails_only_the_second_row(session):
    content = b"sku,name\nTOM001,Tomato\nTOM001,Tomato again\nCAR001,Carrot\n"

    result = await run_import(
        content,
        ImportKind.products,
        import_routes._record_creator(session, ImportKind.products),
        max_in_flight=1,
    )

    assert result.success == 2
    assert [(e.row, e.message) for e in result.errors] == [
        (2, "A product with SKU 'TOM001' already exists")
    ]
    assert await _count(session, Product) == 2
