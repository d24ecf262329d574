"""Seed script: creates the first admin, a driver, a customer and a few products.

Idempotent: existing emails and SKUs are skipped.
Run: docker exec greengrocer-backend-1 python scripts/seed.py
"""
import asyncio
import os
import sys
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import select

from greengrocer.db.session import AsyncSessionLocal, engine
from greengrocer.models.product import Product
from greengrocer.models.user import AuthAccount
from greengrocer.services import products as products_svc
from greengrocer.services import users as users_svc

SEED_PASSWORD = os.environ.get("SEED_PASSWORD", "changeme123")

USERS = [
    {"email": "admin@example.com", "name": "Store Admin", "role": "admin"},
    {"email": "driver@example.com", "name": "Dana Driver", "role": "driver", "assigned_route": "North"},
    {"email": "customer@example.com", "name": "Carla Customer", "role": "customer", "city": "Springfield"},
]

PRODUCTS = [
    {"sku": "TOM001", "name_en": "Tomato", "name_vi": "Cà chua", "name_tr": "Domates", "price": Decimal("2.50"), "unit": "kg", "stock": 120},
    {"sku": "CAR001", "name_en": "Carrot", "name_vi": "Cà rốt", "name_tr": "Havuç", "price": Decimal("1.20"), "unit": "kg", "stock": 80},
    {"sku": "APP001", "name_en": "Apple", "name_vi": "Táo", "name_tr": "Elma", "price": Decimal("3.10"), "unit": "kg", "stock": 60},
    {"sku": "LET001", "name_en": "Lettuce", "name_vi": "Xà lách", "name_tr": "Marul", "price": Decimal("0.90"), "unit": "piece", "stock": 40},
]


# ─── Upsert helpers ───────────────────────────────────────────────────────────

async def _upsert_user(email: str, **fields) -> None:
    async with AsyncSessionLocal() as db:
        existing = await db.execute(select(AuthAccount.id).where(AuthAccount.email == email))
        if existing.scalar_one_or_none() is not None:
            print(f"  [skip] User {email}")
            return
        await users_svc.create_user(db, email=email, password=SEED_PASSWORD, **fields)
        print(f"  [new]  User {email} ({fields['role']})")


async def _upsert_product(sku: str, **fields) -> None:
    async with AsyncSessionLocal() as db:
        existing = await db.execute(select(Product.id).where(Product.sku == sku))
        if existing.scalar_one_or_none() is not None:
            print(f"  [skip] Product {sku}")
            return
        await products_svc.create_product(db, sku=sku, **fields)
        print(f"  [new]  Product {sku}")


async def seed() -> None:
    print("── Users ──")
    for entry in USERS:
        await _upsert_user(**entry)

    print("\n── Products ──")
    for entry in PRODUCTS:
        await _upsert_product(**entry)

    await engine.dispose()
    print("\n✓ Seed complete.")
    for entry in USERS:
        print(f"  {entry['email']:<22} / {SEED_PASSWORD}  ({entry['role']})")


if __name__ == "__main__":
    asyncio.run(seed())
