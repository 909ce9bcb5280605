"""
Seed demo data for local testing.

Usage:
    python scripts/seed_demo_data.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_demo_data.py

This script creates (skipping anything that already exists):
- The operator account and commission settings row
- One product per product type
- An agency with two connectors
"""

import asyncio
import logging
import os
import sys
from typing import Dict, List

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import Product, ProductType, User, UserRole, generate_invite_code
from src.utils.password import hash_password

DEMO_PASSWORD = "demo1234"

DEMO_PRODUCTS = [
    {
        "name": "Storefront window signage",
        "category": "signage",
        "product_type": ProductType.SIGNAGE,
        "supplier_name": "Glass Works",
        "list_price_jpy": 300000,
    },
    {
        "name": "Resort hotel membership",
        "category": "hotel",
        "product_type": ProductType.HOTEL_MEMBERSHIP,
        "supplier_name": "Resort Club",
        "list_price_jpy": 1000000,
    },
    {
        "name": "Station concourse ad slot",
        "category": "ad space",
        "product_type": ProductType.AD_SLOT,
        "supplier_name": "Metro Media",
        "list_price_jpy": 50000,
    },
]


async def create_demo_products(db: AsyncSession) -> List[Product]:
    products = []
    for data in DEMO_PRODUCTS:
        result = await db.execute(select(Product).where(Product.name == data["name"]))
        product = result.scalar_one_or_none()
        if not product:
            product = Product(**data)
            db.add(product)
            print(f"  + Product: {data['name']}")
        products.append(product)
    await db.flush()
    return products


async def _get_or_create_user(db: AsyncSession, username: str, role: UserRole, **kwargs) -> User:
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user:
        return user

    user = User(
        username=username,
        password_hash=hash_password(DEMO_PASSWORD),
        role=role,
        display_name=username.replace("_", " ").title(),
        is_active=True,
        **kwargs,
    )
    db.add(user)
    await db.flush()
    print(f"  + {role.value}: {username} (password: {DEMO_PASSWORD})")
    return user


async def create_demo_partners(db: AsyncSession) -> Dict[str, User]:
    agency = await _get_or_create_user(
        db, "demo_agency", UserRole.AGENCY, invite_code=generate_invite_code()
    )
    first = await _get_or_create_user(db, "demo_connector_1", UserRole.CONNECTOR, agency_id=agency.id)
    second = await _get_or_create_user(
        db,
        "demo_connector_2",
        UserRole.CONNECTOR,
        agency_id=agency.id,
        introduced_by_id=first.id,
    )
    return {"agency": agency, "connector_1": first, "connector_2": second}


async def seed_all(db: AsyncSession) -> None:
    """Create every demo record that is missing and commit."""
    from src.main import bootstrap

    print("Bootstrapping operator and settings...")
    await bootstrap(db)

    print("Creating products...")
    await create_demo_products(db)

    print("Creating partners...")
    await create_demo_partners(db)

    await db.commit()
    print("Done.")


async def main() -> None:
    from src.db import get_db_context

    async with get_db_context() as db:
        await seed_all(db)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
