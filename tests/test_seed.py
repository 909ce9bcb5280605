"""
Tests for the startup bootstrap and the demo seed script.
"""

import importlib.util
from pathlib import Path

from sqlalchemy import func, select

from src.main import bootstrap
from src.models import Product, SystemSettings, User, UserRole
from src.services.rates import get_rate_config
from src.utils.password import verify_password

SEED_SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "seed_demo_data.py"


def _load_seed_module():
    spec = importlib.util.spec_from_file_location("seed_demo_data", SEED_SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestBootstrap:
    async def test_creates_operator_and_settings(self, db_session):
        await bootstrap(db_session)

        operator = await db_session.scalar(select(User).where(User.role == UserRole.OPERATOR))
        assert operator.username == "operator"
        assert verify_password("operator", operator.password_hash)

        rates = await get_rate_config(db_session)
        assert rates.min_payout_jpy == 5000

    async def test_idempotent(self, db_session):
        await bootstrap(db_session)
        await bootstrap(db_session)

        assert await db_session.scalar(select(func.count(User.id))) == 1
        assert await db_session.scalar(select(func.count(SystemSettings.id))) == 1


class TestSeedScript:
    async def test_seed_twice(self, db_session):
        seed = _load_seed_module()

        await seed.seed_all(db_session)
        await seed.seed_all(db_session)

        assert await db_session.scalar(select(func.count(Product.id))) == 3
        connectors = (await db_session.execute(
            select(User).where(User.role == UserRole.CONNECTOR)
        )).scalars().all()
        assert len(connectors) == 2
        agency = await db_session.scalar(select(User).where(User.role == UserRole.AGENCY))
        assert all(c.agency_id == agency.id for c in connectors)
