"""
Tests for reward confirmation and ledger totals.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from src.models import (
    AuditAction,
    AuditLog,
    PlatformShareAllocation,
    RewardStatus,
    UserRewardAllocation,
    UserRole,
)
from src.services.deals import create_deal_manual, finalize_deal
from src.services.exceptions import Forbidden, NotFound
from src.services.ledger import (
    available_for_payout,
    confirm_rewards_for_transaction,
    get_transaction,
    ledger_totals,
    reward_summary,
    sales_by_product_type,
    sum_agency_team_sales,
    sum_connector_sales,
    sum_user_rewards,
)


async def _finalized(db, world, product, amount, connector=None):
    connector = connector or world.connector
    deal = await create_deal_manual(
        db,
        connector,
        product_id=product.id,
        customer_company_name="Sakura Cafe",
        customer_name="Tanaka",
        customer_email="tanaka@example.com",
    )
    transaction = await finalize_deal(db, connector, deal.id, amount, "2026-03-31")
    await db.commit()
    return transaction


class TestConfirmRewards:
    async def test_confirms_user_allocations(self, db_session, world):
        transaction = await _finalized(db_session, world, world.signage, 100000)

        confirmed = await confirm_rewards_for_transaction(db_session, world.operator, transaction.id)
        await db_session.commit()

        assert confirmed == 2
        statuses = (await db_session.execute(
            select(UserRewardAllocation.status)
            .where(UserRewardAllocation.transaction_id == transaction.id)
        )).scalars().all()
        assert set(statuses) == {RewardStatus.CONFIRMED}

    async def test_idempotent(self, db_session, world):
        transaction = await _finalized(db_session, world, world.signage, 100000)
        await confirm_rewards_for_transaction(db_session, world.operator, transaction.id)
        await db_session.commit()

        assert await confirm_rewards_for_transaction(db_session, world.operator, transaction.id) == 0
        await db_session.commit()

        logs = (await db_session.execute(
            select(AuditLog).where(AuditLog.action == AuditAction.CONFIRM_REWARDS)
        )).scalars().all()
        assert len(logs) == 1

    async def test_hotel_transaction_has_nothing_to_confirm(self, db_session, world):
        transaction = await _finalized(db_session, world, world.hotel, 100000)
        assert await confirm_rewards_for_transaction(db_session, world.operator, transaction.id) == 0

    async def test_partner_forbidden(self, db_session, world):
        transaction = await _finalized(db_session, world, world.signage, 100000)
        with pytest.raises(Forbidden):
            await confirm_rewards_for_transaction(db_session, world.agency, transaction.id)

    async def test_missing_transaction(self, db_session, world):
        with pytest.raises(NotFound):
            await confirm_rewards_for_transaction(db_session, world.operator, 9999)

    async def test_reloaded_transaction_has_user_columns(self, db_session, world):
        transaction = await _finalized(db_session, world, world.signage, 100000)
        transaction_id = transaction.id
        db_session.expunge_all()

        reloaded = await get_transaction(db_session, transaction_id)
        agency, connector, platform = reloaded.allocations
        assert isinstance(agency, UserRewardAllocation)
        assert (agency.user_id, agency.user_role) == (world.agency.id, UserRole.AGENCY)
        assert agency.status == RewardStatus.UNCONFIRMED
        assert connector.rate == Decimal("0.05")
        assert connector.payout_request_id is None
        assert isinstance(platform, PlatformShareAllocation)


class TestRewardSums:
    async def test_summary_by_stage(self, db_session, world):
        await _finalized(db_session, world, world.signage, 100000)   # unconfirmed
        await _finalized(db_session, world, world.hotel, 200000)     # confirmed

        summary = await reward_summary(db_session, world.connector.id)
        assert summary.unconfirmed == 5000
        assert summary.available == 10000
        assert summary.requested == 0
        assert summary.paid == 0
        assert summary.total == 15000

        agency = await reward_summary(db_session, world.agency.id)
        assert agency.unconfirmed == 10000
        assert agency.available == 20000

    async def test_sum_user_rewards_filters_status(self, db_session, world):
        await _finalized(db_session, world, world.signage, 100000)
        await _finalized(db_session, world, world.hotel, 200000)

        assert await sum_user_rewards(db_session, world.connector.id) == 15000
        assert await sum_user_rewards(db_session, world.connector.id, RewardStatus.CONFIRMED) == 10000

    async def test_unknown_user_has_zero(self, db_session, world):
        assert await available_for_payout(db_session, 9999) == 0

    async def test_sales_totals(self, db_session, world):
        await _finalized(db_session, world, world.signage, 100000)
        await _finalized(db_session, world, world.ad_slot, 50000)
        await _finalized(db_session, world, world.signage, 70000, connector=world.other_connector)

        assert await sum_connector_sales(db_session, world.connector.id) == 150000
        assert await sum_agency_team_sales(db_session, world.agency.id) == 150000
        assert await sum_agency_team_sales(db_session, world.other_agency.id) == 70000


class TestLedgerTotals:
    async def test_totals_match_allocations(self, db_session, world):
        await _finalized(db_session, world, world.signage, 100000)
        await _finalized(db_session, world, world.signage, 333)
        await _finalized(db_session, world, world.hotel, 200000)

        totals = await ledger_totals(db_session)
        assert totals.transaction_count == 3
        assert totals.total_sales == 300333
        assert totals.total_connector == 5000 + 16 + 10000
        assert totals.total_agency == 10000 + 33 + 20000
        assert totals.total_platform == 85000 + 284 + 170000
        assert (
            totals.total_connector + totals.total_agency + totals.total_platform
            == totals.total_sales
        )
        # Only the two signage transactions still wait for confirmation
        assert totals.pending_rewards == 5000 + 10000 + 16 + 33

    async def test_empty_ledger(self, db_session, world):
        totals = await ledger_totals(db_session)
        assert totals.transaction_count == 0
        assert totals.total_sales == 0
        assert totals.total_platform == 0

    async def test_grouped_by_product_type(self, db_session, world):
        await _finalized(db_session, world, world.signage, 100000)
        await _finalized(db_session, world, world.ad_slot, 50000)
        await _finalized(db_session, world, world.signage, 20000)

        grouped = await sales_by_product_type(db_session)
        assert grouped["signage"]["sales"] == 120000
        assert grouped["signage"]["count"] == 2
        assert grouped["ad_slot"]["connector"] == 2500
        assert "hotel_membership" not in grouped
