"""
Transaction ledger: reward confirmation and read-side totals.

Totals are always recomputed from the allocation and transaction rows;
nothing is cached, so they cannot drift from the underlying records.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.permissions import Permission, authorize
from src.models import (
    AuditAction,
    PlatformShareAllocation,
    RecipientType,
    RewardStatus,
    Transaction,
    User,
    UserRewardAllocation,
    UserRole,
)
from src.services.exceptions import NotFound
from src.utils.audit import log_action

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RewardSummary:
    """A partner's rewards by stage, as shown on the rewards page."""

    unconfirmed: int
    available: int   # confirmed, not yet claimed by a payout request
    requested: int   # confirmed, claimed by an unpaid payout request
    paid: int

    @property
    def total(self) -> int:
        return self.unconfirmed + self.available + self.requested + self.paid


@dataclass(frozen=True)
class LedgerTotals:
    """Platform-wide totals for the operator dashboard."""

    total_sales: int
    total_agency: int
    total_connector: int
    total_platform: int
    pending_rewards: int
    transaction_count: int


async def get_transaction(db: AsyncSession, transaction_id: int) -> Transaction:
    transaction = await db.get(Transaction, transaction_id)
    if transaction is None:
        raise NotFound(f"Transaction {transaction_id} not found")
    return transaction


async def confirm_rewards_for_transaction(
    db: AsyncSession,
    actor: User,
    transaction_id: int,
    ip_address: Optional[str] = None,
) -> int:
    """
    Confirm every unconfirmed reward of a transaction (operator only).

    Idempotent: a second call finds nothing to flip and returns 0.

    Returns:
        Number of allocations confirmed by this call

    Raises:
        Forbidden: actor is not an operator
        NotFound: transaction does not exist
    """
    authorize(actor, Permission.CONFIRM_REWARDS)
    transaction = await get_transaction(db, transaction_id)

    result = await db.execute(
        update(UserRewardAllocation)
        .where(
            UserRewardAllocation.transaction_id == transaction.id,
            UserRewardAllocation.status == RewardStatus.UNCONFIRMED,
        )
        .values(status=RewardStatus.CONFIRMED)
    )
    confirmed = result.rowcount

    if confirmed:
        await log_action(
            db=db,
            user_id=actor.id,
            action=AuditAction.CONFIRM_REWARDS,
            detail=f"Confirmed {confirmed} reward(s)",
            target_type="transaction",
            target_id=transaction.id,
            action_metadata={"deal_id": transaction.deal_id, "confirmed": confirmed},
            ip_address=ip_address,
        )
        logger.info(f"Transaction {transaction.id}: {confirmed} reward(s) confirmed by user {actor.id}")
    else:
        logger.debug(f"Transaction {transaction.id}: nothing to confirm")

    return confirmed


async def sum_user_rewards(
    db: AsyncSession,
    user_id: int,
    status: Optional[RewardStatus] = None,
) -> int:
    """Sum a user's reward amounts, optionally for one status."""
    query = (
        select(func.coalesce(func.sum(UserRewardAllocation.amount_jpy), 0))
        .where(UserRewardAllocation.user_id == user_id)
    )
    if status is not None:
        query = query.where(UserRewardAllocation.status == status)
    return int(await db.scalar(query))


async def available_for_payout(db: AsyncSession, user_id: int) -> int:
    """Confirmed rewards not yet claimed by any payout request."""
    return int(await db.scalar(
        select(func.coalesce(func.sum(UserRewardAllocation.amount_jpy), 0))
        .where(
            UserRewardAllocation.user_id == user_id,
            UserRewardAllocation.status == RewardStatus.CONFIRMED,
            UserRewardAllocation.payout_request_id.is_(None),
        )
    ))


async def pending_payout_amount(db: AsyncSession, user_id: int) -> int:
    """Confirmed rewards claimed by a payout request that is not paid yet."""
    return int(await db.scalar(
        select(func.coalesce(func.sum(UserRewardAllocation.amount_jpy), 0))
        .where(
            UserRewardAllocation.user_id == user_id,
            UserRewardAllocation.status == RewardStatus.CONFIRMED,
            UserRewardAllocation.payout_request_id.is_not(None),
        )
    ))


async def reward_summary(db: AsyncSession, user_id: int) -> RewardSummary:
    return RewardSummary(
        unconfirmed=await sum_user_rewards(db, user_id, RewardStatus.UNCONFIRMED),
        available=await available_for_payout(db, user_id),
        requested=await pending_payout_amount(db, user_id),
        paid=await sum_user_rewards(db, user_id, RewardStatus.PAID),
    )


async def sum_agency_team_sales(db: AsyncSession, agency_id: int) -> int:
    """Total sales of every transaction credited to an agency's team."""
    return int(await db.scalar(
        select(func.coalesce(func.sum(Transaction.sale_amount_jpy), 0))
        .where(Transaction.agency_id == agency_id)
    ))


async def sum_connector_sales(db: AsyncSession, connector_id: int) -> int:
    return int(await db.scalar(
        select(func.coalesce(func.sum(Transaction.sale_amount_jpy), 0))
        .where(Transaction.connector_id == connector_id)
    ))


async def sales_by_product_type(db: AsyncSession) -> Dict[str, Dict[str, int]]:
    """
    Sales and split totals grouped by product type.

    Uses the product snapshot stored on the transaction, so later
    product edits do not move historical sales between groups.
    """
    result = await db.execute(select(Transaction))
    grouped: Dict[str, Dict[str, int]] = {}
    for transaction in result.scalars().all():
        key = transaction.product_snapshot.get("type", "unknown")
        bucket = grouped.setdefault(
            key,
            {"sales": 0, "agency": 0, "connector": 0, "platform": 0, "count": 0},
        )
        bucket["sales"] += transaction.sale_amount_jpy
        bucket["agency"] += transaction.agency_reward_jpy
        bucket["connector"] += transaction.connector_reward_jpy
        bucket["platform"] += transaction.platform_share_jpy
        bucket["count"] += 1
    return grouped


async def ledger_totals(db: AsyncSession) -> LedgerTotals:
    """Totals across all transactions, summed from the allocation rows."""
    sales_row = (await db.execute(
        select(
            func.coalesce(func.sum(Transaction.sale_amount_jpy), 0).label("sales"),
            func.count(Transaction.id).label("count"),
        )
    )).one()

    role_rows = await db.execute(
        select(
            UserRewardAllocation.user_role,
            func.coalesce(func.sum(UserRewardAllocation.amount_jpy), 0),
        )
        .group_by(UserRewardAllocation.user_role)
    )
    by_role = {role: int(total) for role, total in role_rows.all()}

    platform = await db.scalar(
        select(func.coalesce(func.sum(PlatformShareAllocation.amount_jpy), 0))
        .where(PlatformShareAllocation.recipient_type == RecipientType.PLATFORM_SHARE)
    )
    pending = await db.scalar(
        select(func.coalesce(func.sum(UserRewardAllocation.amount_jpy), 0))
        .where(UserRewardAllocation.status == RewardStatus.UNCONFIRMED)
    )

    return LedgerTotals(
        total_sales=int(sales_row.sales),
        total_agency=by_role.get(UserRole.AGENCY, 0),
        total_connector=by_role.get(UserRole.CONNECTOR, 0),
        total_platform=int(platform),
        pending_rewards=int(pending),
        transaction_count=int(sales_row.count),
    )
