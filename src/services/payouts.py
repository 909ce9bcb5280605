"""
Payout request workflow.

A partner claims all of their confirmed, unclaimed rewards at once; the
operator later marks the request paid, which settles every claimed
allocation with it.

The claim is a single conditional UPDATE, so two requests racing for the
same user can never both take an allocation. Whatever the UPDATE actually
stamped is what the request is worth.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.permissions import Permission, authorize
from src.models import (
    AuditAction,
    PayoutRequest,
    PayoutStatus,
    RewardStatus,
    User,
    UserRewardAllocation,
)
from src.services.exceptions import AlreadyPaid, BelowMinimum, NotFound
from src.services.ledger import available_for_payout
from src.services.rates import get_rate_config
from src.utils.audit import log_action

logger = logging.getLogger(__name__)


async def get_payout_request(db: AsyncSession, payout_request_id: int) -> PayoutRequest:
    payout = await db.get(PayoutRequest, payout_request_id)
    if payout is None:
        raise NotFound(f"Payout request {payout_request_id} not found")
    return payout


async def request_payout_all(
    db: AsyncSession,
    actor: User,
    user_id: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> PayoutRequest:
    """
    Request payout of every confirmed reward not yet claimed.

    Args:
        db: Database session
        actor: Acting user; must be the payee
        user_id: Payee, defaults to the actor

    Returns:
        The new PayoutRequest

    Raises:
        NotFound: payee does not exist
        Forbidden: actor is not the payee agency/connector
        BelowMinimum: claimable amount is under the minimum payout
    """
    payee_id = actor.id if user_id is None else user_id
    payee = await db.get(User, payee_id)
    if payee is None:
        raise NotFound(f"User {payee_id} not found")
    authorize(actor, Permission.REQUEST_PAYOUT, payee)

    rates = await get_rate_config(db)
    available = await available_for_payout(db, payee.id)
    if available < rates.min_payout_jpy:
        raise BelowMinimum(
            f"Available amount {available} JPY is below the minimum payout "
            f"of {rates.min_payout_jpy} JPY"
        )

    payout = PayoutRequest(
        user_id=payee.id,
        amount_jpy=0,
        status=PayoutStatus.REQUESTED,
        requested_at=datetime.now(timezone.utc),
    )
    db.add(payout)
    await db.flush()

    # Select-and-stamp in one statement; rows claimed by a concurrent
    # request no longer match and are left out.
    await db.execute(
        update(UserRewardAllocation)
        .where(
            UserRewardAllocation.user_id == payee.id,
            UserRewardAllocation.status == RewardStatus.CONFIRMED,
            UserRewardAllocation.payout_request_id.is_(None),
        )
        .values(payout_request_id=payout.id)
    )

    claimed = int(await db.scalar(
        select(func.coalesce(func.sum(UserRewardAllocation.amount_jpy), 0))
        .where(UserRewardAllocation.payout_request_id == payout.id)
    ))
    if claimed < rates.min_payout_jpy:
        # Lost the race for part of the balance; caller rolls back
        logger.warning(
            f"Payout for user {payee.id}: only {claimed} JPY left after re-check "
            f"(expected {available})"
        )
        raise BelowMinimum(
            f"Available amount {claimed} JPY is below the minimum payout "
            f"of {rates.min_payout_jpy} JPY"
        )

    payout.amount_jpy = claimed

    await log_action(
        db=db,
        user_id=actor.id,
        action=AuditAction.REQUEST_PAYOUT,
        detail=f"Payout requested: {claimed} JPY",
        target_type="payout",
        target_id=payout.id,
        action_metadata={"amount_jpy": claimed},
        ip_address=ip_address,
    )
    await db.flush()
    await db.refresh(payout, attribute_names=["allocations"])

    logger.info(f"Payout request {payout.id} created for user {payee.id}: {claimed} JPY")
    return payout


async def mark_payout_paid(
    db: AsyncSession,
    actor: User,
    payout_request_id: int,
    ip_address: Optional[str] = None,
) -> PayoutRequest:
    """
    Settle a payout request and every allocation it claimed (operator only).

    Raises:
        Forbidden: actor is not an operator
        NotFound: payout request does not exist
        AlreadyPaid: request was settled before
    """
    authorize(actor, Permission.SETTLE_PAYOUT)
    payout = await get_payout_request(db, payout_request_id)

    processed_at = datetime.now(timezone.utc)
    result = await db.execute(
        update(PayoutRequest)
        .where(
            PayoutRequest.id == payout.id,
            PayoutRequest.status == PayoutStatus.REQUESTED,
        )
        .values(status=PayoutStatus.PAID, processed_at=processed_at)
    )
    if result.rowcount == 0:
        raise AlreadyPaid()

    settled = await db.execute(
        update(UserRewardAllocation)
        .where(UserRewardAllocation.payout_request_id == payout.id)
        .values(status=RewardStatus.PAID)
    )
    await db.refresh(payout)

    await log_action(
        db=db,
        user_id=actor.id,
        action=AuditAction.MARK_PAYOUT_PAID,
        detail=f"Paid {payout.amount_jpy} JPY to user {payout.user_id}",
        target_type="payout",
        target_id=payout.id,
        action_metadata={"allocations": settled.rowcount, "user_id": payout.user_id},
        ip_address=ip_address,
    )

    logger.info(
        f"Payout request {payout.id} marked paid by user {actor.id} "
        f"({settled.rowcount} allocation(s))"
    )
    return payout
