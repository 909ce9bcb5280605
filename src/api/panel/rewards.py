"""Panel reward and payout endpoints for agencies and connectors."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_partner
from src.db import get_db
from src.models import PayoutRequest, RewardStatus, User, UserRewardAllocation
from src.schemas.common import ActionResult
from src.schemas.ledger import (
    AllocationResponse,
    PayoutRequestResponse,
    RewardSummaryResponse,
)
from src.services.commands import run_command, status_code_for
from src.services.ledger import reward_summary
from src.services.payouts import request_payout_all
from src.services.rates import get_rate_config
from src.utils.audit import get_client_ip

router = APIRouter()


@router.get("/rewards", response_model=RewardSummaryResponse)
async def my_reward_summary(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_partner),
):
    """Rewards by stage and whether a payout can be requested now."""
    summary = await reward_summary(db, current_user.id)
    rates = await get_rate_config(db)
    return RewardSummaryResponse(
        unconfirmed=summary.unconfirmed,
        available=summary.available,
        requested=summary.requested,
        paid=summary.paid,
        total=summary.total,
        min_payout_jpy=rates.min_payout_jpy,
        can_request_payout=summary.available >= rates.min_payout_jpy,
    )


@router.get("/rewards/allocations", response_model=List[AllocationResponse])
async def my_allocations(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_partner),
    status: Optional[RewardStatus] = Query(None),
    limit: int = Query(100, ge=1, le=500),
):
    """The current user's reward lines, newest first."""
    query = select(UserRewardAllocation).where(
        UserRewardAllocation.user_id == current_user.id
    )
    if status:
        query = query.where(UserRewardAllocation.status == status)

    result = await db.execute(
        query.order_by(UserRewardAllocation.id.desc()).limit(limit)
    )
    return [AllocationResponse.model_validate(a) for a in result.scalars().all()]


@router.get("/payouts", response_model=List[PayoutRequestResponse])
async def my_payout_requests(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_partner),
):
    result = await db.execute(
        select(PayoutRequest)
        .where(PayoutRequest.user_id == current_user.id)
        .order_by(PayoutRequest.id.desc())
    )
    return [PayoutRequestResponse.model_validate(p) for p in result.scalars().all()]


@router.post("/payouts", response_model=ActionResult)
async def request_payout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_partner),
):
    """Request payout of everything confirmed and not yet requested."""
    result = await run_command(
        db,
        request_payout_all(db, current_user, ip_address=get_client_ip(request)),
        describe=lambda payout: f"Payout of {payout.amount_jpy} JPY requested",
    )
    response.status_code = status_code_for(result)
    return result
