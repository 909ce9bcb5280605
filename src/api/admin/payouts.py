"""Admin payout settlement endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_operator
from src.db import get_db
from src.models import PayoutRequest, PayoutStatus, User
from src.schemas.common import ActionResult, Page
from src.schemas.ledger import PayoutRequestResponse
from src.services.commands import run_command, status_code_for
from src.services.payouts import mark_payout_paid
from src.utils.audit import get_client_ip

router = APIRouter(prefix="/payouts")


@router.get("", response_model=Page[PayoutRequestResponse])
async def list_payout_requests(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
    status: Optional[PayoutStatus] = Query(None),
    user_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
):
    """List payout requests, oldest open request first."""
    query = select(PayoutRequest)

    if status:
        query = query.where(PayoutRequest.status == status)

    if user_id:
        query = query.where(PayoutRequest.user_id == user_id)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = query.order_by(PayoutRequest.requested_at, PayoutRequest.id)
    query = query.offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)

    return Page[PayoutRequestResponse](
        items=[PayoutRequestResponse.model_validate(p) for p in result.scalars().all()],
        total=total or 0,
        page=page,
        per_page=per_page,
        pages=(total + per_page - 1) // per_page if total else 0,
    )


@router.post("/{payout_request_id}/pay", response_model=ActionResult)
async def pay_payout_request(
    request: Request,
    response: Response,
    payout_request_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
):
    """Mark a payout request as paid after the bank transfer."""
    result = await run_command(
        db,
        mark_payout_paid(
            db,
            current_user,
            payout_request_id,
            ip_address=get_client_ip(request),
        ),
        describe=lambda payout: f"Payout of {payout.amount_jpy} JPY marked as paid",
    )
    response.status_code = status_code_for(result)
    return result
