"""Admin transaction ledger endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_operator
from src.db import get_db
from src.models import RewardStatus, Transaction, User, UserRewardAllocation
from src.schemas.common import ActionResult, Page
from src.schemas.ledger import TransactionResponse
from src.services.commands import run_command, status_code_for
from src.services.exceptions import NotFound
from src.services.ledger import confirm_rewards_for_transaction, get_transaction
from src.utils.audit import get_client_ip

router = APIRouter(prefix="/transactions")


@router.get("", response_model=Page[TransactionResponse])
async def list_transactions(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
    agency_id: Optional[int] = Query(None),
    connector_id: Optional[int] = Query(None),
    unconfirmed_only: bool = Query(False),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
):
    """List transactions, newest first."""
    query = select(Transaction)

    if agency_id:
        query = query.where(Transaction.agency_id == agency_id)

    if connector_id:
        query = query.where(Transaction.connector_id == connector_id)

    if unconfirmed_only:
        query = query.where(
            Transaction.id.in_(
                select(UserRewardAllocation.transaction_id)
                .where(UserRewardAllocation.status == RewardStatus.UNCONFIRMED)
            )
        )

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = query.order_by(Transaction.id.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)

    return Page[TransactionResponse](
        items=[TransactionResponse.model_validate(t) for t in result.scalars().all()],
        total=total or 0,
        page=page,
        per_page=per_page,
        pages=(total + per_page - 1) // per_page if total else 0,
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction_detail(
    transaction_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
):
    """One transaction with its allocations."""
    try:
        transaction = await get_transaction(db, transaction_id)
    except NotFound as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return TransactionResponse.model_validate(transaction)


@router.post("/{transaction_id}/confirm", response_model=ActionResult)
async def confirm_transaction_rewards(
    request: Request,
    response: Response,
    transaction_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
):
    """Confirm the unconfirmed rewards of a transaction."""
    result = await run_command(
        db,
        confirm_rewards_for_transaction(
            db,
            current_user,
            transaction_id,
            ip_address=get_client_ip(request),
        ),
        describe=lambda count: f"{count} reward(s) confirmed",
    )
    if result.ok:
        result.id = transaction_id
    response.status_code = status_code_for(result)
    return result
