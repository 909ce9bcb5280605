"""
Panel deal endpoints.

Connectors see their own deals, agencies their team's, operators all
of them. Who may change a given deal is decided by the services.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.auth.dependencies import get_current_user
from src.db import get_db
from src.models import Deal, DealStatus, User, UserRole
from src.schemas.common import ActionResult, Page
from src.schemas.deal import (
    DealCreateRequest,
    DealFinalizeRequest,
    DealResponse,
    DealStatusUpdateRequest,
)
from src.services.commands import run_command, status_code_for
from src.services.deals import create_deal_manual, finalize_deal, update_deal_status
from src.utils.audit import get_client_ip

router = APIRouter(prefix="/deals")


def _visible_deals(query, user: User):
    if user.role == UserRole.CONNECTOR:
        return query.where(Deal.connector_id == user.id)
    if user.role == UserRole.AGENCY:
        team = select(User.id).where(User.agency_id == user.id)
        return query.where(Deal.connector_id.in_(team))
    return query


@router.get("", response_model=Page[DealResponse])
async def list_deals(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    status: Optional[DealStatus] = Query(None),
    open_only: bool = Query(False),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
):
    """List deals visible to the current user, newest first."""
    query = _visible_deals(select(Deal), current_user)

    if status:
        query = query.where(Deal.status == status)

    if open_only:
        query = query.where(Deal.locked.is_(False), Deal.status != DealStatus.LOST)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = query.options(selectinload(Deal.product))
    query = query.order_by(Deal.id.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)

    return Page[DealResponse](
        items=[DealResponse.from_deal(deal) for deal in result.scalars().all()],
        total=total or 0,
        page=page,
        per_page=per_page,
        pages=(total + per_page - 1) // per_page if total else 0,
    )


@router.post("", response_model=ActionResult)
async def create_deal(
    request: Request,
    response: Response,
    data: DealCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Enter a deal by hand (connectors only)."""
    result = await run_command(
        db,
        create_deal_manual(
            db,
            current_user,
            product_id=data.product_id,
            customer_company_name=data.customer_company_name,
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            customer_phone=data.customer_phone,
            memo=data.memo,
            ip_address=get_client_ip(request),
        ),
        success_message="Deal created",
    )
    response.status_code = status_code_for(result)
    return result


@router.post("/{deal_id}/status", response_model=ActionResult)
async def change_deal_status(
    request: Request,
    response: Response,
    deal_id: int,
    data: DealStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Move a deal to another status of its product type."""
    result = await run_command(
        db,
        update_deal_status(
            db,
            current_user,
            deal_id,
            data.status,
            ip_address=get_client_ip(request),
        ),
        describe=lambda deal: f"Status changed to {deal.status.value}",
    )
    response.status_code = status_code_for(result)
    return result


@router.post("/{deal_id}/finalize", response_model=ActionResult)
async def finalize(
    request: Request,
    response: Response,
    deal_id: int,
    data: DealFinalizeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Confirm the sale amount and closing date.

    On success the result id is the new transaction's id.
    """
    result = await run_command(
        db,
        finalize_deal(
            db,
            current_user,
            deal_id,
            final_sale_amount_jpy=data.final_sale_amount_jpy,
            closing_date=data.closing_date,
            ip_address=get_client_ip(request),
        ),
        describe=lambda transaction: (
            f"Deal finalized: agency {transaction.agency_reward_jpy} JPY, "
            f"connector {transaction.connector_reward_jpy} JPY"
        ),
    )
    response.status_code = status_code_for(result)
    return result
