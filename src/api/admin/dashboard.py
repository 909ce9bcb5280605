"""Admin dashboard totals."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_operator
from src.db import get_db
from src.models import PayoutRequest, PayoutStatus, User
from src.schemas.ledger import DashboardSummaryResponse, ProductTypeTotals
from src.services.ledger import ledger_totals, sales_by_product_type

router = APIRouter()


@router.get("/summary", response_model=DashboardSummaryResponse)
async def dashboard_summary(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
):
    """Platform-wide sales and reward totals."""
    totals = await ledger_totals(db)
    by_type = await sales_by_product_type(db)
    open_requests = await db.scalar(
        select(func.count(PayoutRequest.id))
        .where(PayoutRequest.status == PayoutStatus.REQUESTED)
    )

    return DashboardSummaryResponse(
        total_sales=totals.total_sales,
        total_agency=totals.total_agency,
        total_connector=totals.total_connector,
        total_platform=totals.total_platform,
        pending_rewards=totals.pending_rewards,
        transaction_count=totals.transaction_count,
        open_payout_requests=open_requests or 0,
        by_product_type={
            key: ProductTypeTotals(**values) for key, values in by_type.items()
        },
    )
