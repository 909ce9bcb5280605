"""Admin commission rate settings."""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_operator
from src.db import get_db
from src.models import User
from src.schemas.common import ActionResult
from src.schemas.settings import RateConfigResponse, RateConfigUpdate
from src.services.commands import run_command, status_code_for
from src.services.rates import get_rate_config, set_commission_rates
from src.utils.audit import get_client_ip

router = APIRouter(prefix="/settings")


@router.get("/rates", response_model=RateConfigResponse)
async def get_rates(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
):
    """Current commission rates."""
    rates = await get_rate_config(db)
    return RateConfigResponse(
        overall_rate=rates.overall_rate,
        connector_rate=rates.connector_rate,
        agency_rate=rates.agency_rate,
        min_payout_jpy=rates.min_payout_jpy,
    )


@router.put("/rates", response_model=ActionResult)
async def update_rates(
    request: Request,
    response: Response,
    data: RateConfigUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
):
    """
    Change commission rates.

    Only deals finalized afterwards use the new rates.
    """
    result = await run_command(
        db,
        set_commission_rates(
            db,
            current_user,
            overall_rate=data.overall_rate,
            connector_rate=data.connector_rate,
            min_payout_jpy=data.min_payout_jpy,
            ip_address=get_client_ip(request),
        ),
        describe=lambda rates: (
            f"Rates updated: overall {rates.overall_rate}, connector {rates.connector_rate}"
        ),
    )
    response.status_code = status_code_for(result)
    return result
