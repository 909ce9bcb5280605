"""
Public referral intake.

Customers reach this through a connector's referral link, so there is
no login; the connector is identified by id in the body.
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.db import get_db
from src.schemas.common import ActionResult
from src.schemas.deal import ReferralDealRequest
from src.services.commands import run_command, status_code_for
from src.services.deals import create_deal_from_referral
from src.utils.audit import get_client_ip

router = APIRouter(prefix="/referral", tags=["Referral"])


@router.post("/deals", response_model=ActionResult)
async def submit_referral_deal(
    request: Request,
    response: Response,
    data: ReferralDealRequest,
    db: AsyncSession = Depends(get_db),
):
    """Register a customer's application as a new deal."""
    result = await run_command(
        db,
        create_deal_from_referral(
            db,
            connector_id=data.connector_id,
            product_id=data.product_id,
            customer_company_name=data.customer_company_name,
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            customer_phone=data.customer_phone,
            memo=data.memo,
            ip_address=get_client_ip(request),
        ),
        success_message="Application received",
    )
    response.status_code = status_code_for(result)
    return result
