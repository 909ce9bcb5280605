"""Admin partner (agency/connector) management."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_operator
from src.db import get_db
from src.models import User, UserRole
from src.schemas.common import ActionResult
from src.schemas.user import AgencyAssignment, PartnerCreate, PartnerResponse
from src.services.commands import run_command, status_code_for
from src.services.ledger import sum_agency_team_sales, sum_connector_sales
from src.services.partners import create_partner, list_partners, set_connector_agency
from src.utils.audit import get_client_ip

router = APIRouter(prefix="/partners")


@router.get("", response_model=List[PartnerResponse])
async def list_partner_accounts(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
    role: Optional[UserRole] = Query(None),
):
    """List agencies and connectors with their sales totals."""
    partners = await list_partners(db, role)

    items = []
    for partner in partners:
        if partner.role == UserRole.AGENCY:
            sales = await sum_agency_team_sales(db, partner.id)
        else:
            sales = await sum_connector_sales(db, partner.id)
        item = PartnerResponse.model_validate(partner)
        item.sales_jpy = sales
        items.append(item)
    return items


@router.post("", response_model=ActionResult)
async def create_partner_account(
    request: Request,
    response: Response,
    data: PartnerCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
):
    """Create an agency or connector account."""
    result = await run_command(
        db,
        create_partner(
            db,
            current_user,
            username=data.username,
            password=data.password,
            display_name=data.display_name,
            role=data.role,
            email=data.email,
            agency_id=data.agency_id,
            introduced_by_id=data.introduced_by_id,
            ip_address=get_client_ip(request),
        ),
        describe=lambda partner: f"{partner.role.value.capitalize()} {partner.username} created",
    )
    response.status_code = status_code_for(result)
    return result


@router.put("/{connector_id}/agency", response_model=ActionResult)
async def assign_connector_agency(
    request: Request,
    response: Response,
    connector_id: int,
    data: AgencyAssignment,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
):
    """Attach a connector to an agency."""
    result = await run_command(
        db,
        set_connector_agency(
            db,
            current_user,
            connector_id,
            data.agency_id,
            ip_address=get_client_ip(request),
        ),
        success_message="Agency assigned",
    )
    response.status_code = status_code_for(result)
    return result
