"""Transaction, reward and payout schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from src.models.ledger import RecipientType, RewardStatus
from src.models.payout import PayoutStatus
from src.models.user import UserRole


class AllocationResponse(BaseModel):
    """
    One line of a transaction split.

    Platform share lines have no user, rate or status.
    """

    id: int
    transaction_id: int
    recipient_type: RecipientType
    label: str
    amount_jpy: int

    user_id: Optional[int] = None
    user_role: Optional[UserRole] = None
    rate: Optional[Decimal] = None
    base_amount_jpy: Optional[int] = None
    status: Optional[RewardStatus] = None
    payout_request_id: Optional[int] = None

    model_config = {"from_attributes": True}


class TransactionResponse(BaseModel):
    """Finalized sale with its frozen rates and split."""

    id: int
    deal_id: int
    closing_date: date
    product_snapshot: Dict[str, Any]

    connector_id: int
    agency_id: int

    sale_amount_jpy: int
    base_amount_jpy: int
    overall_rate: Decimal
    connector_rate: Decimal
    agency_reward_jpy: int
    connector_reward_jpy: int
    platform_share_jpy: int

    allocations: List[AllocationResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RewardSummaryResponse(BaseModel):
    """A partner's rewards by stage."""

    unconfirmed: int
    available: int
    requested: int
    paid: int
    total: int
    min_payout_jpy: int
    can_request_payout: bool


class PayoutRequestResponse(BaseModel):
    id: int
    user_id: int
    amount_jpy: int
    status: PayoutStatus
    requested_at: datetime
    processed_at: Optional[datetime] = None
    allocation_ids: List[int] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class ProductTypeTotals(BaseModel):
    sales: int = 0
    agency: int = 0
    connector: int = 0
    platform: int = 0
    count: int = 0


class DashboardSummaryResponse(BaseModel):
    """Operator dashboard totals."""

    total_sales: int
    total_agency: int
    total_connector: int
    total_platform: int
    pending_rewards: int
    transaction_count: int
    open_payout_requests: int
    by_product_type: Dict[str, ProductTypeTotals] = Field(default_factory=dict)
