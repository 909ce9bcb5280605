"""Pydantic schemas for request/response validation."""

from src.schemas.audit import AuditLogResponse
from src.schemas.auth import LoginRequest, LoginResponse, TokenPayload
from src.schemas.common import ActionResult, Page
from src.schemas.deal import (
    DealCreateRequest,
    DealFinalizeRequest,
    DealResponse,
    DealStatusUpdateRequest,
    ReferralDealRequest,
)
from src.schemas.ledger import (
    AllocationResponse,
    DashboardSummaryResponse,
    PayoutRequestResponse,
    ProductTypeTotals,
    RewardSummaryResponse,
    TransactionResponse,
)
from src.schemas.settings import RateConfigResponse, RateConfigUpdate
from src.schemas.user import (
    AgencyAssignment,
    PartnerCreate,
    PartnerResponse,
    ProfileResponse,
)

__all__ = [
    # Common
    "ActionResult",
    "Page",
    # Auth
    "LoginRequest",
    "LoginResponse",
    "TokenPayload",
    # User
    "PartnerCreate",
    "PartnerResponse",
    "AgencyAssignment",
    "ProfileResponse",
    # Deal
    "DealCreateRequest",
    "ReferralDealRequest",
    "DealStatusUpdateRequest",
    "DealFinalizeRequest",
    "DealResponse",
    # Ledger
    "AllocationResponse",
    "TransactionResponse",
    "RewardSummaryResponse",
    "PayoutRequestResponse",
    "ProductTypeTotals",
    "DashboardSummaryResponse",
    # Settings
    "RateConfigResponse",
    "RateConfigUpdate",
    # Audit
    "AuditLogResponse",
]
