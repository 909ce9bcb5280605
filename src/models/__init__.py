"""
Database models for the commission ledger.

All models are exported here for convenient imports:
    from src.models import User, Deal, Transaction, etc.
"""

from src.models.audit import AuditAction, AuditLog
from src.models.base import Base, TimestampMixin
from src.models.deal import (
    ALLOWED_STATUSES,
    INITIAL_STATUS,
    REVENUE_CONFIRMED_STATUS,
    Deal,
    DealSource,
    DealStatus,
)
from src.models.ledger import (
    Allocation,
    PlatformShareAllocation,
    RecipientType,
    RewardStatus,
    Transaction,
    UserRewardAllocation,
)
from src.models.payout import PayoutRequest, PayoutStatus
from src.models.product import Product, ProductType
from src.models.settings import SETTINGS_ROW_ID, SystemSettings
from src.models.user import PARTNER_ROLES, User, UserRole, generate_invite_code

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # User
    "User",
    "UserRole",
    "PARTNER_ROLES",
    "generate_invite_code",
    # Product
    "Product",
    "ProductType",
    # Deal
    "Deal",
    "DealSource",
    "DealStatus",
    "INITIAL_STATUS",
    "ALLOWED_STATUSES",
    "REVENUE_CONFIRMED_STATUS",
    # Ledger
    "Transaction",
    "Allocation",
    "UserRewardAllocation",
    "PlatformShareAllocation",
    "RecipientType",
    "RewardStatus",
    # Payout
    "PayoutRequest",
    "PayoutStatus",
    # Settings
    "SystemSettings",
    "SETTINGS_ROW_ID",
    # Audit
    "AuditLog",
    "AuditAction",
]
