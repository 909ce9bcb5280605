"""
Deal model for tracked sales opportunities.
"""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from sqlalchemy import BigInteger, Boolean, Date, DateTime, ForeignKey, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin
from src.models.product import ProductType

if TYPE_CHECKING:
    from src.models.ledger import Transaction
    from src.models.product import Product
    from src.models.user import User


class DealStatus(str, Enum):
    """Status of the deal. Valid values depend on the product type."""
    # Signage
    LEAD = "lead"                            # Lead captured
    NEGOTIATING = "negotiating"              # In negotiation
    CONTRACTED = "contracted"                # Contract signed
    INSTALLED = "installed"                  # Installation done (revenue confirmed)
    # Hotel membership / ad slot
    APPLIED = "applied"                      # Application received
    UNDER_REVIEW = "under_review"            # Ad slot under review
    PAYMENT_COMPLETED = "payment_completed"  # Payment done (revenue confirmed)
    PUBLISHED = "published"                  # Ad went live (revenue confirmed)
    # Any type
    LOST = "lost"


class DealSource(str, Enum):
    """How the deal entered the system."""
    REFERRAL = "referral"  # Customer came through a connector's referral link
    MANUAL = "manual"      # Connector entered it by hand


# Status policy per product type. Intermediate statuses may be set in any
# order while the deal is unlocked; the revenue-confirmed status is only
# reachable through finalization.
INITIAL_STATUS: Dict[ProductType, DealStatus] = {
    ProductType.SIGNAGE: DealStatus.LEAD,
    ProductType.HOTEL_MEMBERSHIP: DealStatus.APPLIED,
    ProductType.AD_SLOT: DealStatus.APPLIED,
}

ALLOWED_STATUSES: Dict[ProductType, Tuple[DealStatus, ...]] = {
    ProductType.SIGNAGE: (
        DealStatus.LEAD,
        DealStatus.NEGOTIATING,
        DealStatus.CONTRACTED,
        DealStatus.LOST,
    ),
    ProductType.HOTEL_MEMBERSHIP: (
        DealStatus.APPLIED,
        DealStatus.LOST,
    ),
    ProductType.AD_SLOT: (
        DealStatus.APPLIED,
        DealStatus.UNDER_REVIEW,
        DealStatus.LOST,
    ),
}

REVENUE_CONFIRMED_STATUS: Dict[ProductType, DealStatus] = {
    ProductType.SIGNAGE: DealStatus.INSTALLED,
    ProductType.HOTEL_MEMBERSHIP: DealStatus.PAYMENT_COMPLETED,
    ProductType.AD_SLOT: DealStatus.PUBLISHED,
}


class Deal(Base, TimestampMixin):
    """
    A sales opportunity owned by a connector.

    The deal moves freely between its product type's statuses until it
    is finalized. Finalization locks it, stamps the sale amount and
    closing date, and creates exactly one Transaction.
    """

    __tablename__ = "deals"

    id: Mapped[int] = mapped_column(primary_key=True)

    connector_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id"),
        nullable=False,
        index=True,
    )

    # Customer info
    customer_company_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    customer_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    customer_email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    customer_phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    memo: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    source: Mapped[DealSource] = mapped_column(
        SQLAlchemyEnum(
            DealSource,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )

    # Lifecycle
    status: Mapped[DealStatus] = mapped_column(
        SQLAlchemyEnum(
            DealStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    locked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Set once at finalization; the deal is read-only afterwards",
    )

    # Stamped at finalization
    final_sale_amount_jpy: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
    )
    closing_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    finalized_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    connector: Mapped["User"] = relationship(
        "User",
        back_populates="deals",
        foreign_keys=[connector_id],
    )
    product: Mapped["Product"] = relationship("Product")
    transaction: Mapped[Optional["Transaction"]] = relationship(
        "Transaction",
        back_populates="deal",
        uselist=False,
    )

    @property
    def is_open(self) -> bool:
        return not self.locked and self.status != DealStatus.LOST

    def __repr__(self) -> str:
        return f"<Deal(id={self.id}, status={self.status}, locked={self.locked})>"
