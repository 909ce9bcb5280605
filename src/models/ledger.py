"""
Transaction and allocation models for finalized sales.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, BigInteger, Date, ForeignKey, Numeric, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin
from src.models.user import UserRole

if TYPE_CHECKING:
    from src.models.deal import Deal
    from src.models.payout import PayoutRequest


class RewardStatus(str, Enum):
    """Lifecycle of a user reward allocation."""
    UNCONFIRMED = "unconfirmed"  # Waiting for operator confirmation
    CONFIRMED = "confirmed"      # Payable (claimed once payout_request_id is set)
    PAID = "paid"                # Settled through a payout request


class RecipientType(str, Enum):
    """Discriminator for allocation rows."""
    USER_REWARD = "user_reward"
    PLATFORM_SHARE = "platform_share"


class Transaction(Base, TimestampMixin):
    """
    Financial record of a finalized deal.

    Created exactly once per deal. Amounts and the rate snapshot never
    change afterwards; only the status fields of its user allocations do.

    Invariant:
        agency_reward_jpy + connector_reward_jpy + platform_share_jpy
        == base_amount_jpy
    """

    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    deal_id: Mapped[int] = mapped_column(
        ForeignKey("deals.id"),
        unique=True,
        nullable=False,
        index=True,
    )
    closing_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    product_snapshot: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        comment="Product listing as it was at finalization",
    )

    connector_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    agency_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    sale_amount_jpy: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )
    base_amount_jpy: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Amount the rates are applied to",
    )

    # Rate snapshot
    overall_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 4),
        nullable=False,
    )
    connector_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 4),
        nullable=False,
    )

    agency_reward_jpy: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )
    connector_reward_jpy: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )
    platform_share_jpy: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    # Relationships
    deal: Mapped["Deal"] = relationship(
        "Deal",
        back_populates="transaction",
    )
    allocations: Mapped[List["Allocation"]] = relationship(
        "Allocation",
        back_populates="transaction",
        order_by="Allocation.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def rates_used(self) -> dict:
        return {
            "overall_rate": self.overall_rate,
            "connector_rate": self.connector_rate,
        }

    @property
    def user_allocations(self) -> List["UserRewardAllocation"]:
        return [a for a in self.allocations if isinstance(a, UserRewardAllocation)]

    @property
    def platform_allocation(self) -> Optional["PlatformShareAllocation"]:
        for allocation in self.allocations:
            if isinstance(allocation, PlatformShareAllocation):
                return allocation
        return None

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id}, deal_id={self.deal_id}, "
            f"base={self.base_amount_jpy})>"
        )


class Allocation(Base):
    """
    One line of a transaction's split.

    Allocations live in their own table so payout requests can address
    them by id regardless of which transaction owns them.
    """

    __tablename__ = "allocations"

    id: Mapped[int] = mapped_column(primary_key=True)
    transaction_id: Mapped[int] = mapped_column(
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    recipient_type: Mapped[RecipientType] = mapped_column(
        SQLAlchemyEnum(
            RecipientType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    label: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    amount_jpy: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    transaction: Mapped["Transaction"] = relationship(
        "Transaction",
        back_populates="allocations",
    )

    __mapper_args__ = {
        "polymorphic_on": "recipient_type",
    }

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__}(id={self.id}, "
            f"transaction_id={self.transaction_id}, amount={self.amount_jpy})>"
        )


class UserRewardAllocation(Allocation):
    """Reward owed to an agency or connector."""

    # Single-table inheritance: these columns must stay nullable because
    # platform rows share the table.
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
        index=True,
    )
    user_role: Mapped[UserRole] = mapped_column(
        SQLAlchemyEnum(
            UserRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )
    rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 4),
        nullable=True,
    )
    base_amount_jpy: Mapped[int] = mapped_column(
        BigInteger,
        nullable=True,
    )
    status: Mapped[RewardStatus] = mapped_column(
        SQLAlchemyEnum(
            RewardStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
        index=True,
    )
    payout_request_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("payout_requests.id"),
        nullable=True,
        index=True,
    )

    payout_request: Mapped[Optional["PayoutRequest"]] = relationship(
        "PayoutRequest",
        back_populates="allocations",
    )

    __mapper_args__ = {
        "polymorphic_identity": RecipientType.USER_REWARD,
        "polymorphic_load": "inline",
    }

    @property
    def is_pending_payout(self) -> bool:
        """Confirmed and already claimed by a payout request."""
        return self.status == RewardStatus.CONFIRMED and self.payout_request_id is not None


class PlatformShareAllocation(Allocation):
    """Platform remainder. Informational, never paid out."""

    __mapper_args__ = {
        "polymorphic_identity": RecipientType.PLATFORM_SHARE,
        "polymorphic_load": "inline",
    }
