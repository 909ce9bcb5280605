"""
PayoutRequest model for batched reward withdrawals.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base

if TYPE_CHECKING:
    from src.models.ledger import UserRewardAllocation
    from src.models.user import User


class PayoutStatus(str, Enum):
    """Status of a payout request."""
    REQUESTED = "requested"
    PAID = "paid"


class PayoutRequest(Base):
    """
    A partner's claim on all of their confirmed, unclaimed allocations.

    The amount is frozen when the request is created. Every referenced
    allocation belongs to user_id and was confirmed and unclaimed at
    request time.
    """

    __tablename__ = "payout_requests"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    amount_jpy: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )
    status: Mapped[PayoutStatus] = mapped_column(
        SQLAlchemyEnum(
            PayoutStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=PayoutStatus.REQUESTED,
        nullable=False,
        index=True,
    )
    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    user: Mapped["User"] = relationship("User")
    allocations: Mapped[List["UserRewardAllocation"]] = relationship(
        "UserRewardAllocation",
        back_populates="payout_request",
        order_by="UserRewardAllocation.id",
        lazy="selectin",
    )

    @property
    def allocation_ids(self) -> List[int]:
        return [a.id for a in self.allocations]

    def __repr__(self) -> str:
        return (
            f"<PayoutRequest(id={self.id}, user_id={self.user_id}, "
            f"amount={self.amount_jpy}, status={self.status})>"
        )
