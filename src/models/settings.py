"""
SystemSettings model holding the commission rates.
"""

from decimal import Decimal

from sqlalchemy import BigInteger, CheckConstraint, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, TimestampMixin

SETTINGS_ROW_ID = 1


class SystemSettings(Base, TimestampMixin):
    """
    Singleton row with the rates and payout threshold.

    Created on application startup from config defaults and changed only
    by the operator afterwards. Transactions copy the rates they used,
    so editing this row never touches existing rewards.
    """

    __tablename__ = "system_settings"
    __table_args__ = (
        CheckConstraint("id = 1", name="ck_system_settings_singleton"),
        CheckConstraint(
            "connector_rate <= overall_rate",
            name="ck_system_settings_connector_rate",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        default=SETTINGS_ROW_ID,
    )
    overall_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 4),
        nullable=False,
        comment="Agency + connector reward rate as a fraction",
    )
    connector_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 4),
        nullable=False,
        comment="Connector part of overall_rate",
    )
    min_payout_jpy: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<SystemSettings(overall={self.overall_rate}, "
            f"connector={self.connector_rate}, min_payout={self.min_payout_jpy})>"
        )
