"""
Product model for the items partners sell.

Catalog management happens elsewhere; the commission engine only needs
the product type (it drives the deal status policy) and a snapshot of
the listing at finalization time.
"""

from enum import Enum
from typing import Optional

from sqlalchemy import BigInteger, Boolean, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, TimestampMixin


class ProductType(str, Enum):
    """Product type. Each type has its own deal status vocabulary."""
    SIGNAGE = "signage"                    # Window-glass signage installation
    HOTEL_MEMBERSHIP = "hotel_membership"  # Hotel membership, settled on payment
    AD_SLOT = "ad_slot"                    # Advertising slot


class Product(Base, TimestampMixin):
    """A sellable product listed on the marketplace."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Display category (signage, hotel, ad space)",
    )
    product_type: Mapped[ProductType] = mapped_column(
        SQLAlchemyEnum(
            ProductType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    supplier_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    list_price_jpy: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Reference price in yen",
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    is_public: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def snapshot(self) -> dict:
        """Listing data frozen into a transaction at finalization."""
        return {
            "product_id": self.id,
            "name": self.name,
            "category": self.category,
            "type": self.product_type.value,
            "supplier_name": self.supplier_name,
            "list_price_jpy": self.list_price_jpy,
        }

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', type={self.product_type})>"
