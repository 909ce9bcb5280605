"""
Deal schemas.

Status values are validated against the product type by the service
layer, so requests carry them as plain strings.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.models.deal import DealSource, DealStatus
from src.models.product import ProductType


class DealCreateRequest(BaseModel):
    """Manual deal entry by a connector."""

    product_id: int
    customer_company_name: str = Field(..., min_length=1, max_length=200)
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_email: str = Field(..., min_length=3, max_length=255)
    customer_phone: Optional[str] = Field(None, max_length=50)
    memo: Optional[str] = Field(None, max_length=2000)


class ReferralDealRequest(DealCreateRequest):
    """Deal submitted by a customer through a connector's referral link."""

    connector_id: int


class DealStatusUpdateRequest(BaseModel):
    status: str = Field(..., min_length=1, max_length=50)


class DealFinalizeRequest(BaseModel):
    """Confirm the sale. closing_date is YYYY-MM-DD."""

    final_sale_amount_jpy: int
    closing_date: str


class DealResponse(BaseModel):
    """Deal as shown to the connector, its agency and the operator."""

    id: int
    connector_id: int
    product_id: int
    product_name: Optional[str] = None
    product_type: Optional[ProductType] = None

    customer_company_name: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    memo: Optional[str] = None

    source: DealSource
    status: DealStatus
    locked: bool

    final_sale_amount_jpy: Optional[int] = None
    closing_date: Optional[date] = None
    finalized_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_deal(cls, deal) -> "DealResponse":
        product = deal.product
        return cls(
            id=deal.id,
            connector_id=deal.connector_id,
            product_id=deal.product_id,
            product_name=product.name if product else None,
            product_type=product.product_type if product else None,
            customer_company_name=deal.customer_company_name,
            customer_name=deal.customer_name,
            customer_email=deal.customer_email,
            customer_phone=deal.customer_phone,
            memo=deal.memo,
            source=deal.source,
            status=deal.status,
            locked=deal.locked,
            final_sale_amount_jpy=deal.final_sale_amount_jpy,
            closing_date=deal.closing_date,
            finalized_at=deal.finalized_at,
            created_at=deal.created_at,
        )
