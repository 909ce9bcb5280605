"""Commission rate schemas."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class RateConfigResponse(BaseModel):
    """Current commission rates."""

    overall_rate: Decimal
    connector_rate: Decimal
    agency_rate: Decimal
    min_payout_jpy: int


class RateConfigUpdate(BaseModel):
    """
    Update commission rates.

    Range and ordering checks are done by the service so the result
    comes back as a regular ActionResult.
    """

    overall_rate: Decimal
    connector_rate: Decimal
    min_payout_jpy: Optional[int] = Field(None)
