"""Partner account schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.models.user import UserRole


class PartnerCreate(BaseModel):
    """Create an agency or connector account."""

    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6, max_length=100)
    display_name: str = Field(..., min_length=1, max_length=100)
    role: UserRole
    email: Optional[str] = Field(None, max_length=255)
    agency_id: Optional[int] = None
    introduced_by_id: Optional[int] = None


class AgencyAssignment(BaseModel):
    agency_id: int


class PartnerResponse(BaseModel):
    """Partner information for the admin view."""

    id: int
    username: str
    display_name: str
    role: UserRole
    email: Optional[str] = None
    is_active: bool
    agency_id: Optional[int] = None
    introduced_by_id: Optional[int] = None
    invite_code: Optional[str] = None
    created_at: Optional[datetime] = None
    last_active_at: Optional[datetime] = None

    # Stats
    sales_jpy: int = 0

    model_config = {"from_attributes": True}


class ProfileResponse(BaseModel):
    """Current user's own profile."""

    id: int
    username: str
    display_name: str
    role: UserRole
    agency_id: Optional[int] = None

    model_config = {"from_attributes": True}
