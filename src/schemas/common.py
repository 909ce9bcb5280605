"""Shared response schemas."""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ActionResult(BaseModel):
    """
    Outcome of a state-changing command.

    Failed commands never leave partial changes behind; message is safe
    to show to the user as-is.
    """

    ok: bool
    message: str = Field(default="")
    error: Optional[str] = Field(default=None, description="Error code when ok is false")
    id: Optional[int] = Field(default=None, description="ID of the created/affected entity")


class Page(BaseModel, Generic[T]):
    """Paginated list response."""

    items: List[T]
    total: int
    page: int
    per_page: int
    pages: int
