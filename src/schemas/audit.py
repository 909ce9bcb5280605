"""Audit log schemas."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel

from src.models.audit import AuditAction


class AuditLogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    action: AuditAction
    detail: str
    target_type: Optional[str] = None
    target_id: Optional[int] = None
    action_metadata: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    created_at: datetime
