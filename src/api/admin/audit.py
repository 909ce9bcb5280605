"""Admin audit log API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.auth.dependencies import require_operator
from src.db import get_db
from src.models import AuditAction, AuditLog, User
from src.schemas.audit import AuditLogResponse
from src.schemas.common import Page

router = APIRouter(prefix="/audit")


@router.get("/list", response_model=Page[AuditLogResponse])
async def list_audit_logs(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_operator),
    user_id: Optional[int] = Query(None),
    action: Optional[AuditAction] = Query(None),
    target_type: Optional[str] = Query(None),
    target_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
):
    """List audit logs with filters, newest first."""
    query = select(AuditLog).options(selectinload(AuditLog.user))

    if user_id:
        query = query.where(AuditLog.user_id == user_id)

    if action:
        query = query.where(AuditLog.action == action)

    if target_type:
        query = query.where(AuditLog.target_type == target_type)

    if target_id:
        query = query.where(AuditLog.target_id == target_id)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    logs = result.scalars().all()

    return Page[AuditLogResponse](
        items=[
            AuditLogResponse(
                id=log.id,
                user_id=log.user_id,
                user_name=log.user.display_name if log.user else None,
                action=log.action,
                detail=log.detail,
                target_type=log.target_type,
                target_id=log.target_id,
                action_metadata=log.action_metadata,
                ip_address=log.ip_address,
                created_at=log.created_at,
            )
            for log in logs
        ],
        total=total or 0,
        page=page,
        per_page=per_page,
        pages=(total + per_page - 1) // per_page if total else 0,
    )


@router.get("/actions")
async def list_audit_actions(
    current_user: User = Depends(require_operator),
):
    """List all possible audit actions."""
    return {
        "actions": [action.value for action in AuditAction]
    }
