"""
FastAPI dependencies for authentication.

These only establish who the caller is and which area (admin or panel)
they may enter. Per-resource decisions are made by the services through
src.auth.permissions.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.jwt import get_token_from_request, verify_token
from src.db import get_db
from src.models import PARTNER_ROLES, User, UserRole


async def _user_from_request(request: Request, db: AsyncSession) -> Optional[User]:
    token = get_token_from_request(request)
    if not token:
        return None

    payload = verify_token(token)
    if not payload:
        return None

    return await db.get(User, payload.user_id)


async def get_current_user_optional(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    Get current user if a valid token is present.

    Returns None instead of raising. Use for routes that work with or
    without authentication.
    """
    user = await _user_from_request(request, db)
    if not user or not user.is_active:
        return None
    return user


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get current authenticated user.

    Raises 401 if not authenticated, 403 if the account is disabled.
    """
    if not get_token_from_request(request):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    user = await _user_from_request(request, db)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


async def require_operator(
    current_user: User = Depends(get_current_user),
) -> User:
    """Require the current user to be an operator."""
    if current_user.role != UserRole.OPERATOR:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Operator access required",
        )
    return current_user


async def require_partner(
    current_user: User = Depends(get_current_user),
) -> User:
    """Require the current user to be an agency or a connector."""
    if current_user.role not in PARTNER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Partner access required",
        )
    return current_user
