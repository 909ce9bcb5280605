"""
Partner account administration.

Agencies and connectors are created by the operator. A connector must
belong to an agency before any of its deals can be finalized.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.permissions import Permission, authorize
from src.models import PARTNER_ROLES, AuditAction, User, UserRole, generate_invite_code
from src.services.exceptions import InvalidStatus, NotFound, UsernameTaken
from src.utils.password import hash_password
from src.utils.audit import log_action

logger = logging.getLogger(__name__)


async def list_partners(db: AsyncSession, role: Optional[UserRole] = None) -> List[User]:
    query = select(User).where(User.role.in_(PARTNER_ROLES)).order_by(User.id)
    if role is not None:
        query = query.where(User.role == role)
    result = await db.execute(query)
    return list(result.scalars().all())


async def _get_partner(db: AsyncSession, user_id: int, role: UserRole) -> User:
    user = await db.get(User, user_id)
    if user is None or user.role != role:
        raise NotFound(f"{role.value.capitalize()} {user_id} not found")
    return user


async def create_partner(
    db: AsyncSession,
    actor: User,
    username: str,
    password: str,
    display_name: str,
    role: UserRole,
    email: Optional[str] = None,
    agency_id: Optional[int] = None,
    introduced_by_id: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> User:
    """
    Create an agency or connector account (operator only).

    Agencies get an invite code. A connector may be attached to its
    agency right away or later with set_connector_agency().

    Raises:
        Forbidden: actor is not an operator
        InvalidStatus: role is not a partner role
        UsernameTaken: username already exists
        NotFound: agency_id does not name an agency
    """
    authorize(actor, Permission.MANAGE_PARTNERS)

    try:
        role = UserRole(role)
    except ValueError:
        raise InvalidStatus(f"Unknown role: {role}")
    if role not in PARTNER_ROLES:
        raise InvalidStatus(f"Role '{role.value}' is not a partner role")

    existing = await db.execute(select(User).where(User.username == username))
    if existing.scalar_one_or_none():
        raise UsernameTaken()

    if agency_id is not None:
        if role != UserRole.CONNECTOR:
            raise InvalidStatus("Only connectors belong to an agency")
        await _get_partner(db, agency_id, UserRole.AGENCY)

    partner = User(
        username=username,
        password_hash=hash_password(password),
        role=role,
        display_name=display_name,
        email=email,
        is_active=True,
        agency_id=agency_id,
        introduced_by_id=introduced_by_id,
        invite_code=generate_invite_code() if role == UserRole.AGENCY else None,
    )
    db.add(partner)
    await db.flush()

    await log_action(
        db=db,
        user_id=actor.id,
        action=AuditAction.CREATE_PARTNER,
        detail=f"Created {role.value} {username}",
        target_type="user",
        target_id=partner.id,
        action_metadata={"username": username, "role": role.value, "agency_id": agency_id},
        ip_address=ip_address,
    )

    logger.info(f"Partner {partner.id} ({role.value}) created by user {actor.id}")
    return partner


async def set_connector_agency(
    db: AsyncSession,
    actor: User,
    connector_id: int,
    agency_id: int,
    ip_address: Optional[str] = None,
) -> User:
    """
    Attach a connector to an agency (operator only).

    Only future finalizations are affected; existing transactions keep
    the agency they were credited to.
    """
    authorize(actor, Permission.MANAGE_PARTNERS)
    connector = await _get_partner(db, connector_id, UserRole.CONNECTOR)
    agency = await _get_partner(db, agency_id, UserRole.AGENCY)

    previous = connector.agency_id
    connector.agency_id = agency.id
    await db.flush()

    await log_action(
        db=db,
        user_id=actor.id,
        action=AuditAction.SET_CONNECTOR_AGENCY,
        detail=f"Connector {connector.id} assigned to agency {agency.id}",
        target_type="user",
        target_id=connector.id,
        action_metadata={"from": previous, "to": agency.id},
        ip_address=ip_address,
    )

    logger.info(f"Connector {connector.id} moved to agency {agency.id} by user {actor.id}")
    return connector
