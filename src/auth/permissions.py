"""
Capability checks for commission commands.

Every command asks one question, "may this actor do this to that
resource", through is_allowed / authorize instead of comparing role
strings inline.
"""

from enum import Enum
from typing import Any, Optional

from src.models.user import PARTNER_ROLES, UserRole
from src.services.exceptions import Forbidden


class Permission(str, Enum):
    """Actions guarded by a capability check."""
    CREATE_DEAL = "create_deal"
    UPDATE_DEAL = "update_deal"
    FINALIZE_DEAL = "finalize_deal"
    CONFIRM_REWARDS = "confirm_rewards"
    REQUEST_PAYOUT = "request_payout"
    SETTLE_PAYOUT = "settle_payout"
    SET_RATES = "set_rates"
    MANAGE_PARTNERS = "manage_partners"


OPERATOR_ONLY = frozenset({
    Permission.CONFIRM_REWARDS,
    Permission.SETTLE_PAYOUT,
    Permission.SET_RATES,
    Permission.MANAGE_PARTNERS,
})


def _can_manage_deal(actor, deal) -> bool:
    """Owning connector, the connector's agency, or an operator."""
    if deal is None:
        return False
    if actor.role == UserRole.OPERATOR:
        return True
    if actor.role == UserRole.CONNECTOR:
        return deal.connector_id == actor.id
    if actor.role == UserRole.AGENCY:
        return deal.connector.agency_id == actor.id
    return False


def is_allowed(actor, permission: Permission, resource: Optional[Any] = None) -> bool:
    """
    Decide whether actor may perform permission on resource.

    Args:
        actor: Acting user (None for anonymous/system callers)
        permission: Action being attempted
        resource: The deal for deal actions, the payee user for
            REQUEST_PAYOUT, unused otherwise

    Returns:
        True if allowed
    """
    if actor is None or not actor.is_active:
        return False

    if permission in OPERATOR_ONLY:
        return actor.role == UserRole.OPERATOR

    if permission == Permission.CREATE_DEAL:
        return actor.role == UserRole.CONNECTOR

    if permission in (Permission.UPDATE_DEAL, Permission.FINALIZE_DEAL):
        return _can_manage_deal(actor, resource)

    if permission == Permission.REQUEST_PAYOUT:
        return (
            actor.role in PARTNER_ROLES
            and resource is not None
            and resource.id == actor.id
        )

    return False


def authorize(actor, permission: Permission, resource: Optional[Any] = None) -> None:
    """Raise Forbidden unless is_allowed()."""
    if not is_allowed(actor, permission, resource):
        raise Forbidden()
