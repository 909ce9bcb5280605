"""Authentication and authorization."""

from src.auth.dependencies import (
    get_current_user,
    get_current_user_optional,
    require_operator,
    require_partner,
)
from src.auth.jwt import create_access_token, verify_token
from src.auth.permissions import Permission, authorize, is_allowed

__all__ = [
    "create_access_token",
    "verify_token",
    "get_current_user",
    "get_current_user_optional",
    "require_operator",
    "require_partner",
    "Permission",
    "authorize",
    "is_allowed",
]
