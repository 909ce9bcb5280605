"""
Password hashing for operator and partner accounts (bcrypt via passlib).
"""

from passlib.context import CryptContext
from passlib.exc import UnknownHashError

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=12,
    bcrypt__min_rounds=12,
)


def hash_password(password: str) -> str:
    """Hash a plain-text password."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a plain-text password against a stored hash.

    A malformed or foreign hash counts as a mismatch.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (UnknownHashError, ValueError):
        return False


def needs_rehash(hashed_password: str) -> bool:
    """True when the hash was made with outdated settings."""
    try:
        return pwd_context.needs_update(hashed_password)
    except (UnknownHashError, ValueError):
        return False
