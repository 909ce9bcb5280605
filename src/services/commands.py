"""
Command boundary.

Wraps a service call so the caller always gets an ActionResult: the
session is committed on success and rolled back on a CommissionError.
Unexpected exceptions still propagate.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.schemas.common import ActionResult
from src.services.exceptions import ERROR_STATUS_CODES, CommissionError

logger = logging.getLogger(__name__)


def _entity_id(value: Any) -> Optional[int]:
    entity_id = getattr(value, "id", None)
    return entity_id if isinstance(entity_id, int) else None


async def run_command(
    db: AsyncSession,
    operation: Awaitable[Any],
    success_message: str = "Done",
    describe: Optional[Callable[[Any], str]] = None,
) -> ActionResult:
    """
    Execute one command as an all-or-nothing unit.

    Args:
        db: Session the operation runs in
        operation: Awaitable service call, e.g. finalize_deal(db, ...)
        success_message: Message for a successful result
        describe: Optional callback building the message from the return value

    Returns:
        ActionResult with ok, message, error code and entity id
    """
    try:
        value = await operation
        await db.commit()
    except CommissionError as e:
        await db.rollback()
        logger.warning(f"Command refused ({e.code}): {e.message}")
        return ActionResult(ok=False, message=e.message, error=e.code)

    message = describe(value) if describe else success_message
    return ActionResult(ok=True, message=message, id=_entity_id(value))


def status_code_for(result: ActionResult) -> int:
    """HTTP status matching a result's error code."""
    if result.ok:
        return 200
    return ERROR_STATUS_CODES.get(result.error, CommissionError.status_code)
