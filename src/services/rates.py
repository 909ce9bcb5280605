"""
Commission rate configuration.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.permissions import Permission, authorize
from src.config import settings
from src.models import AuditAction, SETTINGS_ROW_ID, SystemSettings, User
from src.services.commission import MAX_AMOUNT_JPY, RateLike, validate_rates
from src.services.exceptions import InvalidAmount, InvalidRateConfiguration, RateConfigMissing
from src.utils.audit import log_action

logger = logging.getLogger(__name__)

# Settings and transaction rate columns are Numeric(5, 4)
RATE_PLACES = 4
RATE_QUANTUM = Decimal("0.0001")


@dataclass(frozen=True)
class RateSnapshot:
    """Rates and payout threshold as read at one point in time."""

    overall_rate: Decimal
    connector_rate: Decimal
    min_payout_jpy: int

    @property
    def agency_rate(self) -> Decimal:
        return self.overall_rate - self.connector_rate


def validate_stored_rates(overall_rate: RateLike, connector_rate: RateLike) -> Tuple[Decimal, Decimal]:
    """
    Check a rate pair before it is stored.

    Same rules as validate_rates, and a rate with more decimal places
    than the column holds is refused instead of being rounded.
    """
    overall, connector = validate_rates(overall_rate, connector_rate)
    for name, rate in (("Overall", overall), ("Connector", connector)):
        if rate != rate.quantize(RATE_QUANTUM):
            raise InvalidRateConfiguration(
                f"{name} rate allows at most {RATE_PLACES} decimal places"
            )
    return overall, connector


async def _get_settings_row(db: AsyncSession) -> SystemSettings:
    row = await db.get(SystemSettings, SETTINGS_ROW_ID)
    if row is None:
        raise RateConfigMissing(
            "system_settings row is missing; ensure_system_settings() must run at startup"
        )
    return row


async def get_rate_config(db: AsyncSession) -> RateSnapshot:
    """Read the current rates. A missing settings row is fatal."""
    row = await _get_settings_row(db)
    return RateSnapshot(
        overall_rate=Decimal(row.overall_rate),
        connector_rate=Decimal(row.connector_rate),
        min_payout_jpy=row.min_payout_jpy,
    )


async def ensure_system_settings(db: AsyncSession) -> SystemSettings:
    """Create the settings singleton from config defaults if absent."""
    row = await db.get(SystemSettings, SETTINGS_ROW_ID)
    if row is not None:
        return row

    overall, connector = validate_stored_rates(
        settings.default_overall_rate,
        settings.default_connector_rate,
    )
    row = SystemSettings(
        id=SETTINGS_ROW_ID,
        overall_rate=overall,
        connector_rate=connector,
        min_payout_jpy=settings.min_payout_jpy,
    )
    db.add(row)
    await db.flush()
    logger.info(
        f"Created commission settings: overall={overall}, connector={connector}, "
        f"min_payout={settings.min_payout_jpy}"
    )
    return row


async def set_commission_rates(
    db: AsyncSession,
    actor: User,
    overall_rate: RateLike,
    connector_rate: RateLike,
    min_payout_jpy: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> RateSnapshot:
    """
    Change the commission rates (operator only).

    Existing transactions keep the rates they were created with.

    Raises:
        Forbidden: actor is not an operator
        InvalidRateConfiguration: rates out of range, connector > overall,
            or more than four decimal places
        InvalidAmount: min_payout_jpy negative or beyond the amount columns
    """
    authorize(actor, Permission.SET_RATES)
    overall, connector = validate_stored_rates(overall_rate, connector_rate)
    if min_payout_jpy is not None and not 0 <= min_payout_jpy <= MAX_AMOUNT_JPY:
        raise InvalidAmount("Minimum payout must be between 0 and the largest storable amount")

    row = await _get_settings_row(db)
    previous = {
        "overall_rate": str(row.overall_rate),
        "connector_rate": str(row.connector_rate),
        "min_payout_jpy": row.min_payout_jpy,
    }

    row.overall_rate = overall
    row.connector_rate = connector
    if min_payout_jpy is not None:
        row.min_payout_jpy = min_payout_jpy

    await log_action(
        db=db,
        user_id=actor.id,
        action=AuditAction.UPDATE_RATES,
        detail=f"Rates set to overall {overall}, connector {connector}",
        target_type="settings",
        target_id=SETTINGS_ROW_ID,
        action_metadata={
            "previous": previous,
            "overall_rate": str(overall),
            "connector_rate": str(connector),
            "min_payout_jpy": row.min_payout_jpy,
        },
        ip_address=ip_address,
    )
    await db.flush()

    logger.info(f"Commission rates updated by user {actor.id}: {overall}/{connector}")
    return RateSnapshot(
        overall_rate=overall,
        connector_rate=connector,
        min_payout_jpy=row.min_payout_jpy,
    )
