"""
Commission split calculation.

Rules (subtractive model):
- Connector: floor(base × connector_rate)
- Agency: floor(base × (overall_rate − connector_rate))
- Platform: whatever is left, so the three shares always sum to base

Rounding loss from the two floors always lands in the platform share,
never in a partner's reward.
"""

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import Dict, Tuple, Union

from src.models.ledger import RewardStatus
from src.models.product import ProductType
from src.services.exceptions import InvalidAmount, InvalidRateConfiguration

RateLike = Union[Decimal, float, int, str]

ZERO = Decimal("0")
ONE = Decimal("1")

# Largest yen amount the BIGINT amount columns hold
MAX_AMOUNT_JPY = 2**63 - 1

# Hotel memberships settle on payment, so their rewards are payable
# immediately. Every other product waits for operator confirmation.
INITIAL_REWARD_STATUS: Dict[ProductType, RewardStatus] = {
    ProductType.SIGNAGE: RewardStatus.UNCONFIRMED,
    ProductType.HOTEL_MEMBERSHIP: RewardStatus.CONFIRMED,
    ProductType.AD_SLOT: RewardStatus.UNCONFIRMED,
}


@dataclass(frozen=True)
class AllocationSplit:
    """Result of splitting a base amount."""

    base_amount: int
    overall_rate: Decimal
    connector_rate: Decimal
    connector_amount: int
    agency_amount: int
    platform_amount: int

    @property
    def agency_rate(self) -> Decimal:
        return self.overall_rate - self.connector_rate

    @property
    def total(self) -> int:
        return self.connector_amount + self.agency_amount + self.platform_amount


def to_rate(value: RateLike) -> Decimal:
    """Convert a rate to Decimal without picking up binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def validate_rates(overall_rate: RateLike, connector_rate: RateLike) -> Tuple[Decimal, Decimal]:
    """
    Check a rate pair and return it as Decimals.

    Raises:
        InvalidRateConfiguration: a rate is outside [0, 1] or the
            connector rate exceeds the overall rate
    """
    try:
        overall = to_rate(overall_rate)
        connector = to_rate(connector_rate)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidRateConfiguration("Rates must be numbers between 0 and 1")

    if not (overall.is_finite() and connector.is_finite()):
        raise InvalidRateConfiguration("Rates must be numbers between 0 and 1")
    if not ZERO <= overall <= ONE:
        raise InvalidRateConfiguration("Overall rate must be between 0 and 1")
    if not ZERO <= connector <= ONE:
        raise InvalidRateConfiguration("Connector rate must be between 0 and 1")
    if connector > overall:
        raise InvalidRateConfiguration()

    return overall, connector


def _floor_yen(amount: Decimal) -> int:
    return int(amount.to_integral_value(rounding=ROUND_FLOOR))


def compute_split(
    base_amount: int,
    overall_rate: RateLike,
    connector_rate: RateLike,
) -> AllocationSplit:
    """Split a base amount into connector, agency and platform shares.

    Args:
        base_amount: Non-negative amount in yen
        overall_rate: Combined agency + connector rate (e.g. 0.15)
        connector_rate: Connector part of overall_rate (e.g. 0.05)

    Returns:
        AllocationSplit whose three amounts sum to base_amount

    Raises:
        InvalidAmount: base_amount is negative or not an int
        InvalidRateConfiguration: see validate_rates
    """
    if isinstance(base_amount, bool) or not isinstance(base_amount, int) or base_amount < 0:
        raise InvalidAmount("Base amount must be a non-negative whole number of yen")

    overall, connector = validate_rates(overall_rate, connector_rate)

    connector_amount = _floor_yen(base_amount * connector)
    agency_amount = _floor_yen(base_amount * (overall - connector))
    platform_amount = max(0, base_amount - connector_amount - agency_amount)

    return AllocationSplit(
        base_amount=base_amount,
        overall_rate=overall,
        connector_rate=connector,
        connector_amount=connector_amount,
        agency_amount=agency_amount,
        platform_amount=platform_amount,
    )


def initial_reward_status(product_type: ProductType) -> RewardStatus:
    """Status new user allocations start in for this product type."""
    return INITIAL_REWARD_STATUS[product_type]
