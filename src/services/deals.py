"""
Deal lifecycle: intake, status updates and finalization.

Finalization is the one place money is created. It locks the deal with
a conditional UPDATE and inserts the transaction in the same database
transaction, so a double submit can never produce two transactions.
"""

import logging
import re
from datetime import date, datetime, timezone
from typing import Optional, Union

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.auth.permissions import Permission, authorize
from src.models import (
    ALLOWED_STATUSES,
    INITIAL_STATUS,
    REVENUE_CONFIRMED_STATUS,
    AuditAction,
    Deal,
    DealSource,
    DealStatus,
    PlatformShareAllocation,
    Product,
    Transaction,
    User,
    UserRewardAllocation,
    UserRole,
)
from src.services.commission import MAX_AMOUNT_JPY, compute_split, initial_reward_status
from src.services.exceptions import (
    DealLocked,
    InvalidAmount,
    InvalidDate,
    InvalidStatus,
    NotFound,
)
from src.services.rates import get_rate_config
from src.utils.audit import log_action

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

AGENCY_LABEL = "Agency reward"
CONNECTOR_LABEL = "Connector reward"
PLATFORM_LABEL = "Platform share"


def parse_closing_date(value: Union[date, str]) -> date:
    """Accept a date or a YYYY-MM-DD string that is a real calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise InvalidDate()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidDate(f"{value} is not a calendar date")


def validate_sale_amount(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidAmount()
    if value > MAX_AMOUNT_JPY:
        raise InvalidAmount(f"Sale amount must not exceed {MAX_AMOUNT_JPY} JPY")
    return value


async def get_deal(db: AsyncSession, deal_id: int) -> Deal:
    """Load a deal with its connector and product, or raise NotFound."""
    result = await db.execute(
        select(Deal)
        .options(
            selectinload(Deal.connector),
            selectinload(Deal.product),
        )
        .where(Deal.id == deal_id)
    )
    deal = result.scalar_one_or_none()
    if deal is None:
        raise NotFound(f"Deal {deal_id} not found")
    return deal


async def _create_deal(
    db: AsyncSession,
    connector: User,
    product_id: int,
    source: DealSource,
    customer_company_name: str,
    customer_name: str,
    customer_email: str,
    customer_phone: Optional[str],
    memo: Optional[str],
) -> Deal:
    product = await db.get(Product, product_id)
    if product is None:
        raise NotFound(f"Product {product_id} not found")

    deal = Deal(
        connector_id=connector.id,
        product=product,
        source=source,
        status=INITIAL_STATUS[product.product_type],
        locked=False,
        customer_company_name=customer_company_name,
        customer_name=customer_name,
        customer_email=customer_email,
        customer_phone=customer_phone,
        memo=memo,
    )
    db.add(deal)
    await db.flush()
    return deal


async def create_deal_from_referral(
    db: AsyncSession,
    connector_id: int,
    product_id: int,
    customer_company_name: str,
    customer_name: str,
    customer_email: str,
    customer_phone: Optional[str] = None,
    memo: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> Deal:
    """
    Register a deal submitted through a connector's referral link.

    The customer is anonymous, so the log entry has no actor.

    Raises:
        NotFound: connector or product does not exist
    """
    connector = await db.get(User, connector_id)
    if connector is None or connector.role != UserRole.CONNECTOR or not connector.is_active:
        raise NotFound(f"Connector {connector_id} not found")

    deal = await _create_deal(
        db,
        connector,
        product_id,
        DealSource.REFERRAL,
        customer_company_name,
        customer_name,
        customer_email,
        customer_phone,
        memo,
    )

    await log_action(
        db=db,
        user_id=None,
        action=AuditAction.CREATE_DEAL,
        detail=f"Referral deal for {customer_company_name}",
        target_type="deal",
        target_id=deal.id,
        action_metadata={"connector_id": connector.id, "source": DealSource.REFERRAL.value},
        ip_address=ip_address,
    )

    logger.info(f"Referral deal {deal.id} created for connector {connector.id}")
    return deal


async def create_deal_manual(
    db: AsyncSession,
    actor: User,
    product_id: int,
    customer_company_name: str,
    customer_name: str,
    customer_email: str,
    customer_phone: Optional[str] = None,
    memo: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> Deal:
    """
    Register a deal entered by a connector.

    Raises:
        Forbidden: actor is not a connector
        NotFound: product does not exist
    """
    authorize(actor, Permission.CREATE_DEAL)

    deal = await _create_deal(
        db,
        actor,
        product_id,
        DealSource.MANUAL,
        customer_company_name,
        customer_name,
        customer_email,
        customer_phone,
        memo,
    )

    await log_action(
        db=db,
        user_id=actor.id,
        action=AuditAction.CREATE_DEAL,
        detail=f"Manual deal for {customer_company_name}",
        target_type="deal",
        target_id=deal.id,
        action_metadata={"source": DealSource.MANUAL.value},
        ip_address=ip_address,
    )

    logger.info(f"Manual deal {deal.id} created by connector {actor.id}")
    return deal


async def update_deal_status(
    db: AsyncSession,
    actor: User,
    deal_id: int,
    new_status: Union[DealStatus, str],
    ip_address: Optional[str] = None,
) -> Deal:
    """
    Move an unlocked deal to another status of its product type.

    Intermediate statuses have no ordering; any allowed value may follow
    any other.

    Raises:
        NotFound: deal does not exist
        Forbidden: actor is not the connector, its agency or an operator
        DealLocked: deal is finalized
        InvalidStatus: status not allowed for the product type
    """
    deal = await get_deal(db, deal_id)
    authorize(actor, Permission.UPDATE_DEAL, deal)

    if deal.locked:
        raise DealLocked()

    try:
        target = DealStatus(new_status)
    except ValueError:
        raise InvalidStatus(f"Unknown status: {new_status}")

    allowed = ALLOWED_STATUSES[deal.product.product_type]
    if target not in allowed:
        raise InvalidStatus(
            f"Status '{target.value}' is not valid for {deal.product.product_type.value}"
        )

    previous = deal.status

    # Conditional write so a concurrent finalize wins cleanly
    result = await db.execute(
        update(Deal)
        .where(Deal.id == deal.id, Deal.locked.is_(False))
        .values(status=target)
    )
    if result.rowcount == 0:
        raise DealLocked()

    await log_action(
        db=db,
        user_id=actor.id,
        action=AuditAction.UPDATE_DEAL_STATUS,
        detail=f"Status {previous.value} -> {target.value}",
        target_type="deal",
        target_id=deal.id,
        action_metadata={"from": previous.value, "to": target.value},
        ip_address=ip_address,
    )

    logger.info(f"Deal {deal.id} status {previous.value} -> {target.value} by user {actor.id}")
    return deal


async def finalize_deal(
    db: AsyncSession,
    actor: User,
    deal_id: int,
    final_sale_amount_jpy: int,
    closing_date: Union[date, str],
    ip_address: Optional[str] = None,
) -> Transaction:
    """
    Confirm a deal's sale and create its transaction.

    In one database transaction:
    1. Lock the deal (UPDATE ... WHERE locked = false) and stamp the
       revenue-confirmed status, final amount and closing date
    2. Split the sale amount with the current rates
    3. Insert the transaction with agency, connector and platform
       allocations

    Raises:
        NotFound: deal (or the connector's agency) does not exist
        Forbidden: actor is not the connector, its agency or an operator
        DealLocked: deal was already finalized
        InvalidAmount: sale amount is not a positive int
        InvalidDate: closing date is not YYYY-MM-DD
    """
    deal = await get_deal(db, deal_id)
    authorize(actor, Permission.FINALIZE_DEAL, deal)

    if deal.locked:
        raise DealLocked()

    amount = validate_sale_amount(final_sale_amount_jpy)
    closed_on = parse_closing_date(closing_date)

    connector = deal.connector
    if connector.agency_id is None:
        raise NotFound(f"Connector {connector.id} has no agency")
    agency = await db.get(User, connector.agency_id)
    if agency is None or agency.role != UserRole.AGENCY:
        raise NotFound(f"Agency {connector.agency_id} not found")

    product = deal.product
    rates = await get_rate_config(db)
    split = compute_split(amount, rates.overall_rate, rates.connector_rate)

    # Check-and-set of the lock; zero rows means someone finalized first
    result = await db.execute(
        update(Deal)
        .where(Deal.id == deal.id, Deal.locked.is_(False))
        .values(
            locked=True,
            status=REVENUE_CONFIRMED_STATUS[product.product_type],
            final_sale_amount_jpy=amount,
            closing_date=closed_on,
            finalized_at=datetime.now(timezone.utc),
        )
    )
    if result.rowcount == 0:
        raise DealLocked()

    reward_status = initial_reward_status(product.product_type)

    transaction = Transaction(
        deal_id=deal.id,
        closing_date=closed_on,
        product_snapshot=product.snapshot(),
        connector_id=connector.id,
        agency_id=agency.id,
        sale_amount_jpy=amount,
        base_amount_jpy=split.base_amount,
        overall_rate=split.overall_rate,
        connector_rate=split.connector_rate,
        agency_reward_jpy=split.agency_amount,
        connector_reward_jpy=split.connector_amount,
        platform_share_jpy=split.platform_amount,
        allocations=[
            UserRewardAllocation(
                user_id=agency.id,
                user_role=UserRole.AGENCY,
                label=AGENCY_LABEL,
                rate=split.agency_rate,
                base_amount_jpy=split.base_amount,
                amount_jpy=split.agency_amount,
                status=reward_status,
            ),
            UserRewardAllocation(
                user_id=connector.id,
                user_role=UserRole.CONNECTOR,
                label=CONNECTOR_LABEL,
                rate=split.connector_rate,
                base_amount_jpy=split.base_amount,
                amount_jpy=split.connector_amount,
                status=reward_status,
            ),
            PlatformShareAllocation(
                label=PLATFORM_LABEL,
                amount_jpy=split.platform_amount,
            ),
        ],
    )
    db.add(transaction)
    await db.flush()

    await log_action(
        db=db,
        user_id=actor.id,
        action=AuditAction.FINALIZE_DEAL,
        detail=(
            f"Sale {amount} JPY closed {closed_on.isoformat()}: "
            f"agency {split.agency_amount}, connector {split.connector_amount}, "
            f"platform {split.platform_amount}"
        ),
        target_type="transaction",
        target_id=transaction.id,
        action_metadata={
            "deal_id": deal.id,
            "overall_rate": str(split.overall_rate),
            "connector_rate": str(split.connector_rate),
        },
        ip_address=ip_address,
    )

    logger.info(
        f"Deal {deal.id} finalized by user {actor.id}: transaction {transaction.id}, "
        f"base {split.base_amount}"
    )
    return transaction
