"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-17

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_ROLE = postgresql.ENUM("operator", "agency", "connector", name="userrole", create_type=False)
PRODUCT_TYPE = postgresql.ENUM("signage", "hotel_membership", "ad_slot", name="producttype", create_type=False)
DEAL_SOURCE = postgresql.ENUM("referral", "manual", name="dealsource", create_type=False)
DEAL_STATUS = postgresql.ENUM(
    "lead", "negotiating", "contracted", "installed",
    "applied", "under_review", "payment_completed", "published",
    "lost",
    name="dealstatus",
    create_type=False,
)
RECIPIENT_TYPE = postgresql.ENUM("user_reward", "platform_share", name="recipienttype", create_type=False)
REWARD_STATUS = postgresql.ENUM("unconfirmed", "confirmed", "paid", name="rewardstatus", create_type=False)
PAYOUT_STATUS = postgresql.ENUM("requested", "paid", name="payoutstatus", create_type=False)
AUDIT_ACTION = postgresql.ENUM(
    "login", "logout",
    "create_deal", "update_deal_status", "finalize_deal",
    "confirm_rewards", "request_payout", "mark_payout_paid",
    "update_rates", "create_partner", "set_connector_agency",
    name="auditaction",
    create_type=False,
)

ENUMS = (
    USER_ROLE,
    PRODUCT_TYPE,
    DEAL_SOURCE,
    DEAL_STATUS,
    RECIPIENT_TYPE,
    REWARD_STATUS,
    PAYOUT_STATUS,
    AUDIT_ACTION,
)


def upgrade() -> None:
    """Create all initial tables."""
    bind = op.get_bind()
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", USER_ROLE, nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=True),
        sa.Column("is_active", sa.Boolean(), default=True, nullable=False),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("invite_code", sa.String(64), nullable=True),
        sa.Column("agency_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("introduced_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_invite_code", "users", ["invite_code"], unique=True)
    op.create_index("ix_users_agency_id", "users", ["agency_id"])

    # Products table
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("product_type", PRODUCT_TYPE, nullable=False),
        sa.Column("supplier_name", sa.String(255), nullable=True),
        sa.Column("list_price_jpy", sa.BigInteger(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_public", sa.Boolean(), default=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_products_product_type", "products", ["product_type"])

    # Deals table
    op.create_table(
        "deals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("connector_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("customer_company_name", sa.String(255), nullable=False),
        sa.Column("customer_name", sa.String(100), nullable=False),
        sa.Column("customer_email", sa.String(255), nullable=False),
        sa.Column("customer_phone", sa.String(50), nullable=True),
        sa.Column("memo", sa.Text(), nullable=True),
        sa.Column("source", DEAL_SOURCE, nullable=False),
        sa.Column("status", DEAL_STATUS, nullable=False),
        sa.Column("locked", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("final_sale_amount_jpy", sa.BigInteger(), nullable=True),
        sa.Column("closing_date", sa.Date(), nullable=True),
        sa.Column("finalized_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_deals_connector_id", "deals", ["connector_id"])
    op.create_index("ix_deals_product_id", "deals", ["product_id"])
    op.create_index("ix_deals_status", "deals", ["status"])

    # Transactions table
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("deal_id", sa.Integer(), sa.ForeignKey("deals.id"), nullable=False),
        sa.Column("closing_date", sa.Date(), nullable=False),
        sa.Column("product_snapshot", sa.JSON(), nullable=False),
        sa.Column("connector_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("agency_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("sale_amount_jpy", sa.BigInteger(), nullable=False),
        sa.Column("base_amount_jpy", sa.BigInteger(), nullable=False),
        sa.Column("overall_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("connector_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("agency_reward_jpy", sa.BigInteger(), nullable=False),
        sa.Column("connector_reward_jpy", sa.BigInteger(), nullable=False),
        sa.Column("platform_share_jpy", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    # One transaction per deal
    op.create_index("ix_transactions_deal_id", "transactions", ["deal_id"], unique=True)
    op.create_index("ix_transactions_connector_id", "transactions", ["connector_id"])
    op.create_index("ix_transactions_agency_id", "transactions", ["agency_id"])

    # Payout requests table
    op.create_table(
        "payout_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("amount_jpy", sa.BigInteger(), nullable=False),
        sa.Column("status", PAYOUT_STATUS, nullable=False),
        sa.Column("requested_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_payout_requests_user_id", "payout_requests", ["user_id"])
    op.create_index("ix_payout_requests_status", "payout_requests", ["status"])

    # Allocations table (user rewards and platform share rows)
    op.create_table(
        "allocations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "transaction_id",
            sa.Integer(),
            sa.ForeignKey("transactions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("recipient_type", RECIPIENT_TYPE, nullable=False),
        sa.Column("label", sa.String(100), nullable=False),
        sa.Column("amount_jpy", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("user_role", USER_ROLE, nullable=True),
        sa.Column("rate", sa.Numeric(5, 4), nullable=True),
        sa.Column("base_amount_jpy", sa.BigInteger(), nullable=True),
        sa.Column("status", REWARD_STATUS, nullable=True),
        sa.Column("payout_request_id", sa.Integer(), sa.ForeignKey("payout_requests.id"), nullable=True),
    )
    op.create_index("ix_allocations_transaction_id", "allocations", ["transaction_id"])
    op.create_index("ix_allocations_user_id", "allocations", ["user_id"])
    op.create_index("ix_allocations_status", "allocations", ["status"])
    op.create_index("ix_allocations_payout_request_id", "allocations", ["payout_request_id"])

    # System settings singleton
    op.create_table(
        "system_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("overall_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("connector_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("min_payout_jpy", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("id = 1", name="ck_system_settings_singleton"),
        sa.CheckConstraint("connector_rate <= overall_rate", name="ck_system_settings_connector_rate"),
    )

    # Audit logs table
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("action", AUDIT_ACTION, nullable=False),
        sa.Column("detail", sa.Text(), nullable=False, server_default=""),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("audit_logs")
    op.drop_table("system_settings")
    op.drop_table("allocations")
    op.drop_table("payout_requests")
    op.drop_table("transactions")
    op.drop_table("deals")
    op.drop_table("products")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)
