"""initial schema

Revision ID: 3f2a9c1d7b64
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f2a9c1d7b64"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False))
    return columns


def upgrade() -> None:
    op.create_table(
        "roles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=50), nullable=False, unique=True),
        sa.Column("description", sa.String(length=255)),
        *_timestamps(updated=False),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("phone", sa.String(length=30)),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role_id", sa.Uuid(), sa.ForeignKey("roles.id")),
        sa.Column("role_name", sa.String(length=50)),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role_id", "users", ["role_id"])

    op.create_table(
        "currency_types",
        sa.Column("code", sa.String(length=10), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("symbol", sa.String(length=10), nullable=False),
        *_timestamps(updated=False),
    )

    op.create_table(
        "wallets",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("is_treasury", sa.Boolean(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("users.id")),
        *_timestamps(),
    )

    op.create_table(
        "wallet_currencies",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "wallet_id", sa.Uuid(), sa.ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "currency_code", sa.String(length=10), sa.ForeignKey("currency_types.code"), nullable=False
        ),
        sa.Column("balance", sa.Numeric(18, 4), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("balance >= 0", name="ck_wallet_currencies_non_negative_balance"),
        sa.UniqueConstraint(
            "wallet_id", "currency_code", name="uq_wallet_currencies_wallet_currency"
        ),
    )
    op.create_index("ix_wallet_currencies_wallet_id", "wallet_currencies", ["wallet_id"])

    op.create_table(
        "cash_custody",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("treasurer_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("cashier_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("wallet_id", sa.Uuid(), sa.ForeignKey("wallets.id"), nullable=False),
        sa.Column(
            "currency_code", sa.String(length=10), sa.ForeignKey("currency_types.code"), nullable=False
        ),
        sa.Column("amount", sa.Numeric(18, 4), nullable=False),
        sa.Column("remaining_amount", sa.Numeric(18, 4), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("is_returned", sa.Boolean(), nullable=False),
        sa.Column("previous_custody_id", sa.Uuid(), sa.ForeignKey("cash_custody.id")),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_cash_custody_positive_amount"),
        sa.CheckConstraint("remaining_amount >= 0", name="ck_cash_custody_non_negative_remaining"),
    )
    op.create_index("ix_cash_custody_treasurer_id", "cash_custody", ["treasurer_id"])
    op.create_index("ix_cash_custody_cashier_id", "cash_custody", ["cashier_id"])
    op.create_index("ix_cash_custody_wallet_id", "cash_custody", ["wallet_id"])
    op.create_index("ix_cash_custody_status", "cash_custody", ["status"])
    op.create_index("ix_cash_custody_created_at", "cash_custody", ["created_at"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("reference_id", sa.Uuid()),
        sa.Column("requires_action", sa.Boolean(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("action_taken", sa.Boolean(), nullable=False),
        sa.Column("action_payload", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_reference_id", "notifications", ["reference_id"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    op.create_table(
        "debts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("person_name", sa.String(length=200), nullable=False),
        sa.Column("wallet_id", sa.Uuid(), sa.ForeignKey("wallets.id"), nullable=False),
        sa.Column(
            "currency_code", sa.String(length=10), sa.ForeignKey("currency_types.code"), nullable=False
        ),
        sa.Column("amount", sa.Numeric(18, 4), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("is_owed", sa.Boolean(), nullable=False),
        sa.Column("is_paid", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_debts_positive_amount"),
    )
    op.create_index("ix_debts_created_by", "debts", ["created_by"])
    op.create_index("ix_debts_wallet_id", "debts", ["wallet_id"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("wallet_id", sa.Uuid(), sa.ForeignKey("wallets.id")),
        sa.Column("currency_code", sa.String(length=10), nullable=False),
        sa.Column("amount", sa.Numeric(18, 4), nullable=False),
        sa.Column("exchange_currency_code", sa.String(length=10)),
        sa.Column("exchange_rate", sa.Numeric(18, 6)),
        sa.Column("total_amount", sa.Numeric(18, 4)),
        sa.Column("cashier_id", sa.Uuid(), sa.ForeignKey("users.id")),
        sa.Column("client_name", sa.String(length=200)),
        sa.Column("source", sa.String(length=200)),
        sa.Column("destination", sa.String(length=200)),
        sa.Column("reason", sa.String(length=255)),
        sa.Column("reference_custody_id", sa.Uuid(), sa.ForeignKey("cash_custody.id")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_transactions_positive_amount"),
    )
    op.create_index("ix_transactions_type", "transactions", ["type"])
    op.create_index("ix_transactions_wallet_id", "transactions", ["wallet_id"])
    op.create_index("ix_transactions_cashier_id", "transactions", ["cashier_id"])
    op.create_index(
        "ix_transactions_reference_custody_id", "transactions", ["reference_custody_id"]
    )
    op.create_index("ix_transactions_created_at", "transactions", ["created_at"])

    op.create_table(
        "exchange_rates",
        sa.Column(
            "currency_code", sa.String(length=10), sa.ForeignKey("currency_types.code"), primary_key=True
        ),
        sa.Column("rate_to_usd", sa.Numeric(18, 6), nullable=False),
        sa.Column("rate_to_lyd", sa.Numeric(18, 6), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "manager_prices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("buy_price", sa.Numeric(18, 6), nullable=False),
        sa.Column("sell_price", sa.Numeric(18, 6), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("manager_prices")
    op.drop_table("exchange_rates")
    op.drop_table("transactions")
    op.drop_table("debts")
    op.drop_table("notifications")
    op.drop_table("cash_custody")
    op.drop_table("wallet_currencies")
    op.drop_table("wallets")
    op.drop_table("currency_types")
    op.drop_table("users")
    op.drop_table("roles")
