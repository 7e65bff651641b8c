"""seed roles and currency types

Revision ID: 8c5e0b2f41a9
Revises: 3f2a9c1d7b64
Create Date: 2026-10-19 09:05:00.000000
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "8c5e0b2f41a9"
down_revision = "3f2a9c1d7b64"
branch_labels = None
depends_on = None


ROLES = {
    "manager": "Full access: users, roles, wallets, rates and prices",
    "treasurer": "Holds treasury cash and hands out custody to cashiers",
    "cashier": "Accepts custody and records exchange trades",
    "validator": "Reviews recorded activity",
}

CURRENCIES = [
    ("USD", "US Dollar", "$"),
    ("LYD", "Libyan Dinar", "LD"),
    ("EUR", "Euro", "€"),
    ("USDT", "Tether", "USDT"),
]

roles_table = sa.table(
    "roles",
    sa.column("id", sa.Uuid()),
    sa.column("name", sa.String()),
    sa.column("description", sa.String()),
    sa.column("created_at", sa.DateTime(timezone=True)),
)

currency_types_table = sa.table(
    "currency_types",
    sa.column("code", sa.String()),
    sa.column("name", sa.String()),
    sa.column("symbol", sa.String()),
    sa.column("created_at", sa.DateTime(timezone=True)),
)


def upgrade() -> None:
    now = datetime.now(timezone.utc)
    op.bulk_insert(
        roles_table,
        [
            {"id": uuid.uuid4(), "name": name, "description": description, "created_at": now}
            for name, description in ROLES.items()
        ],
    )
    op.bulk_insert(
        currency_types_table,
        [
            {"code": code, "name": name, "symbol": symbol, "created_at": now}
            for code, name, symbol in CURRENCIES
        ],
    )


def downgrade() -> None:
    op.execute(currency_types_table.delete().where(currency_types_table.c.code.in_([c[0] for c in CURRENCIES])))
    op.execute(roles_table.delete().where(roles_table.c.name.in_(list(ROLES))))
