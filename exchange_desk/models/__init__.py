"""
SQLAlchemy ORM models package.

All models are imported here so that Base.metadata knows every table before
Alembic compares them with the database, and other modules can import from
exchange_desk.models directly.
"""

from exchange_desk.models.role import Role, RoleName  # noqa: F401
from exchange_desk.models.user import User  # noqa: F401
from exchange_desk.models.currency_type import CurrencyType  # noqa: F401
from exchange_desk.models.wallet import Wallet, WalletCurrency  # noqa: F401
from exchange_desk.models.custody import CashCustody, CustodyStatus  # noqa: F401
from exchange_desk.models.notification import Notification, NotificationType  # noqa: F401
from exchange_desk.models.debt import Debt  # noqa: F401
from exchange_desk.models.transaction import Transaction, TransactionType  # noqa: F401
from exchange_desk.models.exchange_rate import ExchangeRate, ManagerPrice  # noqa: F401
