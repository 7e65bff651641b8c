"""
Pure aggregation of custody records against wallets.

Records and wallets may be ORM objects or plain mappings; only the
``id``, ``wallet_id``, ``currency_code``, ``amount``, ``remaining_amount``,
``status`` and ``is_returned`` fields are read. A record counts for what the
cashier still holds: ``remaining_amount`` when the record carries one,
``amount`` otherwise. Wallet ids are compared and returned as strings.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal

from exchange_desk.models.custody import CustodyStatus

# Custody that is out with a cashier
ACTIVE_CUSTODY_STATUSES = frozenset({CustodyStatus.APPROVED.value})


def _field(record, name: str):
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _wallet_key(wallet) -> str:
    if isinstance(wallet, Mapping) or hasattr(wallet, "id"):
        return str(_field(wallet, "id"))
    return str(wallet)


def _held(record):
    remaining = _field(record, "remaining_amount")
    return _field(record, "amount") if remaining is None else remaining


def _counts(record, statuses) -> bool:
    if _field(record, "status") not in statuses:
        return False
    return not _field(record, "is_returned")


def calculate_custody_totals_by_wallet(
    records: Iterable,
    wallets: Iterable,
    statuses: Iterable[str] = ACTIVE_CUSTODY_STATUSES,
) -> dict[str, dict[str, Decimal]]:
    """
    Sum custody amounts per wallet and currency.

    Records missing a wallet, a currency or an amount, whose wallet is not
    among ``wallets``, whose status is not in ``statuses``, or that have been
    returned are skipped. Wallets with nothing counted are absent.
    """
    statuses = frozenset(statuses)
    known_wallets = {_wallet_key(wallet) for wallet in wallets}
    totals: dict[str, dict[str, Decimal]] = {}

    for record in records:
        wallet_id = _field(record, "wallet_id")
        currency_code = _field(record, "currency_code")
        amount = _held(record)
        if not wallet_id or not currency_code or not amount:
            continue
        if str(wallet_id) not in known_wallets:
            continue
        if not _counts(record, statuses):
            continue

        by_currency = totals.setdefault(str(wallet_id), {})
        by_currency[currency_code] = by_currency.get(currency_code, Decimal("0")) + Decimal(str(amount))

    return totals


def merge_wallet_with_custody(wallet_view: Mapping, totals: Mapping) -> dict:
    """
    Return a copy of ``wallet_view`` with ``custody_totals`` and
    ``total_with_custody`` (balance plus custody, per currency) added.

    The input is not modified. A wallet with no custody gets an empty
    ``custody_totals`` and a ``total_with_custody`` equal to its balances.
    """
    merged = dict(wallet_view)
    currencies = dict(wallet_view.get("currencies") or {})
    custody = dict(totals.get(str(wallet_view.get("id")), {}))

    total_with_custody = {code: Decimal(str(balance)) for code, balance in currencies.items()}
    for code, amount in custody.items():
        total_with_custody[code] = total_with_custody.get(code, Decimal("0")) + amount

    merged["currencies"] = currencies
    merged["custody_totals"] = custody
    merged["total_with_custody"] = total_with_custody
    return merged


def get_custody_summary(
    records: Iterable,
    statuses: Iterable[str] = ACTIVE_CUSTODY_STATUSES,
) -> dict:
    """Count all records and total the active ones per currency."""
    statuses = frozenset(statuses)
    records = list(records)
    summary = {
        "total_count": len(records),
        "active_count": 0,
        "total_by_currency": {},
    }

    for record in records:
        currency_code = _field(record, "currency_code")
        amount = _held(record)
        if not currency_code or not amount:
            continue
        if not _counts(record, statuses):
            continue
        summary["active_count"] += 1
        by_currency = summary["total_by_currency"]
        by_currency[currency_code] = by_currency.get(currency_code, Decimal("0")) + Decimal(str(amount))

    return summary
