"""
Tests for currency-pair analytics.

Pure helpers are tested on plain mappings; the endpoints on trades recorded
through the API.
"""

import uuid
from decimal import Decimal

from exchange_desk.services.analysis import (
    analyze_currency_pairs,
    calculate_median,
    calculate_value_with_median_rate,
    format_currency_pairs_for_table,
)


def txn(type, currency_code, exchange_currency_code, amount, rate):
    return {
        "type": type,
        "currency_code": currency_code,
        "exchange_currency_code": exchange_currency_code,
        "amount": Decimal(amount),
        "exchange_rate": Decimal(rate),
        "total_amount": Decimal(amount) * Decimal(rate),
    }


class TestMedian:
    def test_odd_count(self):
        assert calculate_median([Decimal("3"), Decimal("1"), Decimal("2")]) == Decimal("2")

    def test_even_count(self):
        assert calculate_median([4, 1, 3, 2]) == 2.5

    def test_empty(self):
        assert calculate_median([]) == 0

    def test_value_with_median_rate(self):
        assert calculate_value_with_median_rate(Decimal("10"), Decimal("1.5")) == Decimal("15.0")


class TestAnalyzeCurrencyPairs:
    def test_groups_by_unordered_pair(self):
        pairs = analyze_currency_pairs([
            txn("buy", "EUR", "USD", "100", "1.1"),
            txn("sell", "EUR", "USD", "50", "1.2"),
            txn("buy", "USD", "EUR", "80", "0.8"),
        ])
        assert list(pairs) == ["EUR/USD"]
        pair = pairs["EUR/USD"]
        assert pair["from_currency"] == "EUR"
        assert pair["to_currency"] == "USD"
        assert pair["transaction_count"] == 3
        assert pair["buy_count"] == 2
        assert pair["sell_count"] == 1
        # USD->EUR at 0.8 reads as 1.25 USD per EUR
        assert pair["max_rate"] == Decimal("1.25")
        assert pair["min_rate"] == Decimal("1.1")
        assert pair["median_rate"] == Decimal("1.2")
        # 100 + 50 EUR traded directly, plus the 64 EUR paid for 80 USD
        assert pair["total_amount"] == Decimal("214")
        assert pair["total_exchange_amount"] == Decimal("110") + Decimal("60") + Decimal("80")
        assert pair["primary_operation_type"] == "buy"

    def test_sells_outnumbering_buys(self):
        pairs = analyze_currency_pairs([
            txn("sell", "LYD", "USD", "500", "0.2"),
            txn("sell", "LYD", "USD", "1000", "0.19"),
            txn("buy", "LYD", "USD", "100", "0.21"),
        ])
        assert pairs["LYD/USD"]["primary_operation_type"] == "sell"
        assert pairs["LYD/USD"]["average_amount"] == Decimal("1600") / 3

    def test_skips_incomplete_transactions(self):
        withdrawal = {"type": "withdrawal", "currency_code": "USD", "amount": Decimal("5")}
        no_rate = txn("buy", "EUR", "USD", "1", "1")
        no_rate["exchange_rate"] = None
        assert analyze_currency_pairs([withdrawal, no_rate]) == {}

    def test_accepts_objects(self):
        class Row:
            type = "buy"
            currency_code = "EUR"
            exchange_currency_code = "LYD"
            amount = Decimal("10")
            exchange_rate = Decimal("6")
            total_amount = Decimal("60")

        pairs = analyze_currency_pairs([Row()])
        assert pairs["EUR/LYD"]["total_exchange_amount"] == Decimal("60")


class TestFormatForTable:
    def test_rows_sorted_by_count_then_pair(self):
        pairs = analyze_currency_pairs([
            txn("buy", "EUR", "USD", "1", "1.1"),
            txn("buy", "LYD", "USD", "1", "0.2"),
            txn("buy", "LYD", "USD", "1", "0.2"),
            txn("buy", "EUR", "LYD", "1", "6"),
        ])
        rows = format_currency_pairs_for_table(pairs)
        assert [row["pair"] for row in rows] == ["LYD/USD", "EUR/LYD", "EUR/USD"]
        assert "rates" not in rows[0]
        assert rows[0]["transaction_count"] == 2

    def test_empty(self):
        assert format_currency_pairs_for_table({}) == []


class TestAnalysisEndpoints:
    async def _trade(self, cashier, wallet_id, kind, rate, custody_id=None):
        response = await cashier.client.post(
            f"/transactions/{kind}",
            json={
                "wallet_id": wallet_id,
                "currency_code": "USD",
                "amount": "10",
                "exchange_currency_code": "LYD",
                "exchange_rate": rate,
                "reference_custody_id": custody_id,
            },
        )
        assert response.status_code == 201, response.text

    async def test_wallet_analysis(self, manager, cashier, treasury_wallet):
        await self._trade(cashier, treasury_wallet, "buy", "5")
        await self._trade(cashier, treasury_wallet, "sell", "5.2")

        response = await manager.client.get(f"/analysis/wallets/{treasury_wallet}/pairs")
        assert response.status_code == 200
        data = response.json()
        assert data["wallet_id"] == treasury_wallet
        assert data["transaction_count"] == 2
        assert [row["pair"] for row in data["pairs"]] == ["LYD/USD"]
        row = data["pairs"][0]
        assert row["buy_count"] == 1
        assert row["sell_count"] == 1
        assert Decimal(row["total_exchange_amount"]) == Decimal("20")

    async def test_custody_only_and_custody_analysis(
        self, manager, treasurer, cashier, treasury_wallet
    ):
        give = await treasurer.client.post(
            "/custody",
            json={
                "cashier_id": str(cashier.id),
                "wallet_id": treasury_wallet,
                "currency_code": "USD",
                "amount": "100",
            },
        )
        custody_id = give.json()["id"]
        await cashier.client.post(f"/custody/{custody_id}/approve")

        await self._trade(cashier, treasury_wallet, "sell", "5.1", custody_id)
        await self._trade(cashier, treasury_wallet, "buy", "5")

        overall = (await manager.client.get("/analysis/pairs")).json()
        assert overall["transaction_count"] == 2

        custody_only = (await manager.client.get("/analysis/pairs", params={"custody_only": True})).json()
        assert custody_only["transaction_count"] == 1

        by_custody = (await manager.client.get(f"/analysis/custody/{custody_id}/pairs")).json()
        assert by_custody["custody_id"] == custody_id
        assert by_custody["pairs"][0]["sell_count"] == 1

    async def test_deposits_are_not_pairs(self, manager, treasurer, treasury_wallet):
        await treasurer.client.post(
            f"/wallets/{treasury_wallet}/deposit", json={"currency_code": "USD", "amount": "5"}
        )
        data = (await manager.client.get("/analysis/pairs")).json()
        assert data["transaction_count"] == 0
        assert data["pairs"] == []

    async def test_unknown_wallet(self, manager):
        response = await manager.client.get(f"/analysis/wallets/{uuid.uuid4()}/pairs")
        assert response.status_code == 404
