"""
Tests for the wallet ledger.

These tests verify:
  - New wallets open every base currency at zero plus opening balances
  - Currency rows: add (duplicate refused), correct, remove (zero only)
  - Deposits and withdrawals move balances and are recorded
  - Balances never go negative (422 insufficient_funds, nothing written)
  - Deleting is refused while money or references remain
  - Only managers manage wallets
"""

import uuid
from decimal import Decimal


class TestCreateWallet:
    async def test_base_currencies_opened_at_zero(self, manager):
        response = await manager.client.post("/wallets", json={"name": "Front Desk"})
        assert response.status_code == 201
        currencies = response.json()["currencies"]
        assert set(currencies) == {"USD", "LYD"}
        assert all(Decimal(v) == 0 for v in currencies.values())

    async def test_opening_balances(self, manager):
        response = await manager.client.post(
            "/wallets", json={"name": "Euro Box", "currencies": {"EUR": "250.50"}}
        )
        currencies = response.json()["currencies"]
        assert Decimal(currencies["EUR"]) == Decimal("250.50")
        assert Decimal(currencies["USD"]) == 0

    async def test_unknown_currency_rejected(self, manager):
        response = await manager.client.post(
            "/wallets", json={"name": "Bad", "currencies": {"XXX": "1"}}
        )
        assert response.status_code == 404

    async def test_negative_opening_balance_rejected(self, manager):
        response = await manager.client.post(
            "/wallets", json={"name": "Bad", "currencies": {"EUR": "-1"}}
        )
        assert response.status_code == 400

    async def test_cashier_cannot_create(self, cashier):
        response = await cashier.client.post("/wallets", json={"name": "Mine"})
        assert response.status_code == 403

    async def test_treasury_wallet_for_treasurer(self, manager, treasurer):
        response = await manager.client.post(f"/wallets/treasury/{treasurer.id}")
        assert response.status_code == 201
        data = response.json()
        assert data["is_treasury"] is True
        assert data["owner_id"] == str(treasurer.id)
        assert data["name"] == "Treasury - Tariq Treasurer"


class TestListWallets:
    async def test_list_includes_custody_fields(self, manager, treasury_wallet):
        response = await manager.client.get("/wallets")
        assert response.status_code == 200
        wallet = next(w for w in response.json() if w["id"] == treasury_wallet)
        assert wallet["custody_totals"] == {}
        assert Decimal(wallet["total_with_custody"]["USD"]) == Decimal("1000")

    async def test_non_treasury_filter(self, manager, treasury_wallet):
        await manager.client.post("/wallets", json={"name": "Counter"})
        response = await manager.client.get("/wallets/non-treasury")
        names = [w["name"] for w in response.json()]
        assert names == ["Counter"]

    async def test_unknown_wallet(self, manager):
        response = await manager.client.get(f"/wallets/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["error_type"] == "not_found"

    async def test_summary(self, manager, treasury_wallet):
        await manager.client.post(
            "/wallets", json={"name": "Counter", "currencies": {"USD": "50"}}
        )
        response = await manager.client.get("/wallets/summary")
        data = response.json()
        assert data["wallet_count"] == 2
        assert Decimal(data["totals_by_currency"]["USD"]) == Decimal("1050")


class TestCurrencyRows:
    async def test_add_currency(self, manager, treasury_wallet):
        response = await manager.client.post(
            f"/wallets/{treasury_wallet}/currencies",
            json={"currency_code": "eur", "initial_balance": "10"},
        )
        assert response.status_code == 201
        assert Decimal(response.json()["currencies"]["EUR"]) == Decimal("10")

    async def test_add_existing_currency_conflicts(self, manager, treasury_wallet):
        response = await manager.client.post(
            f"/wallets/{treasury_wallet}/currencies", json={"currency_code": "USD"}
        )
        assert response.status_code == 409
        assert response.json()["error_type"] == "conflict"

    async def test_set_balance(self, manager, treasury_wallet):
        response = await manager.client.put(
            f"/wallets/{treasury_wallet}/currencies/USD", json={"balance": "750.25"}
        )
        assert response.status_code == 200
        assert Decimal(response.json()["currencies"]["USD"]) == Decimal("750.25")

    async def test_set_negative_balance_rejected(self, manager, treasury_wallet):
        response = await manager.client.put(
            f"/wallets/{treasury_wallet}/currencies/USD", json={"balance": "-1"}
        )
        assert response.status_code == 422

    async def test_remove_non_zero_currency_refused(self, manager, treasury_wallet):
        response = await manager.client.delete(f"/wallets/{treasury_wallet}/currencies/USD")
        assert response.status_code == 409

    async def test_remove_zero_currency(self, manager):
        created = await manager.client.post("/wallets", json={"name": "Counter"})
        wallet_id = created.json()["id"]
        response = await manager.client.delete(f"/wallets/{wallet_id}/currencies/LYD")
        assert response.status_code == 200
        assert set(response.json()["currencies"]) == {"USD"}


class TestCashMovement:
    async def test_deposit(self, treasurer, treasury_wallet):
        response = await treasurer.client.post(
            f"/wallets/{treasury_wallet}/deposit",
            json={"currency_code": "USD", "amount": "200", "reason": "Bank pickup"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["type"] == "deposit"
        assert data["destination"] == "Main Treasury"

        wallet = await treasurer.client.get(f"/wallets/{treasury_wallet}")
        assert Decimal(wallet.json()["currencies"]["USD"]) == Decimal("1200")

    async def test_withdraw(self, treasurer, treasury_wallet):
        response = await treasurer.client.post(
            f"/wallets/{treasury_wallet}/withdraw",
            json={"currency_code": "LYD", "amount": "1000", "reason": "Rent"},
        )
        assert response.status_code == 201
        assert response.json()["type"] == "withdrawal"
        wallet = await treasurer.client.get(f"/wallets/{treasury_wallet}")
        assert Decimal(wallet.json()["currencies"]["LYD"]) == Decimal("4000")

    async def test_withdraw_more_than_balance(self, treasurer, treasury_wallet):
        response = await treasurer.client.post(
            f"/wallets/{treasury_wallet}/withdraw",
            json={"currency_code": "USD", "amount": "1000.01"},
        )
        assert response.status_code == 422
        data = response.json()
        assert data["error_type"] == "insufficient_funds"
        assert data["currency_code"] == "USD"
        assert Decimal(data["available"]) == Decimal("1000")

        # Nothing recorded, nothing moved
        txns = await treasurer.client.get("/transactions", params={"type": "withdrawal"})
        assert txns.json() == []
        wallet = await treasurer.client.get(f"/wallets/{treasury_wallet}")
        assert Decimal(wallet.json()["currencies"]["USD"]) == Decimal("1000")

    async def test_withdraw_currency_not_held(self, treasurer, treasury_wallet):
        response = await treasurer.client.post(
            f"/wallets/{treasury_wallet}/withdraw",
            json={"currency_code": "EUR", "amount": "1"},
        )
        assert response.status_code == 422

    async def test_cashier_cannot_deposit(self, cashier, treasury_wallet):
        response = await cashier.client.post(
            f"/wallets/{treasury_wallet}/deposit",
            json={"currency_code": "USD", "amount": "1"},
        )
        assert response.status_code == 403


class TestDeleteWallet:
    async def test_delete_with_balance_refused(self, manager, treasury_wallet):
        response = await manager.client.delete(f"/wallets/{treasury_wallet}")
        assert response.status_code == 409

    async def test_delete_empty_wallet(self, manager):
        created = await manager.client.post("/wallets", json={"name": "Temp"})
        wallet_id = created.json()["id"]
        response = await manager.client.delete(f"/wallets/{wallet_id}")
        assert response.status_code == 204
        assert (await manager.client.get(f"/wallets/{wallet_id}")).status_code == 404

    async def test_delete_referenced_by_custody_refused(
        self, manager, treasurer, cashier, treasury_wallet
    ):
        await treasurer.client.post(
            "/custody",
            json={
                "cashier_id": str(cashier.id),
                "wallet_id": treasury_wallet,
                "currency_code": "USD",
                "amount": "1000",
            },
        )
        await manager.client.put(
            f"/wallets/{treasury_wallet}/currencies/LYD", json={"balance": "0"}
        )
        response = await manager.client.delete(f"/wallets/{treasury_wallet}")
        assert response.status_code == 409
        assert "custody" in response.json()["detail"]


class TestWalletStats:
    async def test_stats_rates_and_custody(self, manager, treasurer, cashier, treasury_wallet):
        for rate in ("5.0", "5.2", "5.1"):
            await cashier.client.post(
                "/transactions/buy",
                json={
                    "wallet_id": treasury_wallet,
                    "currency_code": "USD",
                    "amount": "10",
                    "exchange_currency_code": "LYD",
                    "exchange_rate": rate,
                },
            )
        give = await treasurer.client.post(
            "/custody",
            json={
                "cashier_id": str(cashier.id),
                "wallet_id": treasury_wallet,
                "currency_code": "USD",
                "amount": "100",
            },
        )
        await cashier.client.post(f"/custody/{give.json()['id']}/approve")

        response = await manager.client.get(f"/wallets/{treasury_wallet}/stats")
        assert response.status_code == 200
        data = response.json()
        assert data["buy"]["count"] == 3
        assert Decimal(data["buy"]["median_rate"]) == Decimal("5.1")
        assert Decimal(data["buy"]["min_rate"]) == Decimal("5.0")
        assert Decimal(data["buy"]["max_rate"]) == Decimal("5.2")
        assert data["sell"]["count"] == 0
        assert data["sell"]["median_rate"] is None
        assert len(data["custody_records"]) == 1
        assert Decimal(data["custody_balances"]["USD"]) == Decimal("100")
