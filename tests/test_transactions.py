"""
Tests for exchange trades.

These tests verify:
  - total_amount = amount * exchange_rate
  - A buy pays the exchange currency and receives the traded currency
  - A sell is the mirror image
  - A trade the wallet can't pay for records nothing and moves nothing
  - Client-to-client trades move no balances
  - Custody references must be the cashier's own active custody
  - A trade against custody moves the cashier's custody, never the wallet,
    and a later return credits only what is left
"""

import uuid
from decimal import Decimal

import pytest_asyncio


async def balances(user, wallet_id) -> dict[str, Decimal]:
    response = await user.client.get(f"/wallets/{wallet_id}")
    return {code: Decimal(v) for code, v in response.json()["currencies"].items()}


async def holdings(user) -> dict[str, Decimal]:
    response = await user.client.get(f"/custody/holdings/{user.id}")
    return {code: Decimal(v) for code, v in response.json().items()}


def trade(wallet_id, **overrides):
    body = {
        "wallet_id": wallet_id,
        "currency_code": "USD",
        "amount": "100",
        "exchange_currency_code": "LYD",
        "exchange_rate": "5.25",
        "client_name": "Walk-in",
    }
    body.update(overrides)
    return body


@pytest_asyncio.fixture
async def active_custody(treasurer, cashier, treasury_wallet):
    response = await treasurer.client.post(
        "/custody",
        json={
            "cashier_id": str(cashier.id),
            "wallet_id": treasury_wallet,
            "currency_code": "USD",
            "amount": "200",
        },
    )
    custody_id = response.json()["id"]
    await cashier.client.post(f"/custody/{custody_id}/approve")
    return custody_id


class TestBuy:
    async def test_buy_moves_both_legs(self, cashier, treasury_wallet):
        response = await cashier.client.post("/transactions/buy", json=trade(treasury_wallet))
        assert response.status_code == 201
        data = response.json()
        assert data["type"] == "buy"
        assert Decimal(data["total_amount"]) == Decimal("525")
        assert data["source"] == "Client"
        assert data["destination"] == "Main Treasury"
        assert data["cashier_id"] == str(cashier.id)

        after = await balances(cashier, treasury_wallet)
        assert after["USD"] == Decimal("1100")
        assert after["LYD"] == Decimal("4475")

    async def test_buy_without_enough_to_pay(self, cashier, treasury_wallet):
        response = await cashier.client.post(
            "/transactions/buy", json=trade(treasury_wallet, amount="1000", exchange_rate="5.1")
        )
        assert response.status_code == 422
        assert response.json()["currency_code"] == "LYD"

        after = await balances(cashier, treasury_wallet)
        assert after == {"USD": Decimal("1000"), "LYD": Decimal("5000")}
        assert (await cashier.client.get("/transactions")).json() == []

    async def test_buy_opens_new_currency_row(self, cashier, treasury_wallet):
        response = await cashier.client.post(
            "/transactions/buy",
            json=trade(treasury_wallet, currency_code="EUR", amount="10", exchange_rate="5.9"),
        )
        assert response.status_code == 201
        assert (await balances(cashier, treasury_wallet))["EUR"] == Decimal("10")


class TestSell:
    async def test_sell_moves_both_legs(self, cashier, treasury_wallet):
        response = await cashier.client.post("/transactions/sell", json=trade(treasury_wallet))
        assert response.status_code == 201
        data = response.json()
        assert data["type"] == "sell"
        assert data["source"] == "Main Treasury"
        assert data["destination"] == "Client"

        after = await balances(cashier, treasury_wallet)
        assert after["USD"] == Decimal("900")
        assert after["LYD"] == Decimal("5525")

    async def test_sell_more_than_held(self, cashier, treasury_wallet):
        response = await cashier.client.post(
            "/transactions/sell", json=trade(treasury_wallet, amount="1000.5")
        )
        assert response.status_code == 422
        assert (await balances(cashier, treasury_wallet))["LYD"] == Decimal("5000")


class TestValidation:
    async def test_same_currency_rejected(self, cashier, treasury_wallet):
        response = await cashier.client.post(
            "/transactions/buy", json=trade(treasury_wallet, exchange_currency_code="usd")
        )
        assert response.status_code == 422

    async def test_non_positive_rate_rejected(self, cashier, treasury_wallet):
        response = await cashier.client.post(
            "/transactions/buy", json=trade(treasury_wallet, exchange_rate="0")
        )
        assert response.status_code == 422

    async def test_only_cashiers_trade(self, treasurer, treasury_wallet):
        response = await treasurer.client.post("/transactions/buy", json=trade(treasury_wallet))
        assert response.status_code == 403

    async def test_unknown_wallet(self, cashier):
        response = await cashier.client.post("/transactions/buy", json=trade(str(uuid.uuid4())))
        assert response.status_code == 404


class TestClientToClient:
    async def test_no_wallet_moves_nothing(self, cashier, treasury_wallet):
        response = await cashier.client.post("/transactions/sell", json=trade(None))
        assert response.status_code == 201
        data = response.json()
        assert data["wallet_id"] is None
        assert data["source"] == "Client"
        assert data["destination"] == "Client"
        assert await balances(cashier, treasury_wallet) == {
            "USD": Decimal("1000"),
            "LYD": Decimal("5000"),
        }


class TestCustodyReference:
    async def test_someone_elses_custody(self, second_cashier, treasury_wallet, active_custody):
        response = await second_cashier.client.post(
            "/transactions/sell",
            json=trade(treasury_wallet, amount="50", reference_custody_id=active_custody),
        )
        assert response.status_code == 403

    async def test_returned_custody(self, cashier, treasury_wallet, active_custody):
        await cashier.client.post(f"/custody/{active_custody}/return")
        response = await cashier.client.post(
            "/transactions/sell",
            json=trade(treasury_wallet, amount="50", reference_custody_id=active_custody),
        )
        assert response.status_code == 400

    async def test_custody_of_another_wallet(self, manager, cashier, active_custody):
        other = await manager.client.post(
            "/wallets", json={"name": "Counter", "currencies": {"USD": "500"}}
        )
        response = await cashier.client.post(
            "/transactions/sell",
            json=trade(other.json()["id"], amount="50", reference_custody_id=active_custody),
        )
        assert response.status_code == 400


class TestListing:
    async def test_filters_and_get(self, cashier, treasurer, treasury_wallet):
        buy = (await cashier.client.post("/transactions/buy", json=trade(treasury_wallet))).json()
        await cashier.client.post("/transactions/sell", json=trade(treasury_wallet))
        await treasurer.client.post(
            f"/wallets/{treasury_wallet}/deposit", json={"currency_code": "USD", "amount": "5"}
        )

        assert len((await cashier.client.get("/transactions")).json()) == 3
        buys = (await cashier.client.get("/transactions", params={"type": "buy"})).json()
        assert [t["id"] for t in buys] == [buy["id"]]

        fetched = await cashier.client.get(f"/transactions/{buy['id']}")
        assert fetched.json()["client_name"] == "Walk-in"

        assert (await cashier.client.get(f"/transactions/{uuid.uuid4()}")).status_code == 404

    async def test_bad_type_filter(self, cashier):
        response = await cashier.client.get("/transactions", params={"type": "gift"})
        assert response.status_code == 422

    async def test_stats(self, cashier, treasury_wallet):
        await cashier.client.post("/transactions/buy", json=trade(treasury_wallet, exchange_rate="5"))
        await cashier.client.post("/transactions/buy", json=trade(treasury_wallet, exchange_rate="6"))
        await cashier.client.post("/transactions/sell", json=trade(treasury_wallet, exchange_rate="5.5"))

        stats = (await cashier.client.get("/transactions/stats")).json()
        assert stats["window"] == 30
        assert stats["buy_count"] == 2
        assert stats["sell_count"] == 1
        assert Decimal(stats["average_buy_rate"]) == Decimal("5.5")
        assert Decimal(stats["average_sell_rate"]) == Decimal("5.5")


class TestCustodyTrades:
    async def test_sell_draws_custody_not_wallet(self, cashier, treasury_wallet, active_custody):
        assert (await balances(cashier, treasury_wallet))["USD"] == Decimal("800")

        response = await cashier.client.post(
            "/transactions/sell",
            json=trade(treasury_wallet, amount="50", reference_custody_id=active_custody),
        )
        assert response.status_code == 201
        data = response.json()
        assert data["reference_custody_id"] == active_custody
        assert data["wallet_id"] is None
        assert data["source"] == "Cash Custody"
        assert data["destination"] == "Client"

        assert await balances(cashier, treasury_wallet) == {
            "USD": Decimal("800"),
            "LYD": Decimal("5000"),
        }
        assert await holdings(cashier) == {"USD": Decimal("150"), "LYD": Decimal("262.5")}
        custody = (await cashier.client.get(f"/custody/{active_custody}")).json()
        assert Decimal(custody["remaining_amount"]) == Decimal("150")
        assert Decimal(custody["amount"]) == Decimal("200")

    async def test_return_credits_only_what_is_left(
        self, treasurer, cashier, treasury_wallet, active_custody
    ):
        await cashier.client.post(
            "/transactions/sell",
            json=trade(treasury_wallet, amount="50", reference_custody_id=active_custody),
        )

        response = await cashier.client.post(f"/custody/{active_custody}/return")
        assert response.status_code == 200
        assert (await balances(cashier, treasury_wallet))["USD"] == Decimal("950")

        # The LYD taken from the client is custody of its own, chained to the USD float
        received = (await cashier.client.get("/custody")).json()["received"]
        proceeds = next(c for c in received if c["currency_code"] == "LYD")
        assert proceeds["status"] == "approved"
        assert proceeds["previous_custody_id"] == active_custody
        assert proceeds["treasurer_id"] == str(treasurer.id)
        assert Decimal(proceeds["remaining_amount"]) == Decimal("262.5")

        await treasurer.client.post(f"/custody/{proceeds['id']}/return")
        assert await balances(cashier, treasury_wallet) == {
            "USD": Decimal("950"),
            "LYD": Decimal("5262.5"),
        }
        assert await holdings(cashier) == {}

    async def test_sell_more_than_custody_holds(self, cashier, treasury_wallet, active_custody):
        response = await cashier.client.post(
            "/transactions/sell",
            json=trade(treasury_wallet, amount="200.01", reference_custody_id=active_custody),
        )
        assert response.status_code == 422
        body = response.json()
        assert body["error_type"] == "insufficient_funds"
        assert "custody" in body["detail"]
        assert Decimal(body["available"]) == Decimal("200")

        assert (await cashier.client.get("/transactions")).json() == []
        assert await holdings(cashier) == {"USD": Decimal("200")}

    async def test_selling_everything_closes_the_custody(
        self, cashier, treasury_wallet, active_custody
    ):
        await cashier.client.post(
            "/transactions/sell",
            json=trade(treasury_wallet, amount="200", reference_custody_id=active_custody),
        )
        custody = (await cashier.client.get(f"/custody/{active_custody}")).json()
        assert custody["status"] == "returned"
        assert custody["is_returned"] is True
        assert Decimal(custody["remaining_amount"]) == Decimal("0")

        response = await cashier.client.post(f"/custody/{active_custody}/return")
        assert response.status_code == 409
        assert (await balances(cashier, treasury_wallet))["USD"] == Decimal("800")

    async def test_buy_pays_from_custody(self, cashier, treasury_wallet, active_custody):
        response = await cashier.client.post(
            "/transactions/buy",
            json=trade(
                None,
                currency_code="EUR",
                amount="20",
                exchange_currency_code="USD",
                exchange_rate="1.1",
                reference_custody_id=active_custody,
            ),
        )
        assert response.status_code == 201
        data = response.json()
        assert data["source"] == "Client"
        assert data["destination"] == "Cash Custody"

        assert await holdings(cashier) == {"EUR": Decimal("20"), "USD": Decimal("178")}
        assert "EUR" not in await balances(cashier, treasury_wallet)

    async def test_buy_needs_custody_in_the_paying_currency(
        self, cashier, treasury_wallet, active_custody
    ):
        response = await cashier.client.post(
            "/transactions/buy",
            json=trade(treasury_wallet, amount="10", reference_custody_id=active_custody),
        )
        assert response.status_code == 422
        assert response.json()["currency_code"] == "LYD"
        assert await holdings(cashier) == {"USD": Decimal("200")}
