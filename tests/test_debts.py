"""
Tests for debts recorded against a wallet.

These tests verify:
  - Borrowing (is_owed) credits the wallet, lending debits it
  - Paying reverses the recording effect exactly once
  - Deleting an unpaid debt restores the wallet; a paid one does not move it
  - Lending more than the wallet holds is refused
  - Non-managers only see their own debts
"""

import uuid
from decimal import Decimal


async def balance(user, wallet_id, code) -> Decimal:
    response = await user.client.get(f"/wallets/{wallet_id}")
    return Decimal(response.json()["currencies"][code])


async def record(user, wallet_id, is_owed, amount="200", code="LYD", person="Salem"):
    response = await user.client.post(
        "/debts",
        json={
            "person_name": person,
            "wallet_id": wallet_id,
            "currency_code": code,
            "amount": amount,
            "is_owed": is_owed,
        },
    )
    return response


class TestRecordDebt:
    async def test_borrowing_credits_wallet(self, treasurer, treasury_wallet):
        response = await record(treasurer, treasury_wallet, is_owed=True)
        assert response.status_code == 201
        data = response.json()
        assert data["is_paid"] is False
        assert data["created_by"] == str(treasurer.id)
        assert await balance(treasurer, treasury_wallet, "LYD") == Decimal("5200")

    async def test_lending_debits_wallet(self, treasurer, treasury_wallet):
        response = await record(treasurer, treasury_wallet, is_owed=False)
        assert response.status_code == 201
        assert await balance(treasurer, treasury_wallet, "LYD") == Decimal("4800")

    async def test_lending_more_than_held(self, treasurer, treasury_wallet):
        response = await record(treasurer, treasury_wallet, is_owed=False, amount="5000.01")
        assert response.status_code == 422
        assert response.json()["error_type"] == "insufficient_funds"
        assert (await treasurer.client.get("/debts")).json() == {"owed": [], "receivable": []}

    async def test_unknown_wallet(self, treasurer):
        response = await record(treasurer, str(uuid.uuid4()), is_owed=True)
        assert response.status_code == 404

    async def test_outsider_refused(self, outsider, treasury_wallet):
        response = await record(outsider, treasury_wallet, is_owed=True)
        assert response.status_code == 403


class TestSettleDebt:
    async def test_pay_owed_debt(self, treasurer, treasury_wallet):
        debt = (await record(treasurer, treasury_wallet, is_owed=True)).json()
        response = await treasurer.client.post(f"/debts/{debt['id']}/pay")
        assert response.status_code == 200
        assert response.json()["is_paid"] is True
        assert await balance(treasurer, treasury_wallet, "LYD") == Decimal("5000")

    async def test_pay_receivable_debt(self, treasurer, treasury_wallet):
        debt = (await record(treasurer, treasury_wallet, is_owed=False)).json()
        await treasurer.client.post(f"/debts/{debt['id']}/pay")
        assert await balance(treasurer, treasury_wallet, "LYD") == Decimal("5000")

    async def test_pay_twice(self, treasurer, treasury_wallet):
        debt = (await record(treasurer, treasury_wallet, is_owed=True)).json()
        await treasurer.client.post(f"/debts/{debt['id']}/pay")
        again = await treasurer.client.post(f"/debts/{debt['id']}/pay")
        assert again.status_code == 409
        assert await balance(treasurer, treasury_wallet, "LYD") == Decimal("5000")

    async def test_repaying_without_funds(self, manager, treasurer, treasury_wallet):
        debt = (await record(treasurer, treasury_wallet, is_owed=True)).json()
        await manager.client.put(
            f"/wallets/{treasury_wallet}/currencies/LYD", json={"balance": "10"}
        )
        response = await treasurer.client.post(f"/debts/{debt['id']}/pay")
        assert response.status_code == 422
        # Still unpaid after the rollback
        listed = (await treasurer.client.get("/debts")).json()
        assert listed["owed"][0]["is_paid"] is False

    async def test_delete_unpaid_reverses(self, treasurer, treasury_wallet):
        debt = (await record(treasurer, treasury_wallet, is_owed=False)).json()
        response = await treasurer.client.delete(f"/debts/{debt['id']}")
        assert response.status_code == 204
        assert await balance(treasurer, treasury_wallet, "LYD") == Decimal("5000")

    async def test_delete_paid_keeps_balance(self, treasurer, treasury_wallet):
        debt = (await record(treasurer, treasury_wallet, is_owed=True)).json()
        await treasurer.client.post(f"/debts/{debt['id']}/pay")
        await treasurer.client.delete(f"/debts/{debt['id']}")
        assert await balance(treasurer, treasury_wallet, "LYD") == Decimal("5000")


class TestVisibility:
    async def test_own_debts_only(self, manager, treasurer, cashier, treasury_wallet):
        await record(treasurer, treasury_wallet, is_owed=True, person="Salem")
        await record(cashier, treasury_wallet, is_owed=False, person="Huda")

        mine = (await treasurer.client.get("/debts")).json()
        assert [d["person_name"] for d in mine["owed"]] == ["Salem"]
        assert mine["receivable"] == []

        everything = (await manager.client.get("/debts")).json()
        assert len(everything["owed"]) == 1
        assert len(everything["receivable"]) == 1

    async def test_cannot_pay_someone_elses_debt(self, treasurer, cashier, treasury_wallet):
        debt = (await record(treasurer, treasury_wallet, is_owed=True)).json()
        response = await cashier.client.post(f"/debts/{debt['id']}/pay")
        assert response.status_code == 403

    async def test_summary(self, treasurer, treasury_wallet):
        await record(treasurer, treasury_wallet, is_owed=True, amount="100")
        await record(treasurer, treasury_wallet, is_owed=True, amount="50")
        await record(treasurer, treasury_wallet, is_owed=False, amount="30", code="USD")
        paid = (await record(treasurer, treasury_wallet, is_owed=False, amount="20", code="USD")).json()
        await treasurer.client.post(f"/debts/{paid['id']}/pay")

        summary = (await treasurer.client.get("/debts/summary")).json()
        assert Decimal(summary["owed_by_currency"]["LYD"]) == Decimal("150")
        assert Decimal(summary["receivable_by_currency"]["USD"]) == Decimal("30")
        assert summary["unpaid_owed_count"] == 2
        assert summary["unpaid_receivable_count"] == 1
