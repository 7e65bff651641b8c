#!/usr/bin/env python3
"""
Demo seed script — populates the desk with sample data for demos.

!! NOT FOR PRODUCTION !!
This script creates staff with known passwords, a treasury, custody
hand-offs and a few days of trades. It is intended ONLY for local demos and
frontend development. Run it against a FRESH database: the first signup
becomes the manager.

Usage:
    # With the API server running on localhost:8000:
    python demo/seed.py

    # Reset the database and re-seed:
    python demo/seed.py --reset

    # Custom server URL:
    python demo/seed.py --base-url http://localhost:9000

Login credentials after seeding:
    ┌──────────────────────────────┬───────────────────┬───────────┐
    │ Email                        │ Password          │ Role      │
    ├──────────────────────────────┼───────────────────┼───────────┤
    │ manager@exchangedemo.com     │ ManagerDemo123!   │ manager   │
    │ tariq@exchangedemo.com       │ TariqDemo123!     │ treasurer │
    │ carla@exchangedemo.com       │ CarlaDemo123!     │ cashier   │
    │ omar@exchangedemo.com        │ OmarDemo123!      │ cashier   │
    └──────────────────────────────┴───────────────────┴───────────┘
"""

import argparse
import asyncio
import os
import random
import sys
from decimal import Decimal

import httpx

BASE_URL = "http://localhost:8000"

# ---------------------------------------------------------------------------
# Demo staff
# ---------------------------------------------------------------------------

MANAGER = {
    "email": "manager@exchangedemo.com",
    "password": "ManagerDemo123!",
    "name": "Mona Manager",
    "role": "manager",
}

STAFF = [
    {
        "email": "tariq@exchangedemo.com",
        "password": "TariqDemo123!",
        "name": "Tariq Treasurer",
        "role": "treasurer",
    },
    {
        "email": "carla@exchangedemo.com",
        "password": "CarlaDemo123!",
        "name": "Carla Cashier",
        "role": "cashier",
    },
    {
        "email": "omar@exchangedemo.com",
        "password": "OmarDemo123!",
        "name": "Omar Cashier",
        "role": "cashier",
    },
]

TREASURY_OPENING = {"USD": "25000", "LYD": "150000", "EUR": "8000"}

# LYD per unit, around which trades are scattered
MARKET = {"USD": Decimal("5.20"), "EUR": Decimal("5.75"), "USDT": Decimal("5.15")}

CLIENT_NAMES = [
    "Walk-in", "Ahmed S.", "Fatima K.", "Hotel Al Waddan", "Yusuf B.",
    "Import Co.", "Mariam T.", "Khaled R.",
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def log(msg: str) -> None:
    print(f"  {msg}")


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def signup(client: httpx.AsyncClient, user: dict) -> dict:
    """Sign up a user, return {id, token}."""
    resp = await client.post(f"{BASE_URL}/auth/signup", json={
        "email": user["email"],
        "password": user["password"],
        "name": user["name"],
    })
    resp.raise_for_status()
    data = resp.json()
    return {"id": data["user_id"], "token": data["token"], "role_name": data["role_name"]}


async def assign_role(client: httpx.AsyncClient, manager_token: str, user_id: str, role: str) -> None:
    resp = await client.get(f"{BASE_URL}/roles", headers=auth_header(manager_token))
    resp.raise_for_status()
    role_id = next(r["id"] for r in resp.json() if r["name"] == role)
    resp = await client.put(
        f"{BASE_URL}/users/{user_id}/role",
        json={"role_id": role_id},
        headers=auth_header(manager_token),
    )
    resp.raise_for_status()


async def set_rates(client: httpx.AsyncClient, manager_token: str) -> None:
    usd_in_lyd = MARKET["USD"]
    for code, lyd in MARKET.items():
        resp = await client.put(
            f"{BASE_URL}/exchange-rates/{code}",
            json={"rate_to_usd": str((lyd / usd_in_lyd).quantize(Decimal("0.0001"))), "rate_to_lyd": str(lyd)},
            headers=auth_header(manager_token),
        )
        resp.raise_for_status()
    resp = await client.put(
        f"{BASE_URL}/manager-prices",
        json={"buy_price": "5.15", "sell_price": "5.25"},
        headers=auth_header(manager_token),
    )
    resp.raise_for_status()


async def give_custody(client: httpx.AsyncClient, treasurer_token: str, cashier_id: str,
                       wallet_id: str, currency_code: str, amount: str) -> dict:
    resp = await client.post(
        f"{BASE_URL}/custody",
        json={
            "cashier_id": cashier_id,
            "wallet_id": wallet_id,
            "currency_code": currency_code,
            "amount": amount,
            "notes": "Opening float",
        },
        headers=auth_header(treasurer_token),
    )
    resp.raise_for_status()
    return resp.json()


async def trade(client: httpx.AsyncClient, token: str, wallet_id: str, custody_id: str | None) -> dict:
    """Record one random buy or sell against LYD, settled through the cashier's custody.

    A sell only goes through once earlier buys have put that currency in custody.
    """
    kind = random.choice(["buy", "sell"])
    code = random.choice(list(MARKET))
    spread = Decimal(random.randint(-8, 8)) / 100
    rate = MARKET[code] + spread
    amount = random.choice([50, 100, 200, 250, 500, 1000])
    resp = await client.post(
        f"{BASE_URL}/transactions/{kind}",
        json={
            "wallet_id": wallet_id,
            "currency_code": code,
            "amount": str(amount),
            "exchange_currency_code": "LYD",
            "exchange_rate": str(rate),
            "client_name": random.choice(CLIENT_NAMES),
            "reference_custody_id": custody_id,
        },
        headers=auth_header(token),
    )
    return resp.json()


# ---------------------------------------------------------------------------
# Seed logic
# ---------------------------------------------------------------------------

async def seed(base_url: str) -> None:
    global BASE_URL
    BASE_URL = base_url

    print("\n========================================")
    print("  DEMO SEED — NOT FOR PRODUCTION")
    print("========================================\n")

    async with httpx.AsyncClient(timeout=30.0) as client:
        # Health check
        try:
            health = await client.get(f"{BASE_URL}/health")
            health.raise_for_status()
        except (httpx.ConnectError, httpx.HTTPStatusError):
            print(f"  ERROR: Cannot connect to {BASE_URL}")
            print(f"  Start the server first: uvicorn exchange_desk.main:app --reload\n")
            sys.exit(1)

        # --- Manager ---
        print("Creating manager...")
        manager = await signup(client, MANAGER)
        if manager["role_name"] != "manager":
            print("  ERROR: the database already has users; run with --reset first\n")
            sys.exit(1)
        log(f"Manager: {MANAGER['email']} / {MANAGER['password']}")

        # --- Staff ---
        people: dict[str, dict] = {}
        for member in STAFF:
            print(f"\nCreating {member['name']}...")
            account = await signup(client, member)
            await assign_role(client, manager["token"], account["id"], member["role"])
            people[member["email"]] = {**account, **member}
            log(f"Login: {member['email']} / {member['password']} ({member['role']})")

        treasurer = next(p for p in people.values() if p["role"] == "treasurer")
        cashiers = [p for p in people.values() if p["role"] == "cashier"]

        # --- Rates ---
        print("\nPosting exchange rates and prices...")
        await set_rates(client, manager["token"])
        for code, lyd in MARKET.items():
            log(f"1 {code} = {lyd} LYD")

        # --- Treasury ---
        print("\nOpening the treasury...")
        resp = await client.post(
            f"{BASE_URL}/wallets/treasury/{treasurer['id']}",
            headers=auth_header(manager["token"]),
        )
        resp.raise_for_status()
        treasury = resp.json()
        for code, amount in TREASURY_OPENING.items():
            resp = await client.put(
                f"{BASE_URL}/wallets/{treasury['id']}/currencies/{code}",
                json={"balance": amount},
                headers=auth_header(manager["token"]),
            )
            resp.raise_for_status()
            log(f"{treasury['name']}: {amount} {code}")

        # --- Custody and trades ---
        for cashier in cashiers:
            print(f"\nFloat for {cashier['name']}...")
            custody = await give_custody(
                client, treasurer["token"], cashier["id"], treasury["id"], "LYD", "20000"
            )
            resp = await client.post(
                f"{BASE_URL}/custody/{custody['id']}/approve",
                headers=auth_header(cashier["token"]),
            )
            resp.raise_for_status()
            log("20000 LYD custody approved")

            recorded = 0
            for _ in range(random.randint(12, 20)):
                result = await trade(client, cashier["token"], treasury["id"], custody["id"])
                if result.get("id"):
                    recorded += 1
            log(f"{recorded} trades recorded")

        # --- Debts ---
        print("\nRecording debts...")
        for person, is_owed, amount in (("Salem's shop", True, "3000"), ("Huda A.", False, "750")):
            resp = await client.post(
                f"{BASE_URL}/debts",
                json={
                    "person_name": person,
                    "wallet_id": treasury["id"],
                    "currency_code": "LYD",
                    "amount": amount,
                    "is_owed": is_owed,
                },
                headers=auth_header(treasurer["token"]),
            )
            resp.raise_for_status()
            log(f"{'Owed to' if is_owed else 'Lent to'} {person}: {amount} LYD")

    # --- Summary ---
    print("\n========================================")
    print("  SEED COMPLETE — Login Credentials")
    print("========================================")
    print(f"\n  {'Email':<30s} {'Password':<20s} {'Role'}")
    print(f"  {'─' * 30} {'─' * 20} {'─' * 9}")
    for m in [MANAGER, *STAFF]:
        print(f"  {m['email']:<30s} {m['password']:<20s} {m['role']}")
    print()


def reset_database() -> None:
    """Delete the SQLite database file so the server recreates it on restart."""
    db_path = os.path.join(os.path.dirname(__file__), "..", "data", "exchange.db")
    db_path = os.path.normpath(db_path)

    if os.path.exists(db_path):
        os.remove(db_path)
        print(f"\n  Deleted {db_path}")
        print("  Restart the server to recreate empty tables.\n")
    else:
        print(f"\n  No database found at {db_path}\n")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Demo seed script — NOT FOR PRODUCTION",
        epilog="Creates sample staff, a treasury, custody, trades and debts for demos.",
    )
    parser.add_argument(
        "--base-url", default="http://localhost:8000",
        help="Base URL of the running API (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--reset", action="store_true",
        help="Delete the database file and exit (restart server to recreate)",
    )
    args = parser.parse_args()

    if args.reset:
        reset_database()
        return

    await seed(args.base_url)


if __name__ == "__main__":
    asyncio.run(main())
