"""
Test fixtures for the exchange desk test suite.

  - db_engine / db_session: fresh in-memory SQLite database per test, brought
    up by the real migrations (roles and currency types seeded)
  - app / client: the FastAPI app with get_db overridden to use db_engine,
    and an unauthenticated async HTTP client
  - manager / treasurer / cashier / second_cashier / outsider: signed-up
    users, each with their own authenticated client
  - treasury_wallet: a wallet holding 1000 USD and 5000 LYD

The first signup of a fresh database becomes the manager, so every role
fixture depends on ``manager``; the other roles are assigned through the
real PUT /users/{id}/role endpoint.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import uuid
from dataclasses import dataclass

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from exchange_desk.database import get_db
from exchange_desk.main import app as fastapi_app
from exchange_desk.migrations import run_migrations


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"

PASSWORD = "SecurePass123!"


@dataclass
class DeskUser:
    id: uuid.UUID
    email: str
    name: str
    client: AsyncClient


@pytest_asyncio.fixture
async def db_engine():
    """Fresh engine per test, schema built by the migrations."""
    engine = create_async_engine(TEST_DATABASE_URL)
    await run_migrations(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def app(db_engine):
    """
    The application with get_db pointed at the test engine.

    The override keeps the production contract: one transaction per
    request, committed on success and rolled back on any exception.
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_db] = override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


def _new_client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest_asyncio.fixture
async def client(app):
    """Unauthenticated async HTTP client."""
    async with _new_client(app) as ac:
        yield ac


async def register(app, email: str, name: str) -> DeskUser:
    """Sign a user up through the API and return it with an authenticated client."""
    ac = _new_client(app)
    response = await ac.post(
        "/auth/signup",
        json={"email": email, "password": PASSWORD, "name": name},
    )
    assert response.status_code == 201, f"Signup failed: {response.text}"
    data = response.json()
    ac.headers["Authorization"] = f"Bearer {data['token']}"
    return DeskUser(id=uuid.UUID(data["user_id"]), email=email, name=name, client=ac)


async def role_id(manager: DeskUser, role_name: str) -> str:
    response = await manager.client.get("/roles")
    assert response.status_code == 200
    return next(role["id"] for role in response.json() if role["name"] == role_name)


async def assign(manager: DeskUser, user: DeskUser, role_name: str) -> None:
    response = await manager.client.put(
        f"/users/{user.id}/role",
        json={"role_id": await role_id(manager, role_name)},
    )
    assert response.status_code == 200, response.text


@pytest_asyncio.fixture
async def manager(app):
    """The first registered user, bootstrapped as manager."""
    user = await register(app, "manager@example.com", "Mona Manager")
    yield user
    await user.client.aclose()


async def _with_role(app, manager, email, name, role_name):
    user = await register(app, email, name)
    if role_name:
        await assign(manager, user, role_name)
    return user


@pytest_asyncio.fixture
async def treasurer(app, manager):
    user = await _with_role(app, manager, "treasurer@example.com", "Tariq Treasurer", "treasurer")
    yield user
    await user.client.aclose()


@pytest_asyncio.fixture
async def cashier(app, manager):
    user = await _with_role(app, manager, "cashier@example.com", "Carla Cashier", "cashier")
    yield user
    await user.client.aclose()


@pytest_asyncio.fixture
async def second_cashier(app, manager):
    user = await _with_role(app, manager, "cashier2@example.com", "Omar Cashier", "cashier")
    yield user
    await user.client.aclose()


@pytest_asyncio.fixture
async def outsider(app, manager):
    """A registered user without any role."""
    user = await _with_role(app, manager, "outsider@example.com", "Nadia Nobody", None)
    yield user
    await user.client.aclose()


@pytest_asyncio.fixture
async def treasury_wallet(manager):
    """A treasury wallet holding 1000 USD and 5000 LYD; returns its id."""
    response = await manager.client.post(
        "/wallets",
        json={
            "name": "Main Treasury",
            "is_treasury": True,
            "currencies": {"USD": "1000", "LYD": "5000"},
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]
