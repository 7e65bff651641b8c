"""Tests for GET /health."""

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from exchange_desk.database import get_db


class TestHealth:
    async def test_ok(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["database"] == "ok"

    async def test_degraded_when_database_unreachable(self, app, tmp_path):
        # A file inside a directory that doesn't exist can't be opened
        broken = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'desk.db'}")
        factory = async_sessionmaker(broken, class_=AsyncSession, expire_on_commit=False)

        async def broken_get_db():
            async with factory() as session:
                yield session

        app.dependency_overrides[get_db] = broken_get_db
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
                response = await ac.get("/health")
        finally:
            await broken.dispose()

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"
        assert response.json()["database"] == "unavailable"
