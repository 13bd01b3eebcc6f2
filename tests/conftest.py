"""
Test configuration for pytest
"""

import pytest
import os
from datetime import datetime, timedelta
from httpx import AsyncClient, ASGITransport

# Test environment variables
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["PUBLIC_BASE_URL"] = "https://landing.test"
os.environ.pop("ASESORES_DATA", None)

from app.core.clock import get_clock
from app.core.database import Database
from app.main import app


class FakeClock:
    """Controllable clock; each test starts at the same instant"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0))


@pytest.fixture
async def database(tmp_path):
    """Fresh SQLite database file per test"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.connect()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database: Database):
    async for s in database.session():
        yield s


@pytest.fixture
async def client(database: Database, clock: FakeClock):
    """HTTP client bound to the app, with the test database and clock injected"""
    app.state.database = database
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def advisor_payload() -> dict:
    return {
        "nombre": "Juan Pérez",
        "email": "juan@example.com",
        "telefono": "+56911112222",
        "empresa": "Colmena",
        "dias_pagados": 30,
    }


@pytest.fixture
async def created_advisor(client: AsyncClient, advisor_payload: dict) -> dict:
    response = await client.post("/api/asesores/crear", json=advisor_payload)
    assert response.status_code == 200
    return response.json()["asesor"]
