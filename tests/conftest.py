"""Pytest fixtures for food_ordering tests."""

import asyncio
import os
import tempfile

# Point the application at a throwaway SQLite database before it is imported
_DB_DIR = tempfile.mkdtemp(prefix="food-ordering-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'app.db')}"
os.environ["ENV_MODE"] = "development"
os.environ["TRANSACTION_MODE"] = "auto"
os.environ["SWEEPER_ENABLED"] = "false"
os.environ["REDIS_URL"] = "redis://localhost:6399/0"

import pytest
from fastapi.testclient import TestClient

from food_ordering.core.config import get_settings
from food_ordering.database import build_engine, build_session_maker, init_db


@pytest.fixture
def settings_env(monkeypatch):
    """Set environment variables and reload settings; restored afterwards."""
    def apply(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        get_settings.cache_clear()
        return get_settings()

    yield apply
    get_settings.cache_clear()


@pytest.fixture
def run_db(tmp_path):
    """
    Run an async scenario against a fresh SQLite database.

    The scenario receives a session factory bound to that database.
    """
    url = f"sqlite+aiosqlite:///{tmp_path / 'scenario.db'}"

    def run(scenario):
        async def main():
            engine = build_engine(url)
            await init_db(engine)
            try:
                return await scenario(build_session_maker(engine))
            finally:
                await engine.dispose()

        return asyncio.run(main())

    return run


@pytest.fixture
def client():
    """Test client with the application lifespan running."""
    from food_ordering.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def create_food(client):
    """Add a catalog item through the API and return its JSON."""
    def create(name="Cheeseburger", price=10.0, quantity=5, category="Fast Food"):
        payload = {
            "name": name,
            "category": category,
            "price": price,
            "image": f"/images/{name.lower().replace(' ', '-')}.png",
        }
        if quantity is not None:
            payload["quantity"] = quantity
        response = client.post("/api/foods", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["food_item"]

    return create
