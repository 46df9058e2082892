# tests/conftest.py
import asyncio
import os
import sys

# Settings are read at import time, so the test configuration has to be in
# the environment before any application module is imported.
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("SEED_DEMO_DATA", "0")
os.environ.setdefault("SECRET_KEY", "test-secret")

# Windows asyncio fix for pytest.
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import fakeredis
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from attendance_tracker.backend.api.dependencies import get_redis_connection
from attendance_tracker.backend.config.config import settings
from attendance_tracker.backend.db.redis_client import COLLECTION_TYPES, RedisClient
from attendance_tracker.backend.main import app

from tests.helpers import TEST_PREFIX


# ===== Store fixtures =====

@pytest.fixture
def fake_server():
    """A fresh in-memory Redis server for every test."""
    return fakeredis.FakeServer()


@pytest_asyncio.fixture
async def redis_connection(fake_server):
    connection = fakeredis.FakeAsyncRedis(server=fake_server, decode_responses=True)
    yield connection
    await connection.aclose()


@pytest_asyncio.fixture
async def store(redis_connection) -> RedisClient:
    return RedisClient(redis_connection, prefix=TEST_PREFIX)


# ===== API fixtures =====

@pytest.fixture
def client(fake_server):
    """
    TestClient whose requests talk to the fake server. The lifespan is not
    entered, so no real Redis pool is created.
    """
    app.dependency_overrides[get_redis_connection] = (
        lambda: fakeredis.FakeAsyncRedis(server=fake_server, decode_responses=True)
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seed(fake_server):
    """Writes collections straight into the fake server under the application prefix."""
    sync_redis = fakeredis.FakeRedis(server=fake_server, decode_responses=True)

    def _seed(**collections):
        for key, value in collections.items():
            payload = RedisClient._encode(value, COLLECTION_TYPES[key])
            sync_redis.set(f"{settings.STORE_KEY_PREFIX}{key}", payload)

    return _seed


@pytest.fixture
def login(client):
    """Logs in and returns the Authorization header for the user."""
    def _login(username: str, password: str) -> dict:
        response = client.post("/api/v1/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']['access_token']}"}

    return _login


@pytest.fixture
def admin_headers(login):
    return login(settings.ADMIN_USERNAME, settings.ADMIN_PASSWORD)


@pytest.fixture
def trainer_headers(login):
    return login(settings.TRAINER_USERNAME, settings.TRAINER_PASSWORD)
