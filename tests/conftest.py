"""
Shared pytest fixtures.

The app is imported after the environment below is in place, so Settings
picks up the test secret and a throwaway media directory. The database
dependency is replaced with an in-memory mongomock-motor database.
"""
import asyncio
import os
import tempfile
from datetime import datetime, timedelta

import pytest

TEST_SECRET = "test-jwt-secret"

os.environ["APP_ENV"] = "dev"
os.environ["SUPABASE_JWT_SECRET"] = TEST_SECRET
os.environ["JWT_AUDIENCE"] = "authenticated"
os.environ["MONGODB_URI"] = ""
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_ANON_KEY"] = ""
os.environ["MEDIA_DIR"] = tempfile.mkdtemp(prefix="modelfolio-media-")

from fastapi.testclient import TestClient
from jose import jwt
from mongomock_motor import AsyncMongoMockClient

from modelfolio.db import ensure_indexes, get_db


def make_token(user_id: str, email: str | None = None, *, secret: str = TEST_SECRET,
               audience: str = "authenticated", expires_in: int = 3600) -> str:
    payload = {
        "sub": user_id,
        "aud": audience,
        "exp": datetime.utcnow() + timedelta(seconds=expires_in),
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, secret, algorithm="HS256")


def bearer(user_id: str, email: str | None = None) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, email)}"}


@pytest.fixture
def mock_db():
    db = AsyncMongoMockClient()["modelfolio_test"]
    asyncio.run(ensure_indexes(db))
    return db


@pytest.fixture
def client(mock_db):
    from modelfolio.main import app
    # rate limiting off unless a test turns it on
    app.state.limiter = None
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def model_user():
    """Authenticated model receiving bookings."""
    return {"id": "user-model-1", "email": "model1@studio.com"}


@pytest.fixture
def other_user():
    return {"id": "user-model-2", "email": "model2@studio.com"}


@pytest.fixture
def model_headers(model_user):
    return bearer(model_user["id"], model_user["email"])


@pytest.fixture
def other_headers(other_user):
    return bearer(other_user["id"], other_user["email"])


@pytest.fixture
def booking_data():
    return {
        "name": "Jane",
        "email": "jane@x.com",
        "job_type": "Editorial",
        "dates": "June 3-5",
        "location": "Madrid",
        "pay_rate": "500/day",
        "details": "Studio shoot",
    }


@pytest.fixture
def model_profile(mock_db, model_user):
    """Public profile for model_user, username "model1"."""
    doc = {
        "_id": model_user["id"],
        "username": "model1",
        "display_name": "Model One",
    }
    asyncio.run(mock_db.profiles.insert_one(doc))
    return doc
