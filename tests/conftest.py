"""
Pytest configuration and fixtures for testing
"""
import hashlib
import hmac
import json
import time
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from fakes import FakeDatabase
from skinscore.core.config import settings
from skinscore.db.mongo import mongodb

WEBHOOK_SECRET = "whsec_test_secret"


@pytest.fixture
def fake_db():
    """
    Point the shared MongoDB handle at a fresh in-memory database for each test.
    """
    previous = mongodb.db
    mongodb.db = FakeDatabase()
    yield mongodb.db
    mongodb.db = previous


@pytest.fixture
def test_settings(monkeypatch):
    monkeypatch.setattr(settings, "TEST_MODE", True)
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setattr(settings, "STRIPE_LINK_MONTHLY", "https://buy.stripe.com/monthly")
    monkeypatch.setattr(settings, "STRIPE_LINK_ANNUAL", "https://buy.stripe.com/annual")
    monkeypatch.setattr(settings, "STRIPE_LINK_EARLY_BIRD", "https://buy.stripe.com/early")
    return settings


@pytest.fixture
def client(fake_db, test_settings):
    # Not used as a context manager so startup does not replace the fake database
    from main import app
    yield TestClient(app)
    app.dependency_overrides.clear()


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """Build a Stripe-Signature header using Stripe's v1 scheme."""
    timestamp = timestamp or int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"),
        f"{timestamp}.{payload}".encode("utf-8"),
        hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def make_event(event_type: str, obj: dict, event_id: str = "evt_test") -> str:
    return json.dumps({
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "data": {"object": obj},
    })


def seed_profile(db, user_id="user_1", email="pat@example.com", **fields):
    doc = {
        "_id": user_id,
        "email": email,
        "is_premium": False,
        "monthly_scans_used": 0,
        "total_scans": 0,
        "daily_questions_used": 0,
        "created_at": datetime(2026, 1, 1),
        "updated_at": datetime(2026, 1, 1),
    }
    doc.update(fields)
    db.profiles.docs.append(doc)
    return doc
