import mongomock
import pytest
from fastapi.testclient import TestClient

from hireall.core import circuit_breaker, rate_limiter
from hireall.core.auth import create_access_token, invalidate_tier_cache
from hireall.core.config import get_settings
from hireall.db import mongodb
from hireall.main import app
from hireall.services import cover_letter_service, cv_analysis_service, resume_builder_service
from hireall.services.ai_client import AIClient
from hireall.utils.spam_detection import reset_submission_tracking


def make_token(uid, **claims):
    return create_access_token({"sub": uid, "email": f"{uid}@example.com", **claims})


def bearer(uid, **claims):
    return {"Authorization": f"Bearer {make_token(uid, **claims)}"}


@pytest.fixture(autouse=True)
def db(monkeypatch):
    """Fresh in-memory Mongo plus clean limiter / breaker / cache state per test."""
    settings = get_settings()
    monkeypatch.setattr(settings, "ai_api_key", "")
    monkeypatch.setattr(settings, "environment", "development")

    database = mongomock.MongoClient()["hireall_test"]
    mongodb.set_mongo_db(database)
    rate_limiter.clear_all_limits()
    circuit_breaker.reset_all_circuits()
    invalidate_tier_cache()
    reset_submission_tracking()
    yield database
    mongodb.set_mongo_db(None)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def user_headers(db):
    db.users.insert_one({"_id": "user-1", "email": "user-1@example.com", "name": "Jo Doe", "created_at": 1})
    return bearer("user-1")


@pytest.fixture
def other_headers(db):
    db.users.insert_one({"_id": "user-2", "email": "user-2@example.com", "created_at": 1})
    return bearer("user-2")


@pytest.fixture
def admin_headers(db):
    db.users.insert_one({"_id": "admin-1", "email": "admin@example.com", "is_admin": True, "created_at": 1})
    return bearer("admin-1")


@pytest.fixture
def premium_headers(db):
    db.users.insert_one({"_id": "premium-1", "email": "p@example.com", "plan": "premium", "created_at": 1})
    return bearer("premium-1")


class FakeAIClient(AIClient):
    """Skips the OpenAI client; replies with canned text."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def _call_api(self, system_prompt, user_content, max_tokens=1000, temperature=0.1):
        self.prompts.append(user_content)
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def fake_ai(monkeypatch):
    def install(reply=None, error=None):
        client = FakeAIClient(reply, error)
        for module in (cover_letter_service, cv_analysis_service, resume_builder_service):
            monkeypatch.setattr(module, "get_ai_client", lambda: client)
        return client
    return install
