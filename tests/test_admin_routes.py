from datetime import datetime, timedelta, timezone

import pytest

from hireall.core import circuit_breaker
from hireall.core.circuit_breaker import AI_SERVICE, record_failure
from hireall.db.mongodb import now_ms
from hireall.services.stats_service import DAY_MS, compute_growth_pct, count_window, to_millis
from hireall.services.usage_service import SUBSCRIPTION_LIMITS, UNLIMITED, limits_for


@pytest.mark.parametrize("current, previous, expected", [
    (15, 10, 50),
    (5, 10, -50),
    (3, 0, 100),
    (0, 0, 0),
    (None, 4, None),
])
def test_compute_growth_pct(current, previous, expected):
    assert compute_growth_pct(current, previous) == expected


def test_to_millis():
    moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
    expected = int(moment.timestamp() * 1000)
    assert to_millis(expected) == expected
    assert to_millis(moment) == expected
    assert to_millis(moment.replace(tzinfo=None)) == expected
    assert to_millis("2024-01-01T00:00:00Z") == expected
    assert to_millis(str(expected)) == expected
    assert to_millis("yesterday") is None
    assert to_millis(True) is None


def test_count_window(db):
    now = now_ms()
    db.users.insert_many([
        {"created_at": now - DAY_MS},
        {"created_at": now - 2 * DAY_MS},
        {"created_at": now - 40 * DAY_MS},
        {"created_at": now - 90 * DAY_MS},
    ])
    assert count_window("users", now - 30 * DAY_MS, now) == {"current": 2, "previous": 1}


def test_dashboard_stats(client, db, user_headers, admin_headers):
    now = now_ms()
    # user-1 and admin-1 from the fixtures were created at epoch 1
    db.users.insert_many([
        {"_id": "new-1", "created_at": now - DAY_MS},
        {"_id": "new-2", "created_at": now - 3 * DAY_MS},
        {"_id": "old-1", "created_at": now - 45 * DAY_MS},
    ])
    db.sponsors.insert_many([{"name": "A", "created_at": now}, {"name": "B", "is_active": False, "created_at": now}])
    db.jobs.insert_many([{"user_id": "user-1", "created_at": now}, {"user_id": "user-1", "created_at": now - 10 * DAY_MS}])
    db.contacts.insert_many([{"status": "new"}, {"status": "responded"}])
    db.ai_feedback.insert_many([
        {"sentiment": "positive", "created_at": now},
        {"sentiment": "positive", "created_at": now - 10 * DAY_MS},
        {"sentiment": "negative", "created_at": now},
    ])

    response = client.get("/api/admin/dashboard/stats", headers=admin_headers)
    assert response.status_code == 200
    stats = response.json()["data"]

    assert stats["users"] == {
        "total": 5,
        "new_last_30_days": 2,
        "new_prev_30_days": 1,
        "growth_pct_from_last_month": 100,
    }
    assert stats["sponsors"]["active"] == 1
    assert stats["jobs"] == {"total": 2, "new_this_week": 1}
    assert stats["applications"] == {"total": 0}
    assert stats["inquiries"] == {"pending": 1}
    assert stats["ai_feedback"] == {"total": 3, "new_this_week": 2, "sentiment_score": 67}
    assert stats["timestamp"]


def test_list_users_search(client, db, admin_headers, user_headers):
    data = client.get("/api/admin/users?search=USER-1", headers=admin_headers).json()["data"]
    assert [u["id"] for u in data["users"]] == ["user-1"]

    everyone = client.get("/api/admin/users", headers=admin_headers).json()["data"]
    assert everyone["total"] == 2


def test_grant_admin_takes_effect_immediately(client, user_headers, admin_headers):
    assert client.get("/api/admin/circuits", headers=user_headers).status_code == 403

    response = client.put("/api/admin/users/user-1/role", json={"isAdmin": True}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Admin role granted"
    assert response.json()["data"]["is_admin"] is True

    assert client.get("/api/admin/circuits", headers=user_headers).status_code == 200


def test_cannot_revoke_own_admin(client, admin_headers):
    response = client.put("/api/admin/users/admin-1/role", json={"is_admin": False}, headers=admin_headers)
    assert response.status_code == 400


def test_role_for_unknown_user(client, admin_headers):
    response = client.put("/api/admin/users/ghost/role", json={"is_admin": True}, headers=admin_headers)
    assert response.status_code == 404


def test_circuit_statuses(client, admin_headers, monkeypatch):
    monkeypatch.setattr(circuit_breaker, "_now_ms", lambda: 1_000)
    for _ in range(3):
        record_failure(AI_SERVICE)

    data = client.get("/api/admin/circuits", headers=admin_headers).json()["data"]
    assert data[AI_SERVICE]["state"] == "open"


def test_usage(client, db, user_headers):
    db.cover_letters.insert_one({"user_id": "user-1", "created_at": now_ms()})
    db.cv_analyses.insert_one({"user_id": "user-1", "created_at": now_ms() - 400 * DAY_MS})

    data = client.get("/api/user/usage", headers=user_headers).json()["data"]
    assert data["plan"] == "free"
    assert data["limits"]["applications_per_month"] == 50
    assert data["usage"] == {
        "applications_per_month": 0,
        "cv_analyses_per_month": 0,
        "ai_generations_per_month": 1,
    }


def test_usage_with_unknown_plan_gets_free_limits(client, db, user_headers):
    db.subscriptions.insert_one({"_id": "sub-1", "status": "active", "plan": "enterprise"})
    db.users.update_one({"_id": "user-1"}, {"$set": {"subscription_id": "sub-1", "plan": "gold"}})

    response = client.get("/api/user/usage", headers=user_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["plan"] == "free"
    assert data["limits"]["cv_analyses_per_month"] == 3


def test_limits_for_unknown_plan():
    assert limits_for("enterprise") == SUBSCRIPTION_LIMITS["free"]
    assert limits_for("premium")["applications_per_month"] == UNLIMITED
