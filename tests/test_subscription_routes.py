from hireall.db.mongodb import now_ms


def subscribe(db, uid="user-1", **fields):
    db.subscriptions.insert_one({
        "_id": "sub-1",
        "status": "active",
        "plan": "premium",
        "current_period_end": now_ms() + 10**9,
        **fields,
    })
    db.users.update_one({"_id": uid}, {"$set": {"subscription_id": "sub-1"}})


def test_free_status(client, db, user_headers):
    db.applications.insert_one({"user_id": "user-1", "created_at": now_ms()})

    data = client.get("/api/subscription/status", headers=user_headers).json()["data"]
    assert data["subscription"] is None
    assert data["plan"] == "free"
    assert data["limits"]["cv_analyses_per_month"] == 3
    assert data["current_usage"] == {"cv_analyses": 0, "applications": 1}
    assert data["is_admin"] is False
    assert data["actions"] == {"can_upgrade": True, "can_cancel": False, "can_resume": False}


def test_premium_status(client, db, user_headers):
    subscribe(db)

    data = client.get("/api/subscription/status", headers=user_headers).json()["data"]
    assert data["plan"] == "premium"
    assert data["subscription"]["id"] == "sub-1"
    assert data["subscription"]["cancel_at_period_end"] is None
    assert data["actions"]["can_cancel"] is True


def test_inactive_subscription_falls_back_to_user_plan(client, db, user_headers):
    subscribe(db, status="past_due")
    assert client.get("/api/subscription/status", headers=user_headers).json()["data"]["plan"] == "free"


def test_cancel(client, db, user_headers):
    subscribe(db)

    response = client.post("/api/subscription/cancel", headers=user_headers)
    assert response.status_code == 200
    assert response.json()["data"]["cancel_at_period_end"] is True
    stored = db.subscriptions.find_one({"_id": "sub-1"})
    assert stored["canceled_at"] is not None
    # still premium until the period ends
    assert stored["status"] == "active"

    again = client.post("/api/subscription/cancel", headers=user_headers)
    assert again.status_code == 200
    assert again.json()["message"] == "Subscription is already scheduled for cancellation"

    actions = client.get("/api/subscription/status", headers=user_headers).json()["data"]["actions"]
    assert actions == {"can_upgrade": False, "can_cancel": False, "can_resume": True}


def test_cancel_without_subscription_is_404(client, user_headers):
    assert client.post("/api/subscription/cancel", headers=user_headers).status_code == 404


def test_admin_gets_premium_limits(client, admin_headers):
    data = client.get("/api/subscription/status", headers=admin_headers).json()["data"]
    assert data["is_admin"] is True
    assert data["limits"]["cv_analyses_per_month"] == -1
