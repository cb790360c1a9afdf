from bson import ObjectId

from hireall.services.ai_feedback_service import sentiment_score


def rate(client, headers, sentiment="positive", content_type="cover_letter", **extra):
    response = client.post(
        "/api/ai/feedback",
        json={"contentType": content_type, "sentiment": sentiment, **extra},
        headers=headers,
    )
    assert response.status_code == 201, response.json()
    return response.json()["data"]


def test_sentiment_score():
    assert sentiment_score(2, 3) == 67
    assert sentiment_score(0, 0) == 0


def test_submit_feedback(client, db, user_headers):
    data = rate(client, user_headers, contentId="abc123", comment="  Too formal  ")

    stored = db.ai_feedback.find_one({"_id": ObjectId(data["id"])})
    assert stored["user_id"] == "user-1"
    assert stored["content_type"] == "cover_letter"
    assert stored["comment"] == "Too formal"


def test_invalid_sentiment_rejected(client, user_headers):
    response = client.post(
        "/api/ai/feedback",
        json={"contentType": "resume", "sentiment": "meh"},
        headers=user_headers,
    )
    assert response.status_code == 400


def test_feedback_requires_auth(client):
    assert client.post("/api/ai/feedback", json={"contentType": "resume", "sentiment": "positive"}).status_code == 401


def test_list_own_feedback(client, user_headers, other_headers):
    rate(client, user_headers)
    rate(client, user_headers, sentiment="negative", content_type="cv_analysis")
    rate(client, other_headers)

    mine = client.get("/api/ai/feedback", headers=user_headers).json()["data"]
    assert mine["total"] == 2
    negative = client.get("/api/ai/feedback?sentiment=negative", headers=user_headers).json()["data"]
    assert [f["content_type"] for f in negative["feedback"]] == ["cv_analysis"]


def test_delete_feedback(client, user_headers, other_headers, admin_headers):
    first = rate(client, user_headers)["id"]
    second = rate(client, user_headers)["id"]

    assert client.delete(f"/api/ai/feedback/{first}", headers=other_headers).status_code == 403
    assert client.delete(f"/api/ai/feedback/{first}", headers=user_headers).status_code == 200
    assert client.delete(f"/api/ai/feedback/{second}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/ai/feedback/{second}", headers=user_headers).status_code == 404


def test_admin_feedback_summary(client, user_headers, other_headers, admin_headers):
    rate(client, user_headers)
    rate(client, user_headers, sentiment="negative", content_type="resume")
    rate(client, other_headers)

    assert client.get("/api/admin/ai-feedback", headers=user_headers).status_code == 403

    data = client.get("/api/admin/ai-feedback", headers=admin_headers).json()["data"]
    assert data["total"] == 3
    assert data["summary"] == {
        "total": 3,
        "positive": 2,
        "negative": 1,
        "new_this_week": 3,
        "by_type": {"cover_letter": 2, "resume": 1},
        "sentiment_score": 67,
    }
