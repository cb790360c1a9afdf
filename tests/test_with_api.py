from pymongo.errors import ServerSelectionTimeoutError

from hireall.core import rate_limiter
from hireall.core.auth import MOCK_TOKEN_SIGNATURE
from hireall.core.config import get_settings
from hireall.core.rate_limiter import RateLimitConfig
from hireall.services.jobs_service import JobService
from tests.conftest import bearer

CONTACT = {
    "name": "Jane Doe",
    "email": "jane.doe@example.com",
    "subject": "Pricing",
    "message": "Hi, I'd like to know more about the premium plan for my team.",
}


def test_success_envelope_and_headers(client, user_headers):
    response = client.get("/api/app/jobs/stats", headers=user_headers)
    assert response.status_code == 200

    body = response.json()
    assert body["success"] is True
    assert body["data"]["total_jobs"] == 0
    assert body["meta"]["request_id"] == response.headers["X-Request-ID"]
    assert body["meta"]["request_id"].startswith("req_")
    assert response.headers["X-RateLimit-Limit"] == "50"
    assert response.headers["X-RateLimit-Remaining"] == "49"


def test_missing_token_is_unauthorized(client):
    response = client.get("/api/app/jobs")
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "UNAUTHORIZED"


def test_bad_token_is_invalid_token(client):
    response = client.get("/api/app/jobs", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_TOKEN"


def test_session_cookie_is_accepted(client, user_headers):
    token = user_headers["Authorization"].split(" ", 1)[1]
    response = client.get("/api/app/jobs", headers={"Cookie": f"__session={token}"})
    assert response.status_code == 200


def test_non_admin_is_forbidden(client, user_headers):
    response = client.get("/api/admin/dashboard/stats", headers=user_headers)
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


def test_admin_claim_grants_admin(client):
    response = client.get("/api/admin/circuits", headers=bearer("claims-admin", admin=True))
    assert response.status_code == 200


def test_mock_token_only_in_development(client, monkeypatch):
    headers = {"Authorization": f"Bearer header.{MOCK_TOKEN_SIGNATURE}"}
    response = client.get("/api/user/usage", headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["plan"] == "free"

    monkeypatch.setattr(get_settings(), "environment", "production")
    assert client.get("/api/user/usage", headers=headers).status_code == 401


def test_rate_limit_returns_429_with_headers(client, monkeypatch):
    monkeypatch.setitem(rate_limiter.RATE_LIMITS, "contact", RateLimitConfig(1))

    assert client.post("/api/contact", json=CONTACT).status_code == 201
    response = client.post("/api/contact", json=CONTACT)

    assert response.status_code == 429
    body = response.json()
    assert body["error"]["code"] == "RATE_LIMIT_EXCEEDED"
    assert body["error"]["retry_after"] >= 1
    assert response.headers["Retry-After"] == str(body["error"]["retry_after"])
    assert response.headers["X-RateLimit-Remaining"] == "0"


def test_invalid_json(client, user_headers):
    response = client.post(
        "/api/app/jobs",
        content=b"{not json",
        headers={**user_headers, "Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_JSON"


def test_body_validation_reports_field(client, user_headers):
    response = client.post("/api/app/jobs", json={"title": "Engineer"}, headers=user_headers)
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_FAILED"
    assert error["field"] == "company"
    assert error["details"]["validation_errors"]


def test_invalid_route_id(client, user_headers):
    response = client.get("/api/app/jobs/not-an-id", headers=user_headers)
    assert response.status_code == 400
    assert response.json()["error"]["field"] in ("job_id", "jobId")


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "CONTENT_NOT_FOUND"


def test_unhandled_error_is_500(client, user_headers, monkeypatch):
    def boom(self, user_id):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(JobService, "get_stats", boom)
    response = client.get("/api/app/jobs/stats", headers=user_headers)
    assert response.status_code == 500
    assert response.json()["error"]["code"] == "INTERNAL_SERVER_ERROR"


def test_database_outage_is_503(client, user_headers, monkeypatch):
    def down(self, user_id):
        raise ServerSelectionTimeoutError("no servers")

    monkeypatch.setattr(JobService, "get_stats", down)
    response = client.get("/api/app/jobs/stats", headers=user_headers)
    assert response.status_code == 503
    assert response.json()["error"]["retry_after"] == 30


def test_extension_origin_gets_cors_headers(client, user_headers):
    origin = "chrome-extension://abcdefghijklmnop"
    response = client.get("/api/app/jobs/stats", headers={**user_headers, "Origin": origin})
    assert response.headers["access-control-allow-origin"] == origin


def test_health(client):
    assert client.get("/").json()["status"] == "healthy"
    health = client.get("/health").json()
    assert health["ai"] == "not_configured"
    assert "ai" in health["circuits"]
