from hireall.db.mongodb import now_ms
from hireall.services.email_template_service import extract_variables, fill_placeholders
from hireall.services.stats_service import DAY_MS

TEMPLATE = {
    "name": "Welcome",
    "subject": "Welcome to HireAll, {{firstName}}",
    "category": "onboarding",
    "htmlContent": "<p>Hi {{ firstName }}, start here: {{ dashboardUrl }}</p>",
    "textContent": "Hi {{firstName}}",
    "tags": ["Welcome", " "],
}


def create_template(client, headers, **overrides):
    response = client.post("/api/admin/email-templates", json={**TEMPLATE, **overrides}, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["data"]


def test_extract_and_fill():
    assert extract_variables("{{a}} {{b}}", None, "{{ a }}") == ["a", "b"]
    assert fill_placeholders("Hi {{name}}{{missing}}!", {"name": "Jo"}) == "Hi Jo!"
    assert fill_placeholders(None, {}) is None


def test_create_template(client, db, admin_headers):
    data = create_template(client, admin_headers)
    assert data["variables"] == ["firstName", "dashboardUrl"]
    assert data["tags"] == ["welcome"]
    assert data["active"] is True
    assert db.email_templates.find_one()["created_by"] == "admin-1"


def test_template_needs_a_body(client, admin_headers):
    response = client.post(
        "/api/admin/email-templates",
        json={"name": "Empty", "subject": "Hello"},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_duplicate_name_is_409(client, admin_headers):
    create_template(client, admin_headers)
    response = client.post("/api/admin/email-templates", json={**TEMPLATE, "name": "WELCOME"}, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"]["field"] == "name"


def test_templates_are_admin_only(client, user_headers):
    assert client.get("/api/admin/email-templates", headers=user_headers).status_code == 403
    assert client.post("/api/admin/email-templates", json=TEMPLATE, headers=user_headers).status_code == 403


def test_list_filters(client, admin_headers):
    create_template(client, admin_headers)
    create_template(client, admin_headers, name="Spring sale", subject="20% off", category="promotional", active=False)

    assert client.get("/api/admin/email-templates", headers=admin_headers).json()["data"]["total"] == 2
    promos = client.get("/api/admin/email-templates?category=promotional", headers=admin_headers).json()["data"]
    assert [t["name"] for t in promos["templates"]] == ["Spring sale"]
    active = client.get("/api/admin/email-templates?active=true", headers=admin_headers).json()["data"]
    assert [t["name"] for t in active["templates"]] == ["Welcome"]
    found = client.get("/api/admin/email-templates?search=sale", headers=admin_headers).json()["data"]
    assert found["total"] == 1


def test_update_recomputes_variables(client, admin_headers):
    template_id = create_template(client, admin_headers)["id"]

    response = client.put(
        f"/api/admin/email-templates/{template_id}",
        json={"htmlContent": "<p>{{greeting}}</p>", "textContent": None},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["variables"] == ["firstName", "greeting"]

    response = client.put(
        f"/api/admin/email-templates/{template_id}",
        json={"htmlContent": None},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_render(client, admin_headers):
    template_id = create_template(client, admin_headers)["id"]

    response = client.post(
        f"/api/admin/email-templates/{template_id}/render",
        json={"variables": {"firstName": "Jo"}},
        headers=admin_headers,
    )
    data = response.json()["data"]
    assert data["subject"] == "Welcome to HireAll, Jo"
    assert data["html_content"] == "<p>Hi Jo, start here: </p>"
    assert data["missing_variables"] == ["dashboardUrl"]


def test_get_and_delete(client, admin_headers):
    template_id = create_template(client, admin_headers)["id"]
    assert client.get(f"/api/admin/email-templates/{template_id}", headers=admin_headers).json()["data"]["name"] == "Welcome"
    assert client.delete(f"/api/admin/email-templates/{template_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/admin/email-templates/{template_id}", headers=admin_headers).status_code == 404
    assert client.delete(f"/api/admin/email-templates/{template_id}", headers=admin_headers).status_code == 404


def test_email_list_segments(client, db, admin_headers, user_headers, premium_headers):
    now = now_ms()
    db.users.insert_many([
        {"_id": "new-1", "email": "new@example.com", "created_at": now - DAY_MS,
         "email_preferences": {"marketing": True}},
        {"_id": "busy-1", "email": "busy@example.com", "created_at": 1, "last_login_at": now - DAY_MS},
        {"_id": "basic-1", "email": "basic@example.com", "plan": "basic", "created_at": 1},
        {"_id": "no-email", "created_at": now},
    ])

    data = client.get("/api/admin/email-list", headers=admin_headers).json()["data"]
    segments = {u["id"]: u["segment"] for u in data["users"]}
    assert segments == {
        "admin-1": "admin",
        "user-1": "all_users",
        "premium-1": "premium",
        "new-1": "new_users",
        "busy-1": "active_users",
        "basic-1": "basic",
    }
    assert data["segments"]["all_users"] == 1

    premium = client.get("/api/admin/email-list?segment=premium", headers=admin_headers).json()["data"]
    assert [u["email"] for u in premium["users"]] == ["p@example.com"]

    opted_in = client.get("/api/admin/email-list?activeOnly=true", headers=admin_headers).json()["data"]
    assert [u["id"] for u in opted_in["users"]] == ["new-1"]
