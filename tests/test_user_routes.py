from tests.conftest import bearer

PROFILE = {
    "personalInfo": {"firstName": "Jo", "lastName": "Doe", "email": "Jo@Example.com", "city": "London"},
    "professional": {"currentTitle": "Backend Engineer", "skills": "Python, AWS"},
    "preferences": {"relocate": True, "workAuthorization": "Skilled Worker visa"},
}


def test_autofill_profile_round_trip(client, db, user_headers):
    assert client.get("/api/user/autofill-profile", headers=user_headers).json()["data"] is None

    response = client.post("/api/user/autofill-profile", json=PROFILE, headers=user_headers)
    assert response.status_code == 200
    saved = db.users.find_one({"_id": "user-1"})["autofill_profile"]
    assert saved["personal_info"]["email"] == "jo@example.com"
    assert saved["personal_info"]["phone"] == ""
    assert saved["preferences"]["relocate"] is True

    data = client.get("/api/user/autofill-profile", headers=user_headers).json()["data"]
    assert data["professional"]["current_title"] == "Backend Engineer"

    assert client.delete("/api/user/autofill-profile", headers=user_headers).status_code == 200
    assert db.users.find_one({"_id": "user-1"})["autofill_profile"] is None


def test_autofill_profile_validation(client, user_headers):
    bad_email = {**PROFILE, "personalInfo": {"email": "not-an-email"}}
    assert client.post("/api/user/autofill-profile", json=bad_email, headers=user_headers).status_code == 400

    missing_section = {"personalInfo": {}, "professional": {}}
    assert client.post("/api/user/autofill-profile", json=missing_section, headers=user_headers).status_code == 400


def test_autofill_profile_unknown_user(client):
    headers = bearer("ghost")
    assert client.get("/api/user/autofill-profile", headers=headers).status_code == 404
    assert client.post("/api/user/autofill-profile", json=PROFILE, headers=headers).status_code == 404
