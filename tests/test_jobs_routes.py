from bson import ObjectId

from hireall.db.mongodb import now_ms

JOB = {
    "title": "Backend Engineer",
    "company": "Acme Widgets",
    "location": "London",
    "url": "https://www.linkedin.com/jobs/view/3812345678/?trk=feed&utm_source=share",
    "isSponsored": True,
    "jobType": "Full-time",
    "skills": ["Python", " ", "<b>AWS</b>"],
}


def add_job(client, headers, **overrides):
    response = client.post("/api/app/jobs", json={**JOB, **overrides}, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["data"]["id"]


def test_create_job(client, db, user_headers):
    response = client.post("/api/app/jobs", json=JOB, headers=user_headers)
    assert response.status_code == 201
    assert response.json()["data"]["message"] == "Job added successfully"

    doc = db.jobs.find_one({"_id": ObjectId(response.json()["data"]["id"])})
    assert doc["user_id"] == "user-1"
    assert doc["is_sponsored"] is True
    assert doc["is_recruitment_agency"] is False
    assert doc["job_type"] == "Full-time"
    assert doc["skills"] == ["Python", "AWS"]
    assert doc["normalized_url"] == "https://www.linkedin.com/jobs/view/3812345678"
    assert doc["job_identifier"] == "linkedin:3812345678"
    assert doc["date_found"] == doc["created_at"]


def test_duplicate_job_is_409(client, user_headers, other_headers):
    job_id = add_job(client, user_headers)

    response = client.post(
        "/api/app/jobs",
        json={**JOB, "url": "https://linkedin.com/jobs/view/3812345678?refId=abc"},
        headers=user_headers,
    )
    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "DUPLICATE_RECORD"
    assert error["details"] == {"existing_job_id": job_id}

    # Another user may save the same posting
    add_job(client, other_headers)


def test_cannot_create_for_another_user(client, db, user_headers, admin_headers):
    response = client.post("/api/app/jobs", json={**JOB, "userId": "user-2"}, headers=user_headers)
    assert response.status_code == 403
    assert db.jobs.count_documents({}) == 0


def test_admin_files_job_on_named_users_board(client, db, admin_headers):
    job_id = add_job(client, admin_headers, userId="user-2")

    doc = db.jobs.find_one({"_id": ObjectId(job_id)})
    assert doc["user_id"] == "user-2"


def test_admin_add_with_application_for_user(client, db, admin_headers):
    response = client.post(
        "/api/app/jobs/add-with-application",
        json={"job": {**JOB, "userId": "user-2"}, "application": {"status": "applied"}},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert db.jobs.find_one({})["user_id"] == "user-2"
    assert db.applications.find_one({})["user_id"] == "user-2"


def test_invalid_url_rejected(client, user_headers):
    response = client.post("/api/app/jobs", json={**JOB, "url": "ftp://example.com/job"}, headers=user_headers)
    assert response.status_code == 400
    assert response.json()["error"]["field"] == "url"


def test_list_jobs_scoped_to_caller(client, user_headers, other_headers, admin_headers):
    add_job(client, user_headers)
    add_job(client, other_headers)

    mine = client.get("/api/app/jobs", headers=user_headers).json()["data"]
    assert mine["total"] == 1
    assert mine["jobs"][0]["user_id"] == "user-1"

    # userId is ignored for non-admins
    mine = client.get("/api/app/jobs?userId=user-2", headers=user_headers).json()["data"]
    assert [j["user_id"] for j in mine["jobs"]] == ["user-1"]

    everyone = client.get("/api/app/jobs", headers=admin_headers).json()["data"]
    assert everyone["total"] == 2

    one_user = client.get("/api/app/jobs?userId=user-2", headers=admin_headers).json()["data"]
    assert [j["user_id"] for j in one_user["jobs"]] == ["user-2"]


def test_list_pagination(client, user_headers):
    for i in range(3):
        add_job(client, user_headers, url=f"https://example.com/jobs/{i}")

    page = client.get("/api/app/jobs?page=2&limit=2", headers=user_headers).json()["data"]
    assert page["total"] == 3
    assert len(page["jobs"]) == 1
    assert page["has_more"] is False


def test_get_job_ownership(client, user_headers, other_headers, admin_headers):
    job_id = add_job(client, user_headers)

    assert client.get(f"/api/app/jobs/{job_id}", headers=user_headers).json()["data"]["id"] == job_id
    assert client.get(f"/api/app/jobs/{job_id}", headers=other_headers).status_code == 403
    assert client.get(f"/api/app/jobs/{job_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/app/jobs/{ObjectId()}", headers=user_headers).status_code == 404


def test_update_job(client, db, user_headers):
    job_id = add_job(client, user_headers)

    response = client.patch(
        f"/api/app/jobs/{job_id}",
        json={"title": "Senior Backend Engineer", "url": "https://uk.indeed.com/viewjob?jk=abc123&from=serp"},
        headers=user_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Senior Backend Engineer"
    assert data["job_identifier"] == "indeed:abc123"

    stored = db.jobs.find_one({"_id": ObjectId(job_id)})
    assert stored["normalized_url"] == "https://uk.indeed.com/viewjob?jk=abc123"

    put = client.put(f"/api/app/jobs/{job_id}", json={"location": "Remote"}, headers=user_headers)
    assert put.json()["data"]["location"] == "Remote"


def test_update_protected_fields_rejected(client, user_headers):
    job_id = add_job(client, user_headers)
    response = client.put(f"/api/app/jobs/{job_id}", json={"userId": "user-2"}, headers=user_headers)
    assert response.status_code == 400
    assert "protected" in response.json()["error"]["message"]


def test_delete_job_removes_applications(client, db, user_headers, other_headers):
    response = client.post(
        "/api/app/jobs/add-with-application",
        json={"job": JOB, "application": {"status": "applied", "notes": "Referred by Sam"}},
        headers=user_headers,
    )
    job_id = response.json()["data"]["job_id"]

    assert client.delete(f"/api/app/jobs/{job_id}", headers=other_headers).status_code == 403

    response = client.delete(f"/api/app/jobs/{job_id}", headers=user_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"id": job_id, "deleted_applications": 1}
    assert db.jobs.count_documents({}) == 0
    assert db.applications.count_documents({}) == 0


def test_add_with_application(client, db, user_headers):
    response = client.post(
        "/api/app/jobs/add-with-application",
        json={"job": JOB, "application": {"status": "applied"}},
        headers=user_headers,
    )
    assert response.status_code == 201
    data = response.json()["data"]

    application = db.applications.find_one({"_id": ObjectId(data["application_id"])})
    assert application["job_id"] == data["job_id"]
    assert application["user_id"] == "user-1"
    assert application["applied_date"] is not None

    again = client.post("/api/app/jobs/add-with-application", json={"job": JOB}, headers=user_headers)
    assert again.status_code == 409


def test_free_plan_application_limit(client, db, user_headers, premium_headers):
    now = now_ms()
    db.applications.insert_many([
        {"user_id": "user-1", "job_id": "x", "status": "applied", "created_at": now} for _ in range(50)
    ])
    response = client.post("/api/app/jobs/add-with-application", json={"job": JOB}, headers=user_headers)

    assert response.status_code == 429
    assert response.json()["error"]["retry_after"] == 3600
    assert db.jobs.count_documents({}) == 0

    db.applications.update_many({}, {"$set": {"user_id": "premium-1"}})
    response = client.post("/api/app/jobs/add-with-application", json={"job": JOB}, headers=premium_headers)
    assert response.status_code == 201


def test_job_stats(client, db, user_headers):
    add_job(client, user_headers)
    add_job(client, user_headers, url="https://example.com/jobs/2", isSponsored=False, isRecruitmentAgency=True)
    db.applications.insert_many([
        {"user_id": "user-1", "status": "applied"},
        {"user_id": "user-1", "status": "interviewing"},
        {"user_id": "user-2", "status": "applied"},
    ])

    stats = client.get("/api/app/jobs/stats", headers=user_headers).json()["data"]
    assert stats["total_jobs"] == 2
    assert stats["sponsored_jobs"] == 1
    assert stats["recruitment_agency_jobs"] == 1
    assert stats["jobs_today"] == 2
    assert stats["by_status"]["applied"] == 1
    assert stats["by_status"]["interviewing"] == 1
    assert stats["total_applications"] == 1


def test_applications_list_and_update(client, db, user_headers, other_headers):
    created = client.post(
        "/api/app/jobs/add-with-application",
        json={"job": JOB, "application": {"status": "interested"}},
        headers=user_headers,
    ).json()["data"]
    application_id = created["application_id"]

    listing = client.get("/api/app/applications", headers=user_headers).json()["data"]
    assert listing["total"] == 1
    assert listing["applications"][0]["job"]["title"] == "Backend Engineer"
    assert listing["applications"][0]["applied_date"] is None

    assert client.get("/api/app/applications?status=applied", headers=user_headers).json()["data"]["total"] == 0

    response = client.patch(
        f"/api/app/applications/{application_id}",
        json={"status": "applied", "notes": "Sent CV"},
        headers=user_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "applied"
    assert data["applied_date"] is not None

    assert client.patch(
        f"/api/app/applications/{application_id}", json={"status": "offered"}, headers=other_headers
    ).status_code == 403
    assert client.patch(
        f"/api/app/applications/{application_id}", json={"status": "bogus"}, headers=user_headers
    ).status_code == 400

    assert client.delete(f"/api/app/applications/{application_id}", headers=user_headers).status_code == 200
    assert db.applications.count_documents({}) == 0
