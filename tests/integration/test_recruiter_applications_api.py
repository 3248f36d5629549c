from jose import jwt

from jobtracker.core.roles import RoleService
from jobtracker.db.repositories import Repository
from jobtracker.db.session import SessionLocal

REQUEST = {
    "company_name": "Hooli",
    "company_website": "https://hooli.example.com",
    "job_title": "Talent Partner",
    "motivation": "We are hiring engineers",
}


def _roles_in_token(headers: dict[str, str]) -> list[str]:
    return jwt.get_unverified_claims(headers["Authorization"].split(" ", 1)[1])["roles"]


def test_single_pending_application_per_user(client, make_user, login) -> None:
    make_user("user@example.com")
    headers = login("user@example.com")

    first = client.post("/api/recruiterapplications", json=REQUEST, headers=headers)
    assert first.status_code == 201
    assert first.json()["status"] == "Pending"

    second = client.post("/api/recruiterapplications", json=REQUEST, headers=headers)
    assert second.status_code == 400
    assert "pending" in second.json()["detail"]

    mine = client.get("/api/recruiterapplications/mine", headers=headers)
    assert mine.json()["id"] == first.json()["id"]


def test_existing_recruiter_cannot_apply(client, make_user, login) -> None:
    make_user("rec@example.com", "User", "Recruiter")
    resp = client.post("/api/recruiterapplications", json=REQUEST, headers=login("rec@example.com"))
    assert resp.status_code == 400
    assert client.get("/api/recruiterapplications/mine", headers=login("rec@example.com")).status_code == 404


def test_review_endpoints_are_admin_only(client, make_user, login) -> None:
    make_user("user@example.com")
    make_user("other@example.com")
    make_user("admin@example.com", "Admin")
    user = login("user@example.com")
    other = login("other@example.com")
    admin = login("admin@example.com")
    app_id = client.post("/api/recruiterapplications", json=REQUEST, headers=user).json()["id"]

    assert client.get("/api/recruiterapplications", headers=user).status_code == 403
    assert client.post(f"/api/recruiterapplications/{app_id}/approve", headers=user).status_code == 403
    assert client.post(f"/api/recruiterapplications/{app_id}/reject", json={"reason": "no"}, headers=user).status_code == 403

    existing = client.get(f"/api/recruiterapplications/{app_id}", headers=other)
    missing = client.get("/api/recruiterapplications/99999", headers=other)
    assert existing.status_code == missing.status_code == 403
    assert existing.json() == missing.json()
    assert client.get(f"/api/recruiterapplications/{app_id}", headers=user).status_code == 200

    assert client.get("/api/recruiterapplications/99999", headers=admin).status_code == 404
    assert client.post("/api/recruiterapplications/99999/approve", headers=admin).status_code == 404
    assert len(client.get("/api/recruiterapplications", params={"pending_only": True}, headers=admin).json()) == 1


def test_approval_grants_recruiter_role(client, make_user, login) -> None:
    applicant_id = make_user("user@example.com")
    make_user("admin@example.com", "Admin")
    admin = login("admin@example.com")
    app_id = client.post("/api/recruiterapplications", json=REQUEST, headers=login("user@example.com")).json()["id"]

    resp = client.post(f"/api/recruiterapplications/{app_id}/approve", headers=admin)
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "Approved"
    assert body["reviewed_by_user_id"] is not None
    assert body["review_date"] is not None

    assert "Recruiter" in _roles_in_token(login("user@example.com"))
    with SessionLocal() as db:
        assert "Recruiter" in Repository(db).get_user(applicant_id).role_names

    again = client.post(f"/api/recruiterapplications/{app_id}/approve", headers=admin)
    assert again.status_code == 400
    assert client.get("/api/recruiterapplications", params={"pending_only": True}, headers=admin).json() == []


def test_failed_role_grant_leaves_application_pending(client, make_user, login, monkeypatch) -> None:
    applicant_id = make_user("user@example.com")
    make_user("admin@example.com", "Admin")
    admin = login("admin@example.com")
    app_id = client.post("/api/recruiterapplications", json=REQUEST, headers=login("user@example.com")).json()["id"]

    def _broken_assign(self, user, name):
        raise RuntimeError("role store unavailable")

    monkeypatch.setattr(RoleService, "assign_role", _broken_assign)

    resp = client.post(f"/api/recruiterapplications/{app_id}/approve", headers=admin)
    assert resp.status_code == 500
    assert "role store" not in resp.json()["detail"]

    with SessionLocal() as db:
        repo = Repository(db)
        application = repo.get_recruiter_application(app_id)
        assert application.status == "Pending"
        assert application.reviewed_by_user_id is None
        assert "Recruiter" not in repo.get_user(applicant_id).role_names


def test_rejection_requires_reason(client, make_user, login) -> None:
    make_user("user@example.com")
    make_user("admin@example.com", "Admin")
    admin = login("admin@example.com")
    user = login("user@example.com")
    app_id = client.post("/api/recruiterapplications", json=REQUEST, headers=user).json()["id"]

    assert client.post(f"/api/recruiterapplications/{app_id}/reject", json={"reason": "  "}, headers=admin).status_code == 400

    resp = client.post(f"/api/recruiterapplications/{app_id}/reject", json={"reason": "Company not verified"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["status"] == "Rejected"
    assert resp.json()["rejection_reason"] == "Company not verified"

    assert client.post(f"/api/recruiterapplications/{app_id}/approve", headers=admin).status_code == 400
    assert client.post("/api/recruiterapplications", json=REQUEST, headers=user).status_code == 201
