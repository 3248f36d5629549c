from pathlib import Path

from jobtracker.config import get_settings
from jobtracker.core.deletion import AccountDeletion
from jobtracker.db.models import JobApplication, JobPosting, User
from jobtracker.db.session import SessionLocal

POSTING = {
    "title": "SRE",
    "company_name": "Soylent",
    "description": "Keep it up",
    "requirements": "Linux",
    "application_deadline": "2030-01-01T00:00:00",
}


def _counts() -> tuple[int, int, int]:
    with SessionLocal() as db:
        return (
            db.query(User).count(),
            db.query(JobPosting).count(),
            db.query(JobApplication).count(),
        )


def _setup(client, make_user, login) -> tuple[dict, dict, Path, Path]:
    make_user("rec@example.com", "User", "Recruiter")
    make_user("applicant@example.com")
    rec = login("rec@example.com")
    applicant = login("applicant@example.com")

    own_posting = client.post("/api/jobpostings", json=POSTING, headers=rec).json()["id"]
    other_posting = client.post("/api/jobpostings", json={**POSTING, "title": "DBA"}, headers=rec).json()["id"]
    applicant_cv = client.post(
        f"/api/jobapplications/apply/{own_posting}",
        files={"cv": ("applicant.pdf", b"applicant", "application/pdf")},
        headers=applicant,
    ).json()["cv_file_path"]
    recruiter_cv = client.post(
        f"/api/jobapplications/apply/{other_posting}",
        files={"cv": ("rec.pdf", b"recruiter", "application/pdf")},
        headers=rec,
    ).json()["cv_file_path"]

    upload_dir = Path(get_settings().upload_dir)
    return rec, applicant, upload_dir / Path(applicant_cv).name, upload_dir / Path(recruiter_cv).name


def test_wrong_password_keeps_the_account(client, make_user, login) -> None:
    make_user("user@example.com")
    resp = client.request("DELETE", "/api/profile", json={"password": "Wr0ngPass"}, headers=login("user@example.com"))
    assert resp.status_code == 400
    assert _counts()[0] == 1


def test_self_deletion_removes_everything_then_files(client, make_user, login, outbox) -> None:
    rec, applicant, applicant_file, recruiter_file = _setup(client, make_user, login)
    assert _counts() == (2, 2, 2)

    resp = client.request("DELETE", "/api/profile", json={"password": "Passw0rd!"}, headers=rec)
    assert resp.status_code == 200
    assert resp.json()["postings_removed"] == 2
    assert resp.json()["files_removed"] == 2

    assert _counts() == (1, 0, 0)
    assert not applicant_file.exists()
    assert not recruiter_file.exists()
    assert outbox[-1]["to"] == "rec@example.com"
    assert outbox[-1]["subject"] == "Your Account Has Been Deleted"

    assert client.get("/api/jobapplications", headers=applicant).json() == []
    assert client.post("/api/auth/login", json={"email": "rec@example.com", "password": "Passw0rd!"}).status_code == 401


def test_failure_rolls_back_rows_and_keeps_files(client, make_user, login, monkeypatch) -> None:
    rec, _, applicant_file, recruiter_file = _setup(client, make_user, login)

    def _fail(self, user):
        raise RuntimeError("identity store offline")

    monkeypatch.setattr(AccountDeletion, "_delete_identity", _fail)

    resp = client.request("DELETE", "/api/profile", json={"password": "Passw0rd!"}, headers=rec)
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to delete the account"

    assert _counts() == (2, 2, 2)
    assert applicant_file.exists()
    assert recruiter_file.exists()


def test_token_of_deleted_account_cannot_create_rows(client, make_user, login) -> None:
    make_user("rec@example.com", "User", "Recruiter")
    make_user("live-rec@example.com", "User", "Recruiter")
    live_posting = client.post(
        "/api/jobpostings",
        json={
            "title": "Engineer",
            "company_name": "Acme",
            "description": "Build things",
            "requirements": "Python",
            "application_deadline": "2030-01-01T00:00:00",
        },
        headers=login("live-rec@example.com"),
    ).json()["id"]
    stale = login("rec@example.com")
    assert client.request("DELETE", "/api/profile", json={"password": "Passw0rd!"}, headers=stale).status_code == 200

    manual = client.post(
        "/api/jobapplications",
        json={"company_name": "Globex", "position": "Analyst", "deadline": "2030-02-01T12:00:00"},
        headers=stale,
    )
    assert manual.status_code == 404
    posting = client.post(
        "/api/jobpostings",
        json={
            "title": "Engineer",
            "company_name": "Acme",
            "description": "Build things",
            "requirements": "Python",
            "application_deadline": "2030-01-01T00:00:00",
        },
        headers=stale,
    )
    assert posting.status_code == 404
    assert client.post(f"/api/jobapplications/apply/{live_posting}", headers=stale).status_code == 404
