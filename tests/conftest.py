from __future__ import annotations

import os
import tempfile
from pathlib import Path

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="jobtracker-tests-"))
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT / 'jobtracker.db'}"
os.environ["DATA_DIR"] = str(_TEST_ROOT)
os.environ["UPLOAD_DIR"] = str(_TEST_ROOT / "uploads")
os.environ["REQUIRE_CONFIRMED_EMAIL"] = "true"
os.environ["SENDGRID_API_KEY"] = "test-key"
os.environ["ADMIN_EMAIL"] = ""
os.environ["ADMIN_PASSWORD"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from jobtracker.api.app import create_app  # noqa: E402
from jobtracker.core.mailer import Mailer  # noqa: E402
from jobtracker.core.roles import RoleService  # noqa: E402
from jobtracker.core.security import hash_password  # noqa: E402
from jobtracker.db.base import Base  # noqa: E402
from jobtracker.db.models import User  # noqa: E402
from jobtracker.db.repositories import Repository  # noqa: E402
from jobtracker.db.seed import seed_roles  # noqa: E402
from jobtracker.db.session import SessionLocal, engine  # noqa: E402
from jobtracker.types import USER  # noqa: E402

PASSWORD = "Passw0rd!"


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        seed_roles(session)
    yield


@pytest.fixture(autouse=True)
def outbox(monkeypatch) -> list[dict[str, str]]:
    sent: list[dict[str, str]] = []

    def _capture(self, to: str, subject: str, html_content: str, plain_text: str = "") -> bool:
        sent.append({"to": to, "subject": subject, "html": html_content, "text": plain_text})
        return True

    monkeypatch.setattr(Mailer, "send_email", _capture)
    return sent


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


@pytest.fixture
def make_user():
    def _make(email: str, *roles: str, password: str = PASSWORD, confirmed: bool = True) -> str:
        with SessionLocal() as db:
            user = Repository(db).add_user(
                User(
                    email=email,
                    user_name=email,
                    password_hash=hash_password(password),
                    email_confirmed=confirmed,
                )
            )
            role_service = RoleService(db)
            for role in roles or (USER,):
                role_service.assign_role(user, role)
            db.commit()
            return user.id

    return _make


@pytest.fixture
def login(client):
    def _login(email: str, password: str = PASSWORD) -> dict[str, str]:
        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login
