"""
Shared fixtures.

The app runs against a throwaway SQLite file that is rebuilt for every test.
Outgoing verification emails are captured in `outbox` instead of being sent.
"""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="placement-tests-")
DB_PATH = os.path.join(_TMP_DIR, "placements.db")

os.environ["DATABASE_URL"] = f"sqlite:///{DB_PATH}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["SMTP_HOST"] = ""
os.environ["DEEPSEEK_API_KEY"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from app.db.database import get_engine
from app.db.migrations import run_migrations
from app.main import app
from app.services import email_service
from app.utils.timeutil import to_iso, utcnow


def days_from_now(days: int) -> str:
    return to_iso(utcnow() + timedelta(days=days))


@pytest.fixture(autouse=True)
def fresh_database():
    get_engine().dispose()
    if os.path.exists(DB_PATH):
        os.remove(DB_PATH)
    run_migrations()
    yield
    get_engine().dispose()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Captured verification emails: [{"to", "code", "name"}]."""
    sent = []

    def fake_send(to_email, code, display_name=""):
        sent.append({"to": to_email, "code": code, "name": display_name})
        return True

    monkeypatch.setattr(email_service, "send_verification_email", fake_send)
    return sent


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register_student(outbox):
    """Sign up, verify and sign in a student on the given client. Returns the user id."""

    def _register(c, username="alice", password="secret1", email="alice@college.edu"):
        r = c.post("/signup", data={"username": username, "password": password, "email": email},
                   follow_redirects=False)
        assert r.status_code == 303, r.text
        code = outbox[-1]["code"]

        r = c.post("/verify-code", data={"code": code}, follow_redirects=False)
        assert r.status_code == 303, r.text

        r = c.post("/signin", data={"username": username, "password": password}, follow_redirects=False)
        assert r.headers["location"] == "/profile.html"
        return c.get("/api/profile").json()["user_id"]

    return _register


@pytest.fixture
def student_client(register_student):
    with TestClient(app) as c:
        c.user_id = register_student(c)
        yield c


@pytest.fixture
def admin_client():
    with TestClient(app) as c:
        r = c.post("/admin/signup",
                   data={"username": "admin1", "password": "adminpass", "email": "admin@college.edu"},
                   follow_redirects=False)
        assert r.status_code == 303, r.text
        yield c


@pytest.fixture
def recruiter_client():
    with TestClient(app) as c:
        r = c.post("/recruiter/signup",
                   data={"username": "hr_acme", "password": "hrpass1", "email": "hr@acme.com",
                         "company_name": "Acme"},
                   follow_redirects=False)
        assert r.status_code == 303, r.text
        yield c


@pytest.fixture
def make_drive(admin_client):
    """Create a drive through the admin API. Returns the drive JSON."""

    def _make(**fields):
        payload = {"company_name": "Acme", "role": "SDE", "deadline": days_from_now(7)}
        payload.update(fields)
        r = admin_client.post("/api/admin/drives", json=payload)
        assert r.status_code == 201, r.text
        return r.json()

    return _make
