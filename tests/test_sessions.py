from fastapi.testclient import TestClient
from sqlalchemy import text

from app.core.config import get_settings
from app.core.sessions import (
    PrincipalKind, SessionState, decode_session_cookie, destroy_session, encode_session_cookie,
    load_session, purge_expired_sessions, save_session
)
from app.db.database import execute_raw_sql, get_db_session
from app.main import app


def test_session_round_trips_claims_through_the_store():
    state = SessionState()
    state.attach(PrincipalKind.student, 7)
    state.attach(PrincipalKind.admin, 3)
    token = save_session(state)

    loaded = load_session(token)

    assert loaded.principal(PrincipalKind.student) == 7
    assert loaded.principal(PrincipalKind.admin) == 3
    assert loaded.principal(PrincipalKind.recruiter) is None
    assert loaded.dirty is False


def test_detaching_one_principal_keeps_the_others():
    state = SessionState()
    state.attach(PrincipalKind.student, 7)
    state.attach(PrincipalKind.recruiter, 2)

    state.detach(PrincipalKind.recruiter)

    assert state.claims == {"student": 7}
    assert not state.is_empty


def test_pending_verification_is_stored_separately():
    state = SessionState()
    state.begin_verification(11)
    loaded = load_session(save_session(state))

    assert loaded.pending_user_id == 11
    assert loaded.claims == {}

    loaded.end_verification()
    assert loaded.is_empty


def _expire(token):
    with get_db_session() as db:
        db.execute(text("UPDATE web_sessions SET expires_at = '2000-01-01T00:00:00' WHERE token = :t"), {"t": token})


def _session_rows():
    return execute_raw_sql("SELECT token FROM web_sessions")


def test_unknown_or_expired_tokens_give_an_empty_session():
    assert load_session(None).is_empty
    assert load_session("no-such-token").is_empty

    state = SessionState()
    state.attach(PrincipalKind.admin, 1)
    token = save_session(state)
    _expire(token)

    assert load_session(token).is_empty
    assert _session_rows() == []


def test_purge_removes_only_expired_sessions():
    stale, live = SessionState(), SessionState()
    stale.attach(PrincipalKind.student, 1)
    live.attach(PrincipalKind.student, 2)
    _expire(save_session(stale))
    live_token = save_session(live)

    assert purge_expired_sessions() == 1
    assert _session_rows() == [{"token": live_token}]


def test_logout_with_expired_cookie_leaves_no_row(client):
    state = SessionState()
    state.attach(PrincipalKind.student, 1)
    token = save_session(state)
    _expire(token)
    cookie = f"{get_settings().session_cookie_name}={encode_session_cookie(token)}"

    r = client.get("/logout", headers={"Cookie": cookie}, follow_redirects=False)

    assert r.status_code == 303

    assert _session_rows() == []


def test_startup_purges_expired_sessions():
    state = SessionState()
    state.attach(PrincipalKind.admin, 1)
    _expire(save_session(state))

    with TestClient(app):
        pass

    assert _session_rows() == []


def test_destroy_session():
    state = SessionState()
    state.attach(PrincipalKind.student, 5)
    token = save_session(state)

    destroy_session(state)

    assert state.token is None and state.is_empty
    assert load_session(token).is_empty


def test_cookie_value_is_signed():
    cookie = encode_session_cookie("abc")

    assert decode_session_cookie(cookie) == "abc"
    assert decode_session_cookie(cookie[:-2] + "xx") is None
    assert decode_session_cookie("garbage") is None


def test_one_client_can_hold_student_and_admin_claims(client, register_student):
    register_student(client)
    client.post("/admin/signup", data={"username": "admin1", "password": "adminpass"}, follow_redirects=False)

    status = client.get("/auth-status").json()
    assert status["authenticated"] and status["admin"]

    client.get("/admin/logout", follow_redirects=False)

    status = client.get("/auth-status").json()
    assert status["authenticated"] is True
    assert status["admin"] is False


def test_guards_are_independent(student_client, admin_client, recruiter_client):
    assert student_client.get("/api/admin/stats").status_code == 401
    assert student_client.get("/api/recruiter/drives").status_code == 401
    assert admin_client.get("/api/profile").status_code == 401
    assert recruiter_client.get("/api/admin/drives").status_code == 401

    assert admin_client.get("/api/admin/stats").status_code == 200
    assert recruiter_client.get("/api/recruiter/drives").status_code == 200


def test_bearer_token_is_accepted(client):
    state = SessionState()
    state.attach(PrincipalKind.admin, 1)
    cookie = encode_session_cookie(save_session(state))

    r = client.get("/api/admin/stats", headers={"Authorization": f"Bearer {cookie}"})

    assert r.status_code == 200


def test_api_errors_are_json(client):
    r = client.get("/api/profile")

    assert r.status_code == 401
    assert r.json()["error"] == "unauthenticated"
