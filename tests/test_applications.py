import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from app.core.errors import Conflict, NotFound, ValidationError
from app.db.database import execute_raw_sql, fetch_one, get_db_session
from app.services import application_service, drive_service, identity_service
from conftest import days_from_now


@pytest.fixture
def drive():
    return drive_service.create_drive(
        {"company_name": "Acme", "role": "SDE", "deadline": days_from_now(7)}, admin_id=1
    )


@pytest.fixture
def student_id(outbox):
    result = identity_service.register_student("alice", "secret1", "alice@college.edu")
    identity_service.verify_code(result.user_id, outbox[-1]["code"])
    return result.user_id


def _count_applications(user_id, drive_id):
    return fetch_one(
        "SELECT COUNT(*) AS n FROM applications WHERE user_id = :u AND drive_id = :d",
        {"u": user_id, "d": drive_id}
    )["n"]


def test_apply_creates_linked_application(drive, student_id):
    result = application_service.apply(student_id=student_id, drive_id=drive["id"])

    row = fetch_one("SELECT * FROM applications WHERE id = :id", {"id": result["id"]})
    assert result["kind"] == "linked"
    assert row["status"] == "Applied"
    assert row["current_round"] == "Application Submitted"
    assert row["company_name"] == "Acme"


def test_second_application_to_same_drive_conflicts(drive, student_id):
    application_service.apply(student_id=student_id, drive_id=drive["id"])

    with pytest.raises(Conflict):
        application_service.apply(student_id=student_id, drive_id=drive["id"])

    assert _count_applications(student_id, drive["id"]) == 1


def test_store_rejects_duplicate_rows(drive, student_id):
    application_service.apply(student_id=student_id, drive_id=drive["id"])

    with pytest.raises(IntegrityError):
        with get_db_session() as db:
            db.execute(
                text("""
                    INSERT INTO applications (user_id, drive_id, status, application_date, updated_at)
                    VALUES (:u, :d, 'Applied', '2030-01-01T00:00:00', '2030-01-01T00:00:00')
                """),
                {"u": student_id, "d": drive["id"]}
            )


def test_cannot_apply_to_unpublished_or_missing_drive(student_id):
    pending = drive_service.create_drive(
        {"company_name": "Acme", "role": "SDE", "deadline": days_from_now(7)}, recruiter_id=1
    )

    with pytest.raises(NotFound):
        application_service.apply(student_id=student_id, drive_id=pending["id"])
    with pytest.raises(NotFound):
        application_service.apply(student_id=student_id, drive_id=999)


def test_legacy_application_has_no_drive_or_owner():
    result = application_service.apply(company_name="  Initech ")

    row = fetch_one("SELECT * FROM applications WHERE id = :id", {"id": result["id"]})
    assert result["kind"] == "legacy"
    assert row["company_name"] == "Initech"
    assert row["user_id"] is None and row["drive_id"] is None
    assert row["status"] == "Application Submitted"


def test_apply_needs_a_drive_or_company():
    with pytest.raises(ValidationError):
        application_service.apply(company_name="   ")


def test_round_updates_append_history_and_match_latest_event(drive, student_id):
    app_id = application_service.apply(student_id=student_id, drive_id=drive["id"])["id"]

    application_service.advance_round(app_id, "Aptitude Test", "Shortlisted", None, admin_id=1)
    application_service.advance_round(app_id, "Technical Interview", "Rejected", "Weak on DSA", admin_id=1)

    events = application_service.list_round_events(app_id)
    application = fetch_one("SELECT * FROM applications WHERE id = :id", {"id": app_id})

    assert [e["round_name"] for e in events] == ["Aptitude Test", "Technical Interview"]
    assert application["status"] == events[-1]["status"] == "Rejected"
    assert application["current_round"] == events[-1]["round_name"]
    assert application["notes"] == "Weak on DSA"


def test_round_update_for_unknown_application_writes_nothing():
    with pytest.raises(NotFound):
        application_service.advance_round(999, "HR", "Selected", None, admin_id=1)

    assert execute_raw_sql("SELECT * FROM application_rounds") == []


def test_round_update_requires_round_and_status(drive, student_id):
    app_id = application_service.apply(student_id=student_id, drive_id=drive["id"])["id"]

    with pytest.raises(ValidationError):
        application_service.advance_round(app_id, " ", "Selected", None, admin_id=1)


def test_round_history_is_private_to_the_owner(drive, student_id):
    app_id = application_service.apply(student_id=student_id, drive_id=drive["id"])["id"]

    assert application_service.list_round_events(app_id, student_id=student_id) == []
    with pytest.raises(NotFound):
        application_service.list_round_events(app_id, student_id=student_id + 1)


def test_admin_listing_distinguishes_linked_and_legacy(drive, student_id):
    application_service.apply(student_id=student_id, drive_id=drive["id"])
    application_service.apply(company_name="Initech")

    records = application_service.list_all_applications()

    assert sorted(r.kind for r in records) == ["legacy", "linked"]
    linked = next(r for r in records if r.kind == "linked")
    assert linked.username == "alice"
    assert linked.role == "SDE"


# ============================================================
# API
# ============================================================

def test_apply_via_api_then_duplicate(student_client, make_drive):
    drive = make_drive()

    assert student_client.post(f"/api/drives/{drive['id']}/apply").status_code == 201
    r = student_client.post(f"/api/drives/{drive['id']}/apply")

    assert r.status_code == 409
    assert r.json() == {"error": "conflict", "detail": "You have already applied to this drive."}


def test_apply_requires_student(client, make_drive):
    drive = make_drive()
    assert client.post(f"/api/drives/{drive['id']}/apply").status_code == 401


def test_form_apply_redirects(client, student_client, make_drive):
    drive = make_drive()

    r = student_client.post("/apply", data={"drive_id": str(drive["id"])}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/applySuccess.html"
    assert len(student_client.get("/api/my-applications").json()) == 1

    r = client.post("/apply", data={"company_name": "Initech"}, follow_redirects=False)
    assert r.status_code == 303

    r = client.post("/apply", data={"company_name": ""}, follow_redirects=False)
    assert r.status_code == 400
    assert "Go Back" in r.text


def test_round_update_flow(admin_client, student_client, make_drive):
    drive = make_drive()
    student_client.post(f"/api/drives/{drive['id']}/apply")
    application_id = student_client.get("/api/my-applications").json()[0]["id"]

    r = admin_client.post(f"/api/admin/applications/{application_id}/round-update",
                          json={"round_name": "HR Interview", "status": "Selected", "remarks": "Welcome aboard"})
    assert r.status_code == 200
    assert r.json()["round_name"] == "HR Interview"

    mine = student_client.get("/api/my-applications").json()[0]
    assert mine["status"] == "Selected"
    assert mine["current_round"] == "HR Interview"

    rounds = student_client.get(f"/api/my-applications/{application_id}/rounds").json()
    assert [(e["round_name"], e["status"]) for e in rounds] == [("HR Interview", "Selected")]

    r = admin_client.post("/api/admin/applications/999/round-update",
                          json={"round_name": "HR Interview", "status": "Selected"})
    assert r.status_code == 404


def test_admin_application_listing(admin_client, student_client, make_drive):
    drive = make_drive()
    student_client.post(f"/api/drives/{drive['id']}/apply")
    admin_client.post("/apply", data={"company_name": "Initech"}, follow_redirects=False)

    records = admin_client.get("/api/admin/applications").json()
    assert sorted(r["kind"] for r in records) == ["legacy", "linked"]

    only_drive = admin_client.get("/api/admin/applications", params={"drive_id": drive["id"]}).json()
    assert [r["kind"] for r in only_drive] == ["linked"]

    applicants = admin_client.get(f"/api/admin/drives/{drive['id']}/applicants").json()
    assert [a["username"] for a in applicants] == ["alice"]
