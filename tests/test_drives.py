import pytest

from app.core.errors import NotFound, ValidationError
from app.services import drive_service
from app.services.drive_service import DriveFilters
from conftest import days_from_now


def _drive(**fields):
    data = {"company_name": "Acme", "role": "SDE", "deadline": days_from_now(7)}
    data.update(fields)
    return drive_service.create_drive(data, admin_id=1)


def _ids(drives):
    return [d["id"] for d in drives]


def test_only_published_drives_before_their_deadline_are_open():
    open_drive = _drive()
    _drive(deadline=days_from_now(-1))
    _drive(status="closed")
    _drive(status="pending_approval")

    assert _ids(drive_service.list_open_drives()) == [open_drive["id"]]


def test_open_drives_are_ordered_by_deadline():
    later = _drive(deadline=days_from_now(10))
    sooner = _drive(deadline=days_from_now(2))

    assert _ids(drive_service.list_open_drives()) == [sooner["id"], later["id"]]


def test_date_only_deadline_stays_open_all_day():
    drive = _drive(deadline="2030-05-01")

    assert drive["deadline"] == "2030-05-01T23:59:59"
    assert _ids(drive_service.list_open_drives(now="2030-05-01T18:00:00")) == [drive["id"]]
    assert drive_service.list_open_drives(now="2030-05-02T00:00:00") == []


def test_moving_the_deadline_into_the_past_hides_the_drive():
    drive = _drive(deadline=days_from_now(1))
    assert _ids(drive_service.list_open_drives()) == [drive["id"]]

    drive_service.update_drive(drive["id"], {"deadline": days_from_now(-1)})

    assert drive_service.list_open_drives() == []


def test_empty_branch_list_matches_every_branch():
    open_to_all = _drive(eligible_branches="")
    cse_only = _drive(eligible_branches="CSE, IT")
    _drive(eligible_branches="Mechanical")

    found = drive_service.list_open_drives(DriveFilters(branch="cse"))

    assert sorted(_ids(found)) == sorted([open_to_all["id"], cse_only["id"]])


def test_filters_by_search_job_type_and_batch_year():
    acme = _drive(company_name="Acme", role="Backend Engineer", job_type="full-time", batch_year=2025)
    globex = _drive(company_name="Globex", role="Data Analyst", job_type="internship")
    _drive(company_name="Initech", role="Tester", job_type="full-time", batch_year=2024)

    assert _ids(drive_service.list_open_drives(DriveFilters(search="Analyst"))) == [globex["id"]]
    assert _ids(drive_service.list_open_drives(DriveFilters(job_type="internship"))) == [globex["id"]]
    assert sorted(_ids(drive_service.list_open_drives(DriveFilters(batch_year=2025)))) == sorted([acme["id"], globex["id"]])


def test_eligibility_filters_on_cgpa_and_backlogs():
    strict = _drive(min_cgpa=8.5, max_backlogs=0)
    relaxed = _drive(min_cgpa=6.0, max_backlogs=2)
    no_rules = _drive()

    found = drive_service.list_open_drives(DriveFilters(cgpa=7.2, backlogs=1))

    assert strict["id"] not in _ids(found)
    assert sorted(_ids(found)) == sorted([relaxed["id"], no_rules["id"]])


def test_create_drive_validation():
    with pytest.raises(ValidationError):
        _drive(company_name=" ")
    with pytest.raises(ValidationError):
        _drive(deadline="next tuesday")
    with pytest.raises(ValueError):
        drive_service.create_drive({"company_name": "Acme", "role": "SDE", "deadline": "2030-01-01"})


def test_update_and_delete_unknown_drive():
    with pytest.raises(NotFound):
        drive_service.update_drive(999, {"role": "SRE"})
    with pytest.raises(NotFound):
        drive_service.delete_drive(999)


# ============================================================
# API
# ============================================================

def test_recruiter_drive_waits_for_admin_approval(client, recruiter_client, admin_client):
    payload = {"company_name": "Acme", "role": "SDE", "deadline": days_from_now(5), "status": "published"}
    r = recruiter_client.post("/api/recruiter/drives", json=payload)
    assert r.status_code == 201
    drive = r.json()
    assert drive["status"] == "pending_approval"

    assert client.get("/api/drives").json() == []
    assert client.get(f"/api/drives/{drive['id']}").status_code == 404

    r = admin_client.put(f"/api/admin/drives/{drive['id']}", json={"status": "published"})
    assert r.json()["status"] == "published"

    assert [d["id"] for d in client.get("/api/drives").json()] == [drive["id"]]
    assert [d["id"] for d in recruiter_client.get("/api/recruiter/drives").json()] == [drive["id"]]


def test_admin_drive_crud(admin_client, make_drive):
    drive = make_drive(ctc="12 LPA")
    assert drive["status"] == "published"

    r = admin_client.put(f"/api/admin/drives/{drive['id']}", json={"ctc": "14 LPA"})
    assert r.json()["ctc"] == "14 LPA"

    assert admin_client.delete(f"/api/admin/drives/{drive['id']}").status_code == 200
    assert admin_client.get(f"/api/admin/drives/{drive['id']}").status_code == 404


def test_deleting_a_drive_removes_its_applications(admin_client, student_client, make_drive):
    drive = make_drive()
    student_client.post(f"/api/drives/{drive['id']}/apply")
    application_id = student_client.get("/api/my-applications").json()[0]["id"]
    admin_client.post(f"/api/admin/applications/{application_id}/round-update",
                      json={"round_name": "Aptitude", "status": "Shortlisted"})

    admin_client.delete(f"/api/admin/drives/{drive['id']}")

    assert student_client.get("/api/my-applications").json() == []
    assert admin_client.get(f"/api/admin/applications/{application_id}/rounds").status_code == 404


def test_eligible_only_uses_the_student_profile(student_client, make_drive):
    make_drive(eligible_branches="Mechanical")
    cse = make_drive(eligible_branches="CSE", min_cgpa=7.0)
    student_client.put("/api/profile", json={"branch": "CSE", "cgpa": 8.1, "backlogs": 0})

    r = student_client.get("/api/drives", params={"eligible_only": True})

    assert [d["id"] for d in r.json()] == [cse["id"]]


def test_eligible_only_requires_sign_in(client):
    assert client.get("/api/drives", params={"eligible_only": True}).status_code == 401


def test_recruiter_sees_only_own_applicants(recruiter_client, admin_client, make_drive):
    admin_drive = make_drive()

    assert recruiter_client.get(f"/api/recruiter/drives/{admin_drive['id']}/applicants").status_code == 403
    assert admin_client.get(f"/api/admin/drives/{admin_drive['id']}/applicants").json() == []
