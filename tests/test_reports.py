from app.services import application_service, drive_service, identity_service, report_service
from app.services.report_service import to_csv
from conftest import days_from_now

HEADER_LINE = ('"Application ID","Student Username","Student Email","Company","Role",'
               '"Status","Current Round","Applied At","Updated At"')


def _student(username, outbox):
    result = identity_service.register_student(username, "secret1", f"{username}@college.edu")
    identity_service.verify_code(result.user_id, outbox[-1]["code"])
    return result.user_id


def test_csv_quoting():
    assert to_csv([['Acme "Labs", Inc', None, 42]]) == '"Acme ""Labs"", Inc","","42"'
    assert to_csv([["a"], ['say "hi"']]) == '"a"\n"say ""hi"""'


def test_empty_export_is_just_the_header():
    assert report_service.export_applications_csv() == HEADER_LINE


def test_export_lists_student_applications_newest_first(outbox):
    drive = drive_service.create_drive(
        {"company_name": 'Acme "Labs"', "role": "SDE", "deadline": days_from_now(7)}, admin_id=1
    )
    first = application_service.apply(student_id=_student("alice", outbox), drive_id=drive["id"])
    second = application_service.apply(student_id=_student("bob", outbox), drive_id=drive["id"])
    application_service.apply(company_name="Initech")

    lines = report_service.export_applications_csv().split("\n")

    assert lines[0] == HEADER_LINE
    assert len(lines) == 3
    assert lines[1].startswith(f'"{second["id"]}","bob","bob@college.edu","Acme ""Labs""","SDE","Applied",')
    assert lines[2].startswith(f'"{first["id"]}","alice",')
    assert "Initech" not in "\n".join(lines)


def test_csv_endpoint(admin_client, student_client, make_drive):
    drive = make_drive()
    student_client.post(f"/api/drives/{drive['id']}/apply")

    r = admin_client.get("/api/admin/reports/applications.csv")

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "attachment" in r.headers["content-disposition"]
    assert r.text.split("\n")[0] == HEADER_LINE
    assert len(r.text.split("\n")) == 2


def test_csv_endpoint_requires_admin(student_client):
    assert student_client.get("/api/admin/reports/applications.csv").status_code == 401


def test_dashboard_stats(admin_client, student_client, make_drive):
    drive = make_drive()
    student_client.post(f"/api/drives/{drive['id']}/apply")

    stats = admin_client.get("/api/admin/stats").json()

    assert stats["students"] == 1
    assert stats["verified_students"] == 1
    assert stats["published_drives"] == 1
    assert stats["applications_by_status"] == {"Applied": 1}
