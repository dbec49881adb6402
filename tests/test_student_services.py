import os

from conftest import days_from_now


def test_profile_update_and_staff_view(student_client, admin_client):
    r = student_client.put("/api/profile", json={"full_name": "Alice A", "branch": "CSE", "cgpa": 8.4})
    assert r.status_code == 200
    assert r.json()["full_name"] == "Alice A"

    assert student_client.put("/api/profile", json={}).status_code == 400

    viewed = admin_client.get(f"/api/students/{student_client.user_id}/profile").json()
    assert viewed["branch"] == "CSE"
    assert viewed["profile_views"] == 1
    assert student_client.get(f"/api/students/{student_client.user_id}/profile").status_code == 401


def test_profile_form_keeps_resume_when_no_file(student_client):
    r = student_client.post("/upload", files={"resume": ("cv.pdf", b"%PDF-1.4 fake", "application/pdf")})
    assert r.status_code == 200
    resume_path = student_client.get("/profile-data").json()["resume_path"]
    assert resume_path.endswith("cv.pdf")
    assert os.path.exists(resume_path)

    r = student_client.post("/update-profile", data={"full_name": "Alice", "phone": "98765"},
                            follow_redirects=False)
    assert r.status_code == 303

    profile = student_client.get("/profile-data").json()
    assert profile["full_name"] == "Alice"
    assert profile["resume_path"] == resume_path


def test_profile_form_checks_email_like_the_api(student_client):
    before = student_client.get("/profile-data").json()["email"]

    r = student_client.post("/update-profile", data={"full_name": "Alice", "email": "not-an-email"},
                            follow_redirects=False)

    assert r.status_code == 400
    assert "Go Back" in r.text
    profile = student_client.get("/profile-data").json()
    assert profile["email"] == before
    assert profile["full_name"] != "Alice"
    assert student_client.put("/api/profile", json={"email": "not-an-email"}).status_code == 422


def test_resume_upload_rejects_other_types(student_client):
    r = student_client.post("/upload", files={"resume": ("cv.exe", b"MZ", "application/octet-stream")})
    assert r.status_code == 400


def test_document_upload_and_review(student_client, admin_client):
    r = student_client.post("/api/documents", data={"doc_type": "marksheet"},
                            files={"file": ("sem1.pdf", b"%PDF-1.4", "application/pdf")})
    assert r.status_code == 201
    doc = r.json()
    assert doc["status"] == "pending"
    assert doc["original_name"] == "sem1.pdf"

    pending = admin_client.get("/api/admin/documents", params={"status": "pending"}).json()
    assert [d["id"] for d in pending] == [doc["id"]]

    r = admin_client.put(f"/api/admin/documents/{doc['id']}", json={"status": "approved", "review_remarks": "ok"})
    assert r.json()["status"] == "approved"
    assert student_client.get("/api/documents").json()[0]["reviewed_at"] is not None


def test_interview_slots(student_client, admin_client, make_drive):
    drive = make_drive()
    payload = {"drive_id": drive["id"], "user_id": student_client.user_id,
               "slot_start": days_from_now(2), "slot_end": days_from_now(1)}
    assert admin_client.post("/api/admin/interview-slots", json=payload).status_code == 400

    payload["slot_end"] = days_from_now(3)
    slot = admin_client.post("/api/admin/interview-slots", json=payload).json()
    assert slot["status"] == "scheduled"
    assert slot["company_name"] == "Acme"

    payload["user_id"] = 999
    assert admin_client.post("/api/admin/interview-slots", json=payload).status_code == 404

    for blank in ({"slot_start": "", "slot_end": days_from_now(3)}, {"slot_start": ""}):
        r = admin_client.post("/api/admin/interview-slots",
                              json={"drive_id": drive["id"], "user_id": student_client.user_id, **blank})
        assert r.status_code == 400
        assert r.json() == {"error": "validation_error", "detail": "slot_start is required."}

    admin_client.put(f"/api/admin/interview-slots/{slot['id']}", json={"status": "completed"})
    mine = student_client.get("/api/interview-slots").json()
    assert [(s["id"], s["status"]) for s in mine] == [(slot["id"], "completed")]


def test_offer_can_be_answered_once(student_client, admin_client, make_drive):
    drive = make_drive()
    offer = admin_client.post("/api/admin/offers",
                              json={"user_id": student_client.user_id, "drive_id": drive["id"], "ctc": "12 LPA"}).json()
    assert offer["status"] == "pending"

    r = student_client.post(f"/api/offers/{offer['id']}/respond", json={"decision": "accepted"})
    assert r.json()["status"] == "accepted"
    assert r.json()["responded_at"] is not None

    r = student_client.post(f"/api/offers/{offer['id']}/respond", json={"decision": "declined"})
    assert r.status_code == 400

    assert student_client.post("/api/offers/999/respond", json={"decision": "accepted"}).status_code == 404


def test_helpdesk_ticket_lifecycle(student_client, admin_client):
    r = student_client.post("/api/tickets", json={"subject": "Resume upload", "message": "It fails"})
    assert r.status_code == 201
    ticket = r.json()
    assert ticket["status"] == "open"

    r = admin_client.put(f"/api/admin/tickets/{ticket['id']}",
                         json={"status": "resolved", "admin_response": "Try a PDF"})
    assert r.json()["admin_response"] == "Try a PDF"

    assert student_client.get("/api/tickets").json()[0]["status"] == "resolved"
    assert admin_client.put(f"/api/admin/tickets/{ticket['id']}", json={}).status_code == 400


def test_mentor_sessions(student_client, admin_client):
    mentor = admin_client.post("/api/admin/mentors", json={"name": "Dr. Rao", "expertise": "Systems"}).json()
    assert [m["name"] for m in student_client.get("/api/mentors").json()] == ["Dr. Rao"]

    r = student_client.post("/api/mentor-sessions", json={"mentor_id": mentor["id"], "topic": "Mock interview"})
    assert r.status_code == 201
    session = r.json()
    assert session["mentor_name"] == "Dr. Rao"
    assert session["status"] == "requested"

    r = admin_client.put(f"/api/admin/mentor-sessions/{session['id']}", json={"status": "confirmed"})
    assert r.json()["status"] == "confirmed"

    r = student_client.post("/api/mentor-sessions", json={"mentor_id": 999, "topic": "Mock interview"})
    assert r.status_code == 404


def test_success_stories(client, student_client):
    r = student_client.post("/api/success-stories",
                            json={"student_name": "Alice", "company_name": "Acme", "story": "Cleared all four rounds."})
    assert r.status_code == 201

    stories = client.get("/api/success-stories").json()
    assert [s["company_name"] for s in stories] == ["Acme"]
