"""
Student Routes

GET /profile - Own profile
PUT /profile - Update profile fields
GET /my-applications - Own applications with drive details
GET /my-applications/{id}/rounds - Round history of one application
POST /documents - Upload a document for review
GET /documents - Own documents
GET /offers - Own offer letters
POST /offers/{id}/respond - Accept or decline an offer
GET /interview-slots - Own interview slots
GET /students/{user_id}/profile - Admin/recruiter view (counts a profile view)

Form routes (no /api prefix):
GET /profile-data - Profile JSON for the profile page
POST /update-profile - Profile form with optional resume
POST /upload - Resume upload
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import RedirectResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import text
from typing import List, Optional

from app.core.auth import get_current_student, get_staff_viewer
from app.core.errors import NotFound, ValidationError
from app.db.database import execute_raw_sql, fetch_one, get_db_session
from app.schemas.schemas import (
    DocumentResponse, InterviewSlotResponse, MessageResponse, OfferDecision, OfferResponse,
    ProfileResponse, ProfileUpdate, RoundEventResponse, StudentApplicationResponse
)
from app.services import application_service
from app.utils.file_upload import RESUME_EXTENSIONS, save_upload
from app.utils.timeutil import utcnow_iso

router = APIRouter(tags=["Students"])
form_router = APIRouter(tags=["Students"])

PROFILE_FIELDS = ["full_name", "email", "phone", "branch", "cgpa", "backlogs", "batch_year", "skills", "linkedin_url"]


def load_profile(user_id: int) -> dict:
    row = fetch_one("""
        SELECT p.user_id, u.username, p.full_name, p.email, p.phone, p.resume_path, p.branch, p.cgpa,
               p.backlogs, p.batch_year, p.skills, p.linkedin_url, p.profile_views
        FROM profiles p JOIN users u ON p.user_id = u.id
        WHERE p.user_id = :uid
    """, {"uid": user_id})
    if not row:
        raise NotFound("Profile not found.")
    return row


def update_profile_fields(user_id: int, values: dict, resume_path: Optional[str] = None) -> None:
    """Update only the provided fields. The resume path is kept unless a new file was uploaded."""
    updates = []
    params = {"uid": user_id, "now": utcnow_iso()}

    for field in PROFILE_FIELDS:
        value = values.get(field)
        if value is not None:
            updates.append(f"{field} = :{field}")
            params[field] = value
    if resume_path:
        updates.append("resume_path = :resume_path")
        params["resume_path"] = resume_path

    if not updates:
        raise ValidationError("No fields to update")

    with get_db_session() as db:
        result = db.execute(
            text(f"UPDATE profiles SET {', '.join(updates)}, updated_at = :now WHERE user_id = :uid"),
            params
        )
        if result.rowcount == 0:
            raise NotFound("Profile not found.")


# ============================================================
# PROFILE
# ============================================================

@router.get("/profile", response_model=ProfileResponse)
async def get_profile(student: dict = Depends(get_current_student)):
    return ProfileResponse(**load_profile(student["user_id"]))


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(data: ProfileUpdate, student: dict = Depends(get_current_student)):
    """Update student profile. Only provided fields are updated."""
    update_profile_fields(student["user_id"], data.model_dump())
    return ProfileResponse(**load_profile(student["user_id"]))


@router.get("/students/{user_id}/profile", response_model=ProfileResponse)
async def view_student_profile(user_id: int, viewer: dict = Depends(get_staff_viewer)):
    """Admin/recruiter view of a student profile. Each view bumps profile_views."""
    with get_db_session() as db:
        result = db.execute(
            text("UPDATE profiles SET profile_views = profile_views + 1 WHERE user_id = :uid"),
            {"uid": user_id}
        )
        if result.rowcount == 0:
            raise NotFound("Profile not found.")
    return ProfileResponse(**load_profile(user_id))


@form_router.get("/profile-data", response_model=ProfileResponse)
async def profile_data(student: dict = Depends(get_current_student)):
    return ProfileResponse(**load_profile(student["user_id"]))


@form_router.post("/update-profile")
async def update_profile_form(
    full_name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    branch: Optional[str] = Form(None),
    cgpa: Optional[float] = Form(None),
    backlogs: Optional[int] = Form(None),
    batch_year: Optional[int] = Form(None),
    skills: Optional[str] = Form(None),
    resume: Optional[UploadFile] = File(None),
    student: dict = Depends(get_current_student)
):
    """Profile form. The stored resume is only replaced when a new file is attached.

    Fields go through the same ProfileUpdate checks as PUT /api/profile; blank
    inputs are left unchanged.
    """
    values = {
        "full_name": full_name, "email": email, "phone": phone, "branch": branch,
        "cgpa": cgpa, "backlogs": backlogs, "batch_year": batch_year, "skills": skills
    }
    try:
        update = ProfileUpdate(**{k: v for k, v in values.items() if v != ""})
    except PydanticValidationError as e:
        field = e.errors()[0]["loc"][0]
        raise ValidationError(f"Invalid value for {field}.")

    resume_path = None
    if resume is not None and resume.filename:
        resume_path, _ = await save_upload(resume, "resumes", RESUME_EXTENSIONS)

    update_profile_fields(student["user_id"], update.model_dump(), resume_path)
    return RedirectResponse(url="/profile.html", status_code=303)


@form_router.post("/upload", response_model=MessageResponse)
async def upload_resume(resume: UploadFile = File(...), student: dict = Depends(get_current_student)):
    path, _ = await save_upload(resume, "resumes", RESUME_EXTENSIONS)
    update_profile_fields(student["user_id"], {}, path)
    return MessageResponse(message=f"File uploaded successfully: {path}")


# ============================================================
# APPLICATIONS
# ============================================================

@router.get("/my-applications", response_model=List[StudentApplicationResponse])
async def my_applications(student: dict = Depends(get_current_student)):
    rows = application_service.list_student_applications(student["user_id"])
    return [StudentApplicationResponse(**r) for r in rows]


@router.get("/my-applications/{application_id}/rounds", response_model=List[RoundEventResponse])
async def my_application_rounds(application_id: int, student: dict = Depends(get_current_student)):
    rows = application_service.list_round_events(application_id, student_id=student["user_id"])
    return [RoundEventResponse(**r) for r in rows]


# ============================================================
# DOCUMENTS
# ============================================================

@router.post("/documents", response_model=DocumentResponse, status_code=201)
async def upload_document(
    doc_type: str = Form(...),
    file: UploadFile = File(...),
    student: dict = Depends(get_current_student)
):
    """Upload a document (ID proof, marksheet, certificate...) for admin review."""
    doc_type = doc_type.strip()
    if not doc_type:
        raise ValidationError("Document type is required.")
    path, original_name = await save_upload(file, "documents")

    with get_db_session() as db:
        doc_id = db.execute(
            text("""
                INSERT INTO student_documents (user_id, doc_type, file_path, original_name, status, uploaded_at)
                VALUES (:uid, :doc_type, :path, :name, 'pending', :now)
                RETURNING id
            """),
            {"uid": student["user_id"], "doc_type": doc_type, "path": path, "name": original_name, "now": utcnow_iso()}
        ).fetchone()[0]

    return DocumentResponse(**fetch_one("SELECT * FROM student_documents WHERE id = :id", {"id": doc_id}))


@router.get("/documents", response_model=List[DocumentResponse])
async def my_documents(student: dict = Depends(get_current_student)):
    rows = execute_raw_sql(
        "SELECT * FROM student_documents WHERE user_id = :uid ORDER BY uploaded_at DESC, id DESC",
        {"uid": student["user_id"]}
    )
    return [DocumentResponse(**r) for r in rows]


# ============================================================
# OFFERS & INTERVIEW SLOTS
# ============================================================

OFFER_SELECT = """
    SELECT o.id, o.user_id, o.drive_id, d.company_name, d.role, o.ctc, o.joining_date, o.file_path,
           o.status, o.created_at, o.responded_at
    FROM offer_letters o LEFT JOIN drives d ON o.drive_id = d.id
"""


@router.get("/offers", response_model=List[OfferResponse])
async def my_offers(student: dict = Depends(get_current_student)):
    rows = execute_raw_sql(OFFER_SELECT + " WHERE o.user_id = :uid ORDER BY o.created_at DESC, o.id DESC",
                           {"uid": student["user_id"]})
    return [OfferResponse(**r) for r in rows]


@router.post("/offers/{offer_id}/respond", response_model=OfferResponse)
async def respond_to_offer(offer_id: int, decision: OfferDecision, student: dict = Depends(get_current_student)):
    """Accept or decline a pending offer. Decided offers cannot be changed."""
    with get_db_session() as db:
        row = db.execute(
            text("SELECT status FROM offer_letters WHERE id = :id AND user_id = :uid"),
            {"id": offer_id, "uid": student["user_id"]}
        ).fetchone()
        if not row:
            raise NotFound("Offer not found.")
        if row[0] != "pending":
            raise ValidationError(f"Offer already {row[0]}.")

        db.execute(
            text("UPDATE offer_letters SET status = :status, responded_at = :now WHERE id = :id"),
            {"status": decision.decision.value, "now": utcnow_iso(), "id": offer_id}
        )

    return OfferResponse(**fetch_one(OFFER_SELECT + " WHERE o.id = :id", {"id": offer_id}))


@router.get("/interview-slots", response_model=List[InterviewSlotResponse])
async def my_interview_slots(student: dict = Depends(get_current_student)):
    rows = execute_raw_sql("""
        SELECT s.id, s.drive_id, s.user_id, d.company_name, d.role, s.slot_start, s.slot_end,
               s.mode, s.location, s.status, s.created_at
        FROM interview_slots s LEFT JOIN drives d ON s.drive_id = d.id
        WHERE s.user_id = :uid
        ORDER BY s.slot_start ASC
    """, {"uid": student["user_id"]})
    return [InterviewSlotResponse(**r) for r in rows]
