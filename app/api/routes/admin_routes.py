"""
Admin Routes (all require an admin session)

Drives:        GET/POST /admin/drives, GET/PUT/DELETE /admin/drives/{id}
Applications:  GET /admin/applications, POST /admin/applications/{id}/round-update,
               GET /admin/applications/{id}/rounds
Reports:       GET /admin/reports/applications.csv, GET /admin/stats
Announcements: GET/POST /admin/announcements, PUT/DELETE /admin/announcements/{id}
Slots:         GET/POST /admin/interview-slots, PUT /admin/interview-slots/{id}
Offers:        GET/POST /admin/offers
Documents:     GET /admin/documents, PUT /admin/documents/{id}
Helpdesk:      GET /admin/tickets, PUT /admin/tickets/{id}
Mentors:       POST /admin/mentors, GET /admin/mentor-sessions, PUT /admin/mentor-sessions/{id}
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy import text
from typing import List, Optional

from app.core.auth import get_current_admin
from app.core.errors import NotFound, ValidationError
from app.db.database import execute_raw_sql, fetch_one, get_db_session
from app.schemas.schemas import (
    AnnouncementCreate, AnnouncementResponse, AnnouncementUpdate, ApplicantResponse, ApplicationRecord,
    DocumentResponse, DocumentReview, DriveCreate, DriveResponse, DriveUpdate,
    InterviewSlotCreate, InterviewSlotResponse, MentorCreate, MentorResponse,
    MentorSessionResponse, MentorSessionUpdate, MessageResponse, OfferCreate, OfferResponse,
    RoundEventResponse, RoundUpdateRequest, SlotStatusUpdate, StatsResponse, TicketResponse,
    TicketUpdate
)
from app.services import announcement_service, application_service, drive_service, report_service
from app.api.routes.student_routes import OFFER_SELECT
from app.api.routes.support_routes import MENTOR_SESSION_SELECT
from app.utils.timeutil import normalize_timestamp, utcnow_iso

router = APIRouter(prefix="/admin", tags=["Admin"])

SLOT_SELECT = """
    SELECT s.id, s.drive_id, s.user_id, d.company_name, d.role, s.slot_start, s.slot_end,
           s.mode, s.location, s.status, s.created_at
    FROM interview_slots s LEFT JOIN drives d ON s.drive_id = d.id
"""


def _timestamp(value: Optional[str], field: str) -> Optional[str]:
    try:
        return normalize_timestamp(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date or datetime.")


def _require_row(db, table: str, row_id: int, message: str) -> None:
    if not db.execute(text(f"SELECT id FROM {table} WHERE id = :id"), {"id": row_id}).fetchone():
        raise NotFound(message)


# ============================================================
# DRIVES
# ============================================================

@router.get("/drives", response_model=List[DriveResponse])
async def list_drives(status: Optional[str] = Query(None), admin: dict = Depends(get_current_admin)):
    """All drives regardless of status or deadline."""
    return [DriveResponse(**d) for d in drive_service.list_all_drives(status)]


@router.post("/drives", response_model=DriveResponse, status_code=201)
async def create_drive(drive: DriveCreate, admin: dict = Depends(get_current_admin)):
    data = drive.model_dump()
    data["status"] = drive.status.value if drive.status else None
    return DriveResponse(**drive_service.create_drive(data, admin_id=admin["admin_id"]))


@router.get("/drives/{drive_id}", response_model=DriveResponse)
async def get_drive(drive_id: int, admin: dict = Depends(get_current_admin)):
    return DriveResponse(**drive_service.get_drive(drive_id))


@router.put("/drives/{drive_id}", response_model=DriveResponse)
async def update_drive(drive_id: int, update: DriveUpdate, admin: dict = Depends(get_current_admin)):
    """Partial update. Set status to 'published' to approve a recruiter's drive."""
    changes = update.model_dump(exclude_none=True)
    if update.status:
        changes["status"] = update.status.value
    return DriveResponse(**drive_service.update_drive(drive_id, changes))


@router.delete("/drives/{drive_id}", response_model=MessageResponse)
async def delete_drive(drive_id: int, admin: dict = Depends(get_current_admin)):
    """Delete a drive. Cascades to its applications, interview slots and offers."""
    drive_service.delete_drive(drive_id)
    return MessageResponse(message="Drive deleted successfully")


@router.get("/drives/{drive_id}/applicants", response_model=List[ApplicantResponse])
async def drive_applicants(drive_id: int, admin: dict = Depends(get_current_admin)):
    return [ApplicantResponse(**r) for r in drive_service.list_drive_applicants(drive_id)]


# ============================================================
# APPLICATIONS & ROUNDS
# ============================================================

@router.get("/applications", response_model=List[ApplicationRecord])
async def list_applications(
    status: Optional[str] = Query(None),
    drive_id: Optional[int] = Query(None),
    admin: dict = Depends(get_current_admin)
):
    return application_service.list_all_applications(status=status, drive_id=drive_id)


@router.post("/applications/{application_id}/round-update", response_model=RoundEventResponse)
async def round_update(application_id: int, update: RoundUpdateRequest, admin: dict = Depends(get_current_admin)):
    """Move an application to a new round/status. Appends to the round history."""
    event = application_service.advance_round(
        application_id, update.round_name, update.status, update.remarks, admin["admin_id"]
    )
    return RoundEventResponse(**event)


@router.get("/applications/{application_id}/rounds", response_model=List[RoundEventResponse])
async def application_rounds(application_id: int, admin: dict = Depends(get_current_admin)):
    return [RoundEventResponse(**r) for r in application_service.list_round_events(application_id)]


# ============================================================
# REPORTS
# ============================================================

@router.get("/reports/applications.csv")
async def applications_csv(admin: dict = Depends(get_current_admin)):
    return Response(
        content=report_service.export_applications_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="applications.csv"'}
    )


@router.get("/stats", response_model=StatsResponse)
async def stats(admin: dict = Depends(get_current_admin)):
    return StatsResponse(**report_service.dashboard_stats())


# ============================================================
# ANNOUNCEMENTS
# ============================================================

@router.get("/announcements", response_model=List[AnnouncementResponse])
async def list_announcements(admin: dict = Depends(get_current_admin)):
    return [AnnouncementResponse(**a) for a in announcement_service.list_all_announcements()]


@router.post("/announcements", response_model=AnnouncementResponse, status_code=201)
async def create_announcement(data: AnnouncementCreate, admin: dict = Depends(get_current_admin)):
    payload = data.model_dump()
    payload["priority"] = data.priority.value
    return AnnouncementResponse(**announcement_service.create_announcement(payload, admin["admin_id"]))


@router.put("/announcements/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(announcement_id: int, data: AnnouncementUpdate, admin: dict = Depends(get_current_admin)):
    changes = data.model_dump(exclude_none=True)
    if data.priority:
        changes["priority"] = data.priority.value
    return AnnouncementResponse(**announcement_service.update_announcement(announcement_id, changes))


@router.delete("/announcements/{announcement_id}", response_model=MessageResponse)
async def delete_announcement(announcement_id: int, admin: dict = Depends(get_current_admin)):
    announcement_service.delete_announcement(announcement_id)
    return MessageResponse(message="Announcement deleted")


# ============================================================
# INTERVIEW SLOTS
# ============================================================

@router.get("/interview-slots", response_model=List[InterviewSlotResponse])
async def list_slots(drive_id: Optional[int] = Query(None), admin: dict = Depends(get_current_admin)):
    sql = SLOT_SELECT
    params = {}
    if drive_id is not None:
        sql += " WHERE s.drive_id = :drive_id"
        params["drive_id"] = drive_id
    sql += " ORDER BY s.slot_start ASC"
    return [InterviewSlotResponse(**r) for r in execute_raw_sql(sql, params)]


@router.post("/interview-slots", response_model=InterviewSlotResponse, status_code=201)
async def create_slot(slot: InterviewSlotCreate, admin: dict = Depends(get_current_admin)):
    slot_start = _timestamp(slot.slot_start, "slot_start")
    if slot_start is None:
        raise ValidationError("slot_start is required.")
    slot_end = _timestamp(slot.slot_end, "slot_end")
    if slot_end and slot_end <= slot_start:
        raise ValidationError("Slot end must be after slot start.")

    with get_db_session() as db:
        _require_row(db, "drives", slot.drive_id, "Drive not found.")
        _require_row(db, "users", slot.user_id, "Student not found.")
        slot_id = db.execute(
            text("""
                INSERT INTO interview_slots (drive_id, user_id, slot_start, slot_end, mode, location, status, created_at)
                VALUES (:drive_id, :user_id, :slot_start, :slot_end, :mode, :location, 'scheduled', :now)
                RETURNING id
            """),
            {"drive_id": slot.drive_id, "user_id": slot.user_id, "slot_start": slot_start, "slot_end": slot_end,
             "mode": slot.mode, "location": slot.location, "now": utcnow_iso()}
        ).fetchone()[0]

    return InterviewSlotResponse(**fetch_one(SLOT_SELECT + " WHERE s.id = :id", {"id": slot_id}))


@router.put("/interview-slots/{slot_id}", response_model=InterviewSlotResponse)
async def update_slot(slot_id: int, update: SlotStatusUpdate, admin: dict = Depends(get_current_admin)):
    with get_db_session() as db:
        result = db.execute(
            text("UPDATE interview_slots SET status = :status WHERE id = :id"),
            {"status": update.status.value, "id": slot_id}
        )
        if result.rowcount == 0:
            raise NotFound("Interview slot not found.")
    return InterviewSlotResponse(**fetch_one(SLOT_SELECT + " WHERE s.id = :id", {"id": slot_id}))


# ============================================================
# OFFERS
# ============================================================

@router.get("/offers", response_model=List[OfferResponse])
async def list_offers(admin: dict = Depends(get_current_admin)):
    rows = execute_raw_sql(OFFER_SELECT + " ORDER BY o.created_at DESC, o.id DESC")
    return [OfferResponse(**r) for r in rows]


@router.post("/offers", response_model=OfferResponse, status_code=201)
async def create_offer(offer: OfferCreate, admin: dict = Depends(get_current_admin)):
    joining_date = _timestamp(offer.joining_date, "joining_date")
    with get_db_session() as db:
        _require_row(db, "users", offer.user_id, "Student not found.")
        if offer.drive_id is not None:
            _require_row(db, "drives", offer.drive_id, "Drive not found.")
        offer_id = db.execute(
            text("""
                INSERT INTO offer_letters (user_id, drive_id, ctc, joining_date, file_path, status, created_at)
                VALUES (:user_id, :drive_id, :ctc, :joining_date, :file_path, 'pending', :now)
                RETURNING id
            """),
            {"user_id": offer.user_id, "drive_id": offer.drive_id, "ctc": offer.ctc,
             "joining_date": joining_date, "file_path": offer.file_path, "now": utcnow_iso()}
        ).fetchone()[0]
    return OfferResponse(**fetch_one(OFFER_SELECT + " WHERE o.id = :id", {"id": offer_id}))


# ============================================================
# DOCUMENTS
# ============================================================

@router.get("/documents", response_model=List[DocumentResponse])
async def list_documents(status: Optional[str] = Query(None), admin: dict = Depends(get_current_admin)):
    sql = "SELECT * FROM student_documents"
    params = {}
    if status:
        sql += " WHERE status = :status"
        params["status"] = status
    sql += " ORDER BY uploaded_at DESC, id DESC"
    return [DocumentResponse(**r) for r in execute_raw_sql(sql, params)]


@router.put("/documents/{document_id}", response_model=DocumentResponse)
async def review_document(document_id: int, review: DocumentReview, admin: dict = Depends(get_current_admin)):
    with get_db_session() as db:
        result = db.execute(
            text("""
                UPDATE student_documents SET status = :status, review_remarks = :remarks, reviewed_at = :now
                WHERE id = :id
            """),
            {"status": review.status.value, "remarks": review.review_remarks, "now": utcnow_iso(), "id": document_id}
        )
        if result.rowcount == 0:
            raise NotFound("Document not found.")
    return DocumentResponse(**fetch_one("SELECT * FROM student_documents WHERE id = :id", {"id": document_id}))


# ============================================================
# HELPDESK
# ============================================================

@router.get("/tickets", response_model=List[TicketResponse])
async def list_tickets(status: Optional[str] = Query(None), admin: dict = Depends(get_current_admin)):
    sql = "SELECT * FROM helpdesk_tickets"
    params = {}
    if status:
        sql += " WHERE status = :status"
        params["status"] = status
    sql += " ORDER BY created_at DESC, id DESC"
    return [TicketResponse(**r) for r in execute_raw_sql(sql, params)]


@router.put("/tickets/{ticket_id}", response_model=TicketResponse)
async def update_ticket(ticket_id: int, update: TicketUpdate, admin: dict = Depends(get_current_admin)):
    updates = []
    params = {"id": ticket_id, "now": utcnow_iso()}
    if update.status:
        updates.append("status = :status")
        params["status"] = update.status.value
    if update.admin_response is not None:
        updates.append("admin_response = :admin_response")
        params["admin_response"] = update.admin_response
    if not updates:
        raise ValidationError("No fields to update")

    with get_db_session() as db:
        result = db.execute(
            text(f"UPDATE helpdesk_tickets SET {', '.join(updates)}, updated_at = :now WHERE id = :id"),
            params
        )
        if result.rowcount == 0:
            raise NotFound("Ticket not found.")
    return TicketResponse(**fetch_one("SELECT * FROM helpdesk_tickets WHERE id = :id", {"id": ticket_id}))


# ============================================================
# MENTORS
# ============================================================

@router.post("/mentors", response_model=MentorResponse, status_code=201)
async def create_mentor(mentor: MentorCreate, admin: dict = Depends(get_current_admin)):
    with get_db_session() as db:
        mentor_id = db.execute(
            text("""
                INSERT INTO mentors (name, email, expertise, company, bio, is_active, created_at)
                VALUES (:name, :email, :expertise, :company, :bio, 1, :now)
                RETURNING id
            """),
            {"name": mentor.name, "email": mentor.email, "expertise": mentor.expertise,
             "company": mentor.company, "bio": mentor.bio, "now": utcnow_iso()}
        ).fetchone()[0]
    return MentorResponse(**fetch_one("SELECT * FROM mentors WHERE id = :id", {"id": mentor_id}))


@router.get("/mentor-sessions", response_model=List[MentorSessionResponse])
async def list_mentor_sessions(admin: dict = Depends(get_current_admin)):
    rows = execute_raw_sql(MENTOR_SESSION_SELECT + " ORDER BY s.created_at DESC, s.id DESC")
    return [MentorSessionResponse(**r) for r in rows]


@router.put("/mentor-sessions/{session_id}", response_model=MentorSessionResponse)
async def update_mentor_session(session_id: int, update: MentorSessionUpdate, admin: dict = Depends(get_current_admin)):
    with get_db_session() as db:
        result = db.execute(
            text("UPDATE mentor_sessions SET status = :status, notes = COALESCE(:notes, notes) WHERE id = :id"),
            {"status": update.status.value, "notes": update.notes, "id": session_id}
        )
        if result.rowcount == 0:
            raise NotFound("Mentor session not found.")
    return MentorSessionResponse(**fetch_one(MENTOR_SESSION_SELECT + " WHERE s.id = :id", {"id": session_id}))
