"""
Support Routes - helpdesk, mentoring, success stories

POST /tickets - Raise a helpdesk ticket (student)
GET /tickets - Own tickets
GET /mentors - Active mentors (public)
POST /mentor-sessions - Request a session with a mentor (student)
GET /mentor-sessions - Own session requests
POST /success-stories - Share a placement story (student)
GET /success-stories - Public story feed
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from typing import List

from app.core.auth import get_current_student
from app.core.errors import NotFound
from app.db.database import execute_raw_sql, fetch_one, get_db_session
from app.schemas.schemas import (
    MentorResponse, MentorSessionCreate, MentorSessionResponse, SuccessStoryCreate,
    SuccessStoryResponse, TicketCreate, TicketResponse
)
from app.utils.timeutil import utcnow_iso

router = APIRouter(tags=["Support"])

MENTOR_SESSION_SELECT = """
    SELECT s.id, s.mentor_id, m.name AS mentor_name, s.user_id, s.topic, s.preferred_time,
           s.status, s.notes, s.created_at
    FROM mentor_sessions s JOIN mentors m ON s.mentor_id = m.id
"""


@router.post("/tickets", response_model=TicketResponse, status_code=201)
async def create_ticket(ticket: TicketCreate, student: dict = Depends(get_current_student)):
    now = utcnow_iso()
    with get_db_session() as db:
        ticket_id = db.execute(
            text("""
                INSERT INTO helpdesk_tickets (user_id, subject, message, category, status, created_at, updated_at)
                VALUES (:uid, :subject, :message, :category, 'open', :now, :now)
                RETURNING id
            """),
            {"uid": student["user_id"], "subject": ticket.subject, "message": ticket.message,
             "category": ticket.category, "now": now}
        ).fetchone()[0]
    return TicketResponse(**fetch_one("SELECT * FROM helpdesk_tickets WHERE id = :id", {"id": ticket_id}))


@router.get("/tickets", response_model=List[TicketResponse])
async def my_tickets(student: dict = Depends(get_current_student)):
    rows = execute_raw_sql(
        "SELECT * FROM helpdesk_tickets WHERE user_id = :uid ORDER BY created_at DESC, id DESC",
        {"uid": student["user_id"]}
    )
    return [TicketResponse(**r) for r in rows]


@router.get("/mentors", response_model=List[MentorResponse])
async def list_mentors():
    rows = execute_raw_sql("SELECT * FROM mentors WHERE is_active = 1 ORDER BY name")
    return [MentorResponse(**r) for r in rows]


@router.post("/mentor-sessions", response_model=MentorSessionResponse, status_code=201)
async def request_mentor_session(data: MentorSessionCreate, student: dict = Depends(get_current_student)):
    with get_db_session() as db:
        mentor = db.execute(
            text("SELECT id FROM mentors WHERE id = :id AND is_active = 1"),
            {"id": data.mentor_id}
        ).fetchone()
        if not mentor:
            raise NotFound("Mentor not found.")

        session_id = db.execute(
            text("""
                INSERT INTO mentor_sessions (mentor_id, user_id, topic, preferred_time, status, created_at)
                VALUES (:mid, :uid, :topic, :preferred_time, 'requested', :now)
                RETURNING id
            """),
            {"mid": data.mentor_id, "uid": student["user_id"], "topic": data.topic,
             "preferred_time": data.preferred_time, "now": utcnow_iso()}
        ).fetchone()[0]

    return MentorSessionResponse(**fetch_one(MENTOR_SESSION_SELECT + " WHERE s.id = :id", {"id": session_id}))


@router.get("/mentor-sessions", response_model=List[MentorSessionResponse])
async def my_mentor_sessions(student: dict = Depends(get_current_student)):
    rows = execute_raw_sql(MENTOR_SESSION_SELECT + " WHERE s.user_id = :uid ORDER BY s.created_at DESC, s.id DESC",
                           {"uid": student["user_id"]})
    return [MentorSessionResponse(**r) for r in rows]


@router.post("/success-stories", response_model=SuccessStoryResponse, status_code=201)
async def create_success_story(story: SuccessStoryCreate, student: dict = Depends(get_current_student)):
    with get_db_session() as db:
        story_id = db.execute(
            text("""
                INSERT INTO success_stories (user_id, student_name, company_name, story, created_at)
                VALUES (:uid, :student_name, :company_name, :story, :now)
                RETURNING id
            """),
            {"uid": student["user_id"], "student_name": story.student_name,
             "company_name": story.company_name, "story": story.story, "now": utcnow_iso()}
        ).fetchone()[0]
    return SuccessStoryResponse(**fetch_one("SELECT * FROM success_stories WHERE id = :id", {"id": story_id}))


@router.get("/success-stories", response_model=List[SuccessStoryResponse])
async def list_success_stories():
    rows = execute_raw_sql("SELECT * FROM success_stories ORDER BY created_at DESC, id DESC")
    return [SuccessStoryResponse(**r) for r in rows]
