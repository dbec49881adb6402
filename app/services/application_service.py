"""
Application Service - applying to drives and moving applications through rounds.

Every round update rewrites the application's status/current_round and appends
an application_rounds row in the same transaction, so the latest round event
always matches the application. Round events are never edited.

Duplicate applications are stopped by the UNIQUE (user_id, drive_id)
constraint; the SELECT beforehand only produces a friendlier message.
"""

import logging
from typing import List, Optional, Union

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from app.core.errors import Conflict, NotFound, ValidationError
from app.db.database import execute_raw_sql, get_db_session
from app.schemas.schemas import LegacyApplication, LinkedApplication
from app.services.drive_service import STATUS_PUBLISHED
from app.utils.timeutil import utcnow_iso

logger = logging.getLogger(__name__)

STATUS_APPLIED = "Applied"
STATUS_SUBMITTED = "Application Submitted"
DUPLICATE_MESSAGE = "You have already applied to this drive."


def apply(student_id: Optional[int] = None, drive_id: Optional[int] = None,
          company_name: Optional[str] = None) -> dict:
    """
    Create an application.

    With drive_id: the drive must be published. A signed-in student can only
    apply once per drive.
    With only company_name: legacy record, no drive and no owner.
    """
    company_name = (company_name or "").strip() or None
    now = utcnow_iso()

    if drive_id is None:
        if not company_name:
            raise ValidationError("Choose a drive or enter a company name.")
        with get_db_session() as db:
            app_id = db.execute(
                text("""
                    INSERT INTO applications (company_name, status, application_date, updated_at)
                    VALUES (:company_name, :status, :now, :now)
                    RETURNING id
                """),
                {"company_name": company_name, "status": STATUS_SUBMITTED, "now": now}
            ).fetchone()[0]
        logger.info("Legacy application %s recorded for %s", app_id, company_name)
        return {"id": app_id, "kind": "legacy", "status": STATUS_SUBMITTED}

    try:
        with get_db_session() as db:
            drive = db.execute(
                text("SELECT id, company_name, status FROM drives WHERE id = :id"),
                {"id": drive_id}
            ).fetchone()
            if not drive or drive[2] != STATUS_PUBLISHED:
                raise NotFound("Drive not found or not accepting applications.")

            if student_id is not None:
                existing = db.execute(
                    text("SELECT id FROM applications WHERE user_id = :uid AND drive_id = :did"),
                    {"uid": student_id, "did": drive_id}
                ).fetchone()
                if existing:
                    raise Conflict(DUPLICATE_MESSAGE)

            app_id = db.execute(
                text("""
                    INSERT INTO applications (user_id, drive_id, company_name, status, current_round,
                        application_date, updated_at)
                    VALUES (:uid, :did, :company_name, :status, :round, :now, :now)
                    RETURNING id
                """),
                {
                    "uid": student_id, "did": drive_id, "company_name": drive[1],
                    "status": STATUS_APPLIED, "round": STATUS_SUBMITTED, "now": now
                }
            ).fetchone()[0]
    except IntegrityError:
        raise Conflict(DUPLICATE_MESSAGE)

    logger.info("Application %s: user %s -> drive %s", app_id, student_id, drive_id)
    return {"id": app_id, "kind": "linked", "status": STATUS_APPLIED}


def advance_round(application_id: int, round_name: str, new_status: str,
                  remarks: Optional[str], admin_id: int) -> dict:
    """
    Move an application to a new round/status and record the event.

    The UPDATE runs first: it fails fast on an unknown id and holds the row
    lock until commit, so updates to the same application are serialised.
    """
    round_name = (round_name or "").strip()
    new_status = (new_status or "").strip()
    if not round_name or not new_status:
        raise ValidationError("Round name and status are required.")

    now = utcnow_iso()
    with get_db_session() as db:
        result = db.execute(
            text("""
                UPDATE applications
                SET status = :status, current_round = :round, notes = :remarks, updated_at = :now
                WHERE id = :id
            """),
            {"status": new_status, "round": round_name, "remarks": remarks, "now": now, "id": application_id}
        )
        if result.rowcount == 0:
            raise NotFound("Application not found.")

        event_id = db.execute(
            text("""
                INSERT INTO application_rounds (application_id, round_name, status, remarks,
                    updated_by_admin, created_at)
                VALUES (:id, :round, :status, :remarks, :admin_id, :now)
                RETURNING id
            """),
            {"id": application_id, "round": round_name, "status": new_status,
             "remarks": remarks, "admin_id": admin_id, "now": now}
        ).fetchone()[0]

    logger.info("Application %s -> %s / %s (admin %s)", application_id, round_name, new_status, admin_id)
    return {
        "id": event_id, "application_id": application_id, "round_name": round_name,
        "status": new_status, "remarks": remarks, "updated_by_admin": admin_id, "created_at": now
    }


def list_round_events(application_id: int, student_id: Optional[int] = None) -> List[dict]:
    """Round history, oldest first. With student_id, the application must belong to that student."""
    sql = "SELECT id, user_id FROM applications WHERE id = :id"
    rows = execute_raw_sql(sql, {"id": application_id})
    if not rows or (student_id is not None and rows[0]["user_id"] != student_id):
        raise NotFound("Application not found.")

    return execute_raw_sql("""
        SELECT id, application_id, round_name, status, remarks, updated_by_admin, created_at
        FROM application_rounds
        WHERE application_id = :id
        ORDER BY created_at ASC, id ASC
    """, {"id": application_id})


def list_student_applications(student_id: int) -> List[dict]:
    return execute_raw_sql("""
        SELECT a.id, a.drive_id, d.company_name, d.role, d.job_type, d.location, d.ctc,
               a.status, a.current_round, a.notes, a.application_date, a.updated_at
        FROM applications a
        JOIN drives d ON a.drive_id = d.id
        WHERE a.user_id = :uid
        ORDER BY a.application_date DESC, a.id DESC
    """, {"uid": student_id})


def to_application_record(row: dict) -> Union[LinkedApplication, LegacyApplication]:
    if row.get("drive_id") is not None:
        return LinkedApplication(
            id=row["id"], drive_id=row["drive_id"], user_id=row.get("user_id"),
            username=row.get("username"), email=row.get("email"),
            company_name=row.get("drive_company") or row.get("company_name") or "",
            role=row.get("role") or "", status=row["status"], current_round=row.get("current_round"),
            notes=row.get("notes"), application_date=row["application_date"], updated_at=row["updated_at"]
        )
    return LegacyApplication(
        id=row["id"], company_name=row.get("company_name") or "", status=row["status"],
        current_round=row.get("current_round"), application_date=row["application_date"],
        updated_at=row["updated_at"]
    )


def list_all_applications(status: Optional[str] = None, drive_id: Optional[int] = None) -> List[Union[LinkedApplication, LegacyApplication]]:
    sql = """
        SELECT a.id, a.user_id, a.drive_id, a.company_name, a.status, a.current_round, a.notes,
               a.application_date, a.updated_at,
               u.username, u.email, d.company_name AS drive_company, d.role
        FROM applications a
        LEFT JOIN users u ON a.user_id = u.id
        LEFT JOIN drives d ON a.drive_id = d.id
        WHERE 1 = 1
    """
    params = {}
    if status:
        sql += " AND a.status = :status"
        params["status"] = status
    if drive_id is not None:
        sql += " AND a.drive_id = :drive_id"
        params["drive_id"] = drive_id
    sql += " ORDER BY a.application_date DESC, a.id DESC"

    return [to_application_record(r) for r in execute_raw_sql(sql, params)]
