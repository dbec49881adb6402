"""
Drive Service - placement drive publication and listing.

Lifecycle:
    admin-created drives are published immediately (unless the admin picks another status)
    recruiter-created drives start as pending_approval and stay hidden from
    students until an admin updates the status to published.

Deadlines are ISO-8601 strings and are compared as strings in SQL.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import text

from app.core.errors import NotFound, Unauthorized, ValidationError
from app.db.database import execute_raw_sql, fetch_one, get_db_session
from app.utils.timeutil import normalize_timestamp, utcnow_iso

logger = logging.getLogger(__name__)

STATUS_PUBLISHED = "published"
STATUS_PENDING = "pending_approval"

DRIVE_COLUMNS = """
    d.id, d.company_name, d.role, d.job_type, d.location, d.ctc, d.description,
    d.min_cgpa, d.max_backlogs, d.eligible_branches, d.batch_year, d.deadline,
    d.status, d.created_by_admin, d.created_by_recruiter, d.created_at, d.updated_at
"""

EDITABLE_FIELDS = [
    "company_name", "role", "job_type", "location", "ctc", "description",
    "min_cgpa", "max_backlogs", "eligible_branches", "batch_year", "deadline", "status"
]


@dataclass
class DriveFilters:
    search: Optional[str] = None
    job_type: Optional[str] = None
    branch: Optional[str] = None
    batch_year: Optional[int] = None
    # Student eligibility, filled from the caller's profile when eligible_only is requested
    cgpa: Optional[float] = None
    backlogs: Optional[int] = None


def _normalize_deadline(value) -> str:
    try:
        deadline = normalize_timestamp(value, end_of_day=True)
    except ValueError:
        raise ValidationError("Deadline must be an ISO-8601 date or datetime.")
    if not deadline:
        raise ValidationError("Deadline is required.")
    return deadline


def create_drive(data: dict, admin_id: Optional[int] = None, recruiter_id: Optional[int] = None) -> dict:
    """Create a drive for an admin or a recruiter. Returns the stored row."""
    if (admin_id is None) == (recruiter_id is None):
        raise ValueError("A drive is created by exactly one admin or recruiter")

    company_name = (data.get("company_name") or "").strip()
    role = (data.get("role") or "").strip()
    if not company_name or not role:
        raise ValidationError("Company name and role are required.")

    if recruiter_id is not None:
        status = STATUS_PENDING
    else:
        status = data.get("status") or STATUS_PUBLISHED

    now = utcnow_iso()
    params = {
        "company_name": company_name,
        "role": role,
        "job_type": data.get("job_type"),
        "location": data.get("location"),
        "ctc": data.get("ctc"),
        "description": data.get("description"),
        "min_cgpa": data.get("min_cgpa"),
        "max_backlogs": data.get("max_backlogs"),
        "eligible_branches": data.get("eligible_branches") or "",
        "batch_year": data.get("batch_year"),
        "deadline": _normalize_deadline(data.get("deadline")),
        "status": status,
        "admin_id": admin_id,
        "recruiter_id": recruiter_id,
        "now": now,
    }

    with get_db_session() as db:
        drive_id = db.execute(
            text("""
                INSERT INTO drives (company_name, role, job_type, location, ctc, description,
                    min_cgpa, max_backlogs, eligible_branches, batch_year, deadline, status,
                    created_by_admin, created_by_recruiter, created_at, updated_at)
                VALUES (:company_name, :role, :job_type, :location, :ctc, :description,
                    :min_cgpa, :max_backlogs, :eligible_branches, :batch_year, :deadline, :status,
                    :admin_id, :recruiter_id, :now, :now)
                RETURNING id
            """),
            params
        ).fetchone()[0]

    logger.info("Drive %s created (%s / %s, status=%s)", drive_id, company_name, role, status)
    return get_drive(drive_id)


def get_drive(drive_id: int) -> dict:
    row = fetch_one(f"SELECT {DRIVE_COLUMNS} FROM drives d WHERE d.id = :id", {"id": drive_id})
    if not row:
        raise NotFound("Drive not found.")
    return row


def list_open_drives(filters: Optional[DriveFilters] = None, now: Optional[str] = None) -> List[dict]:
    """
    Drives a student can see: published and deadline not passed,
    narrowed by the optional filters, soonest deadline first.
    """
    filters = filters or DriveFilters()
    sql = f"""
        SELECT {DRIVE_COLUMNS}
        FROM drives d
        WHERE d.status = :published AND d.deadline >= :now
    """
    params = {"published": STATUS_PUBLISHED, "now": now or utcnow_iso()}

    if filters.search:
        sql += " AND (d.company_name LIKE :search OR d.role LIKE :search)"
        params["search"] = f"%{filters.search}%"
    if filters.job_type:
        sql += " AND d.job_type = :job_type"
        params["job_type"] = filters.job_type
    if filters.branch:
        sql += """ AND (d.eligible_branches IS NULL OR d.eligible_branches = ''
                   OR LOWER(d.eligible_branches) LIKE :branch)"""
        params["branch"] = f"%{filters.branch.lower()}%"
    if filters.batch_year is not None:
        sql += " AND (d.batch_year IS NULL OR d.batch_year = :batch_year)"
        params["batch_year"] = filters.batch_year
    if filters.cgpa is not None:
        sql += " AND (d.min_cgpa IS NULL OR d.min_cgpa <= :cgpa)"
        params["cgpa"] = filters.cgpa
    if filters.backlogs is not None:
        sql += " AND (d.max_backlogs IS NULL OR d.max_backlogs >= :backlogs)"
        params["backlogs"] = filters.backlogs

    sql += " ORDER BY d.deadline ASC, d.id ASC"
    return execute_raw_sql(sql, params)


def list_all_drives(status: Optional[str] = None) -> List[dict]:
    sql = f"SELECT {DRIVE_COLUMNS} FROM drives d"
    params = {}
    if status:
        sql += " WHERE d.status = :status"
        params["status"] = status
    sql += " ORDER BY d.created_at DESC, d.id DESC"
    return execute_raw_sql(sql, params)


def list_recruiter_drives(recruiter_id: int) -> List[dict]:
    return execute_raw_sql(
        f"SELECT {DRIVE_COLUMNS} FROM drives d WHERE d.created_by_recruiter = :rid ORDER BY d.created_at DESC, d.id DESC",
        {"rid": recruiter_id}
    )


def update_drive(drive_id: int, changes: dict) -> dict:
    """Partial update. Setting status to published is how a pending drive gets approved."""
    updates = []
    params = {"id": drive_id, "now": utcnow_iso()}

    for field in EDITABLE_FIELDS:
        if field not in changes or changes[field] is None:
            continue
        value = changes[field]
        if field == "deadline":
            value = _normalize_deadline(value)
        updates.append(f"{field} = :{field}")
        params[field] = value

    if not updates:
        return get_drive(drive_id)

    with get_db_session() as db:
        result = db.execute(
            text(f"UPDATE drives SET {', '.join(updates)}, updated_at = :now WHERE id = :id"),
            params
        )
        if result.rowcount == 0:
            raise NotFound("Drive not found.")

    logger.info("Drive %s updated (%s)", drive_id, ", ".join(sorted(set(params) - {"id", "now"})))
    return get_drive(drive_id)


def delete_drive(drive_id: int) -> None:
    """Hard delete. The drive's applications (with their round history), slots and offers go too."""
    with get_db_session() as db:
        params = {"id": drive_id}
        db.execute(text("""
            DELETE FROM application_rounds
            WHERE application_id IN (SELECT id FROM applications WHERE drive_id = :id)
        """), params)
        db.execute(text("DELETE FROM applications WHERE drive_id = :id"), params)
        db.execute(text("DELETE FROM interview_slots WHERE drive_id = :id"), params)
        db.execute(text("DELETE FROM offer_letters WHERE drive_id = :id"), params)
        result = db.execute(text("DELETE FROM drives WHERE id = :id"), params)
        if result.rowcount == 0:
            raise NotFound("Drive not found.")

    logger.info("Drive %s deleted", drive_id)


def list_drive_applicants(drive_id: int, recruiter_id: Optional[int] = None) -> List[dict]:
    """Applicants for a drive. With recruiter_id, the drive must belong to that recruiter."""
    drive = get_drive(drive_id)
    if recruiter_id is not None and drive["created_by_recruiter"] != recruiter_id:
        raise Unauthorized("This drive belongs to another recruiter.")

    return execute_raw_sql("""
        SELECT a.id AS application_id, a.status, a.current_round, a.application_date, a.updated_at,
               u.id AS user_id, u.username, u.email,
               p.full_name, p.phone, p.branch, p.cgpa, p.backlogs, p.batch_year, p.skills, p.resume_path
        FROM applications a
        JOIN users u ON a.user_id = u.id
        LEFT JOIN profiles p ON p.user_id = u.id
        WHERE a.drive_id = :drive_id
        ORDER BY a.application_date DESC, a.id DESC
    """, {"drive_id": drive_id})
