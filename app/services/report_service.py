"""
Report Service - CSV export and dashboard counts for admins.

CSV rule: every field (header included) is wrapped in double quotes and any
double quote inside a value is doubled. Missing values are empty strings.
Rows are separated by a single newline, with none after the last row.
"""

import csv
import io
from typing import Iterable, List

from app.db.database import execute_raw_sql

CSV_HEADER = [
    "Application ID", "Student Username", "Student Email", "Company", "Role",
    "Status", "Current Round", "Applied At", "Updated At",
]


def to_csv(rows: Iterable[Iterable]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(rows)
    return buf.getvalue().rstrip("\n")


def application_export_rows() -> List[dict]:
    """Applications that belong to a student, newest first. Legacy rows have no student and are skipped."""
    return execute_raw_sql("""
        SELECT a.id, u.username, u.email,
               COALESCE(d.company_name, a.company_name) AS company_name,
               d.role, a.status, a.current_round, a.application_date, a.updated_at
        FROM applications a
        JOIN users u ON a.user_id = u.id
        LEFT JOIN drives d ON a.drive_id = d.id
        ORDER BY a.application_date DESC, a.id DESC
    """)


def export_applications_csv() -> str:
    rows = [CSV_HEADER]
    for r in application_export_rows():
        rows.append([
            r["id"], r["username"], r["email"], r["company_name"], r["role"],
            r["status"], r["current_round"], r["application_date"], r["updated_at"],
        ])
    return to_csv(rows)


def dashboard_stats() -> dict:
    def count(sql: str) -> int:
        return execute_raw_sql(sql)[0]["n"]

    by_status = execute_raw_sql("SELECT status, COUNT(*) AS n FROM applications GROUP BY status")
    return {
        "students": count("SELECT COUNT(*) AS n FROM users"),
        "verified_students": count("SELECT COUNT(*) AS n FROM users WHERE is_verified = 1"),
        "drives": count("SELECT COUNT(*) AS n FROM drives"),
        "published_drives": count("SELECT COUNT(*) AS n FROM drives WHERE status = 'published'"),
        "pending_drives": count("SELECT COUNT(*) AS n FROM drives WHERE status = 'pending_approval'"),
        "applications": count("SELECT COUNT(*) AS n FROM applications"),
        "applications_by_status": {r["status"]: r["n"] for r in by_status},
        "open_tickets": count("SELECT COUNT(*) AS n FROM helpdesk_tickets WHERE status != 'resolved'"),
    }
