"""
Schema migrations.

An ordered list of versioned steps. run_migrations() records each applied
version in schema_migrations and is called once on startup. Every step is
idempotent on its own: tables are created with IF NOT EXISTS and columns are
only added after checking the live schema.

{pk} in DDL is replaced with the dialect's auto-increment primary key.
"""

import logging
from typing import Callable, List, Tuple

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection

from app.db.database import get_engine
from app.utils.timeutil import utcnow_iso

logger = logging.getLogger(__name__)

PK_SQLITE = "INTEGER PRIMARY KEY AUTOINCREMENT"
PK_POSTGRES = "SERIAL PRIMARY KEY"


def _ddl(conn: Connection, statement: str) -> None:
    pk = PK_SQLITE if conn.dialect.name == "sqlite" else PK_POSTGRES
    conn.execute(text(statement.replace("{pk}", pk)))


def add_column_if_missing(conn: Connection, table: str, column: str, definition: str) -> bool:
    """ALTER TABLE ... ADD COLUMN unless the column is already there."""
    existing = {c["name"] for c in inspect(conn).get_columns(table)}
    if column in existing:
        return False
    conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {definition}"))
    logger.info("Added column %s.%s", table, column)
    return True


# ============================================================
# MIGRATION STEPS
# ============================================================

def _001_identity(conn: Connection) -> None:
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS users (
            id {pk},
            username TEXT NOT NULL UNIQUE,
            email TEXT UNIQUE,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'student',
            created_at TEXT NOT NULL
        )
    """)
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS profiles (
            id {pk},
            user_id INTEGER NOT NULL UNIQUE REFERENCES users (id),
            full_name TEXT DEFAULT '',
            email TEXT DEFAULT '',
            phone TEXT DEFAULT '',
            resume_path TEXT DEFAULT ''
        )
    """)
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS success_stories (
            id {pk},
            user_id INTEGER REFERENCES users (id),
            student_name TEXT,
            company_name TEXT NOT NULL,
            story TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
    """)


def _002_email_verification(conn: Connection) -> None:
    add_column_if_missing(conn, "users", "is_verified", "INTEGER NOT NULL DEFAULT 0")
    add_column_if_missing(conn, "users", "verification_code", "TEXT")
    add_column_if_missing(conn, "users", "code_expiry", "TEXT")


def _003_profile_academics(conn: Connection) -> None:
    add_column_if_missing(conn, "profiles", "branch", "TEXT")
    add_column_if_missing(conn, "profiles", "cgpa", "REAL")
    add_column_if_missing(conn, "profiles", "backlogs", "INTEGER DEFAULT 0")
    add_column_if_missing(conn, "profiles", "batch_year", "INTEGER")
    add_column_if_missing(conn, "profiles", "skills", "TEXT DEFAULT ''")
    add_column_if_missing(conn, "profiles", "linkedin_url", "TEXT")
    add_column_if_missing(conn, "profiles", "profile_views", "INTEGER NOT NULL DEFAULT 0")
    add_column_if_missing(conn, "profiles", "updated_at", "TEXT")


def _004_staff_accounts(conn: Connection) -> None:
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS admins (
            id {pk},
            username TEXT NOT NULL UNIQUE,
            email TEXT UNIQUE,
            password_hash TEXT NOT NULL,
            full_name TEXT,
            created_at TEXT NOT NULL
        )
    """)
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS recruiters (
            id {pk},
            username TEXT NOT NULL UNIQUE,
            email TEXT UNIQUE,
            password_hash TEXT NOT NULL,
            company_name TEXT NOT NULL,
            is_verified INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL
        )
    """)


def _005_drives_and_applications(conn: Connection) -> None:
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS drives (
            id {pk},
            company_name TEXT NOT NULL,
            role TEXT NOT NULL,
            job_type TEXT,
            location TEXT,
            ctc TEXT,
            description TEXT,
            min_cgpa REAL,
            max_backlogs INTEGER,
            eligible_branches TEXT DEFAULT '',
            batch_year INTEGER,
            deadline TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'published',
            created_by_admin INTEGER REFERENCES admins (id),
            created_by_recruiter INTEGER REFERENCES recruiters (id),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)
    # Legacy rows only carry company_name; linked rows carry user_id + drive_id.
    # NULLs never collide in the UNIQUE constraint.
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS applications (
            id {pk},
            user_id INTEGER REFERENCES users (id),
            drive_id INTEGER REFERENCES drives (id),
            company_name TEXT,
            status TEXT NOT NULL DEFAULT 'Applied',
            current_round TEXT,
            notes TEXT,
            application_date TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            CONSTRAINT uq_applications_user_drive UNIQUE (user_id, drive_id)
        )
    """)
    _ddl(conn, "CREATE INDEX IF NOT EXISTS ix_drives_status_deadline ON drives (status, deadline)")


def _006_application_rounds(conn: Connection) -> None:
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS application_rounds (
            id {pk},
            application_id INTEGER NOT NULL REFERENCES applications (id),
            round_name TEXT NOT NULL,
            status TEXT NOT NULL,
            remarks TEXT,
            updated_by_admin INTEGER REFERENCES admins (id),
            created_at TEXT NOT NULL
        )
    """)
    _ddl(conn, "CREATE INDEX IF NOT EXISTS ix_rounds_application ON application_rounds (application_id, id)")


def _007_announcements(conn: Connection) -> None:
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS announcements (
            id {pk},
            title TEXT NOT NULL,
            content TEXT NOT NULL,
            priority TEXT NOT NULL DEFAULT 'normal',
            scheduled_at TEXT,
            expires_at TEXT,
            is_published INTEGER NOT NULL DEFAULT 1,
            created_by_admin INTEGER REFERENCES admins (id),
            created_at TEXT NOT NULL
        )
    """)


def _008_placement_records(conn: Connection) -> None:
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS interview_slots (
            id {pk},
            drive_id INTEGER NOT NULL REFERENCES drives (id),
            user_id INTEGER NOT NULL REFERENCES users (id),
            slot_start TEXT NOT NULL,
            slot_end TEXT,
            mode TEXT DEFAULT 'onsite',
            location TEXT,
            status TEXT NOT NULL DEFAULT 'scheduled',
            created_at TEXT NOT NULL
        )
    """)
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS offer_letters (
            id {pk},
            user_id INTEGER NOT NULL REFERENCES users (id),
            drive_id INTEGER REFERENCES drives (id),
            ctc TEXT,
            joining_date TEXT,
            file_path TEXT,
            status TEXT NOT NULL DEFAULT 'pending',
            created_at TEXT NOT NULL,
            responded_at TEXT
        )
    """)
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS student_documents (
            id {pk},
            user_id INTEGER NOT NULL REFERENCES users (id),
            doc_type TEXT NOT NULL,
            file_path TEXT NOT NULL,
            original_name TEXT,
            status TEXT NOT NULL DEFAULT 'pending',
            review_remarks TEXT,
            uploaded_at TEXT NOT NULL,
            reviewed_at TEXT
        )
    """)
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS helpdesk_tickets (
            id {pk},
            user_id INTEGER NOT NULL REFERENCES users (id),
            subject TEXT NOT NULL,
            message TEXT NOT NULL,
            category TEXT DEFAULT 'general',
            status TEXT NOT NULL DEFAULT 'open',
            admin_response TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS mentors (
            id {pk},
            name TEXT NOT NULL,
            email TEXT,
            expertise TEXT,
            company TEXT,
            bio TEXT,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL
        )
    """)
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS mentor_sessions (
            id {pk},
            mentor_id INTEGER NOT NULL REFERENCES mentors (id),
            user_id INTEGER NOT NULL REFERENCES users (id),
            topic TEXT NOT NULL,
            preferred_time TEXT,
            status TEXT NOT NULL DEFAULT 'requested',
            notes TEXT,
            created_at TEXT NOT NULL
        )
    """)


def _009_web_sessions(conn: Connection) -> None:
    _ddl(conn, """
        CREATE TABLE IF NOT EXISTS web_sessions (
            token TEXT PRIMARY KEY,
            claims TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL,
            expires_at TEXT NOT NULL
        )
    """)


MIGRATIONS: List[Tuple[int, str, Callable[[Connection], None]]] = [
    (1, "identity", _001_identity),
    (2, "email_verification", _002_email_verification),
    (3, "profile_academics", _003_profile_academics),
    (4, "staff_accounts", _004_staff_accounts),
    (5, "drives_and_applications", _005_drives_and_applications),
    (6, "application_rounds", _006_application_rounds),
    (7, "announcements", _007_announcements),
    (8, "placement_records", _008_placement_records),
    (9, "web_sessions", _009_web_sessions),
]


def applied_versions(conn: Connection) -> set:
    conn.execute(text("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            applied_at TEXT NOT NULL
        )
    """))
    rows = conn.execute(text("SELECT version FROM schema_migrations")).fetchall()
    return {r[0] for r in rows}


def run_migrations() -> List[int]:
    """
    Apply pending migrations in order, each in its own transaction.
    Returns the versions applied by this call.
    """
    engine = get_engine()
    applied = []

    with engine.begin() as conn:
        done = applied_versions(conn)

    for version, name, step in MIGRATIONS:
        if version in done:
            continue
        with engine.begin() as conn:
            step(conn)
            conn.execute(
                text("INSERT INTO schema_migrations (version, name, applied_at) VALUES (:v, :n, :at)"),
                {"v": version, "n": name, "at": utcnow_iso()}
            )
        logger.info("Applied migration %03d_%s", version, name)
        applied.append(version)

    return applied
