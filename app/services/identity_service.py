"""
Identity & Verification Service

Student accounts:
    register -> (unverified, code emailed) -> verify_code -> verified -> sign in

Admins and recruiters have their own account tables and sign in without
email verification.

All functions are synchronous and raise app.core.errors exceptions; the
routes decide how to present them and what to put in the session.
"""

import logging
import re
import secrets
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from app.core.auth import hash_password, pwd_context, verify_password
from app.core.config import get_settings
from app.core.errors import Conflict, Expired, InvalidCredentials, Mismatch, NotFound, ValidationError
from app.db.database import get_db_session
from app.services import email_service
from app.utils.timeutil import iso_in, utcnow_iso

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 6
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
INVALID_CREDENTIALS_MESSAGE = "Invalid username or password."


@dataclass
class SignupResult:
    user_id: int
    email_sent: bool


@dataclass
class SignInResult:
    user_id: int
    username: str
    verified: bool


def generate_verification_code() -> str:
    """Uniform 6-digit code, leading zeros kept."""
    return f"{secrets.randbelow(1_000_000):06d}"


def validate_signup(username: Optional[str], password: Optional[str], email: Optional[str], require_email: bool = True) -> None:
    if not username or not password:
        raise ValidationError("Username and password are required.")
    if len(username) < USERNAME_MIN_LENGTH:
        raise ValidationError(f"Username must be at least {USERNAME_MIN_LENGTH} characters long.")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long.")
    if email or require_email:
        if not email or not EMAIL_PATTERN.match(email):
            raise ValidationError("Please enter a valid email address.")


def _clean(username: Optional[str], email: Optional[str]):
    return (username or "").strip(), (email or "").strip().lower() or None


# ============================================================
# STUDENTS
# ============================================================

def register_student(username: str, password: str, email: str) -> SignupResult:
    """
    Create an unverified student account plus its empty profile, then email
    the verification code. A failed email does not undo the account.
    """
    username, email = _clean(username, email)
    validate_signup(username, password, email)

    settings = get_settings()
    code = generate_verification_code()
    now = utcnow_iso()

    try:
        with get_db_session() as db:
            existing = db.execute(
                text("SELECT id FROM users WHERE username = :username OR email = :email"),
                {"username": username, "email": email}
            ).fetchone()
            if existing:
                raise Conflict("Username or email already exists. Please choose another.")

            user_id = db.execute(
                text("""
                    INSERT INTO users (username, email, password_hash, role, is_verified,
                        verification_code, code_expiry, created_at)
                    VALUES (:username, :email, :password_hash, 'student', 0, :code, :expiry, :now)
                    RETURNING id
                """),
                {
                    "username": username, "email": email, "password_hash": hash_password(password),
                    "code": code, "expiry": iso_in(settings.verification_code_ttl_minutes), "now": now
                }
            ).fetchone()[0]

            db.execute(
                text("""
                    INSERT INTO profiles (user_id, full_name, email, phone, resume_path, updated_at)
                    VALUES (:user_id, '', :email, '', '', :now)
                """),
                {"user_id": user_id, "email": email, "now": now}
            )
    except IntegrityError:
        # Lost a race with a concurrent signup for the same username/email
        raise Conflict("Username or email already exists. Please choose another.")

    logger.info("Student account %s created (id=%s)", username, user_id)
    email_sent = email_service.send_verification_email(email, code, username)
    if not email_sent:
        logger.warning("Verification code for user %s was not delivered", user_id)

    return SignupResult(user_id=user_id, email_sent=email_sent)


def _pending_account(db, user_id: int):
    row = db.execute(
        text("""
            SELECT id, username, email, is_verified, verification_code, code_expiry
            FROM users WHERE id = :id
        """),
        {"id": user_id}
    ).fetchone()
    if not row or row[3]:
        raise NotFound("No pending verification found for this account.")
    return row


def verify_code(user_id: int, code: str) -> None:
    """Check the code for a pending account and mark it verified."""
    submitted = (code or "").strip()
    if not submitted:
        raise ValidationError("Verification code is required.")

    with get_db_session() as db:
        row = _pending_account(db, user_id)
        stored_code, expiry = row[4], row[5]

        if not stored_code or not expiry:
            raise NotFound("No pending verification found for this account.")
        if utcnow_iso() > expiry:
            raise Expired()
        if submitted != stored_code:
            raise Mismatch()

        db.execute(
            text("""
                UPDATE users SET is_verified = 1, verification_code = NULL, code_expiry = NULL
                WHERE id = :id
            """),
            {"id": user_id}
        )

    logger.info("User %s verified", user_id)


def resend_code(user_id: int) -> bool:
    """Replace the pending code with a fresh one and email it. Returns delivery success."""
    settings = get_settings()
    code = generate_verification_code()

    with get_db_session() as db:
        row = _pending_account(db, user_id)
        db.execute(
            text("UPDATE users SET verification_code = :code, code_expiry = :expiry WHERE id = :id"),
            {"code": code, "expiry": iso_in(settings.verification_code_ttl_minutes), "id": user_id}
        )
        username, email = row[1], row[2]

    return email_service.send_verification_email(email, code, username)


def authenticate_student(identifier: str, password: str) -> SignInResult:
    """
    Match identifier against username or email, then check the password.
    Unknown user and wrong password raise the same InvalidCredentials.
    """
    identifier = (identifier or "").strip()
    if not identifier or not password:
        raise ValidationError("Username and password are required.")

    with get_db_session() as db:
        row = db.execute(
            text("""
                SELECT id, username, password_hash, is_verified FROM users
                WHERE username = :identifier OR email = :email
            """),
            {"identifier": identifier, "email": identifier.lower()}
        ).fetchone()

    if not row:
        pwd_context.dummy_verify()
        raise InvalidCredentials(INVALID_CREDENTIALS_MESSAGE)
    if not verify_password(password, row[2]):
        raise InvalidCredentials(INVALID_CREDENTIALS_MESSAGE)

    return SignInResult(user_id=row[0], username=row[1], verified=bool(row[3]))


def get_student_account(user_id: int) -> dict:
    with get_db_session() as db:
        row = db.execute(
            text("SELECT id, username, email, is_verified, created_at FROM users WHERE id = :id"),
            {"id": user_id}
        ).fetchone()
    if not row:
        raise NotFound("Account not found.")
    return {"id": row[0], "username": row[1], "email": row[2], "is_verified": bool(row[3]), "created_at": row[4]}


# ============================================================
# ADMINS & RECRUITERS
# ============================================================

STAFF_TABLES = {"admins", "recruiters"}


def _check_staff_table(table: str) -> None:
    # table is interpolated into SQL
    if table not in STAFF_TABLES:
        raise ValueError(f"Not a staff table: {table}")


def _register_staff(table: str, username: str, password: str, email: Optional[str], extra: dict) -> int:
    _check_staff_table(table)
    username, email = _clean(username, email)
    validate_signup(username, password, email, require_email=False)

    columns = ["username", "email", "password_hash", "created_at"] + list(extra)
    params = {"username": username, "email": email, "password_hash": hash_password(password), "created_at": utcnow_iso()}
    params.update(extra)

    try:
        with get_db_session() as db:
            existing = db.execute(
                text(f"SELECT id FROM {table} WHERE username = :username OR email = :email"),
                {"username": username, "email": email}
            ).fetchone()
            if existing:
                raise Conflict("Username or email already exists. Please choose another.")

            new_id = db.execute(
                text(f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join(':' + c for c in columns)}) RETURNING id"),
                params
            ).fetchone()[0]
    except IntegrityError:
        raise Conflict("Username or email already exists. Please choose another.")

    logger.info("Created %s account %s (id=%s)", table[:-1], username, new_id)
    return new_id


def _authenticate_staff(table: str, identifier: str, password: str) -> int:
    _check_staff_table(table)
    identifier = (identifier or "").strip()
    if not identifier or not password:
        raise ValidationError("Username and password are required.")

    with get_db_session() as db:
        row = db.execute(
            text(f"SELECT id, password_hash FROM {table} WHERE username = :identifier OR email = :email"),
            {"identifier": identifier, "email": identifier.lower()}
        ).fetchone()

    if not row:
        pwd_context.dummy_verify()
        raise InvalidCredentials(INVALID_CREDENTIALS_MESSAGE)
    if not verify_password(password, row[1]):
        raise InvalidCredentials(INVALID_CREDENTIALS_MESSAGE)
    return row[0]


def register_admin(username: str, password: str, email: Optional[str] = None, full_name: Optional[str] = None) -> int:
    return _register_staff("admins", username, password, email, {"full_name": full_name or ""})


def authenticate_admin(identifier: str, password: str) -> int:
    return _authenticate_staff("admins", identifier, password)


def register_recruiter(username: str, password: str, email: Optional[str], company_name: str) -> int:
    """Recruiters are marked verified on creation; there is no recruiter verification flow."""
    company_name = (company_name or "").strip()
    if not company_name:
        raise ValidationError("Company name is required.")
    return _register_staff("recruiters", username, password, email, {"company_name": company_name, "is_verified": 1})


def authenticate_recruiter(identifier: str, password: str) -> int:
    return _authenticate_staff("recruiters", identifier, password)
