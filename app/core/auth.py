"""
Authentication Utility - Password hashing and session guards.

Provides:
- Password hashing with bcrypt
- FastAPI dependency that loads the caller's session (cookie or Bearer token)
- Guards for the three principal kinds (student, admin, recruiter)
"""

from typing import Optional
from fastapi import Depends, Request, Response
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from passlib.context import CryptContext

from app.core.config import get_settings
from app.core.errors import Unauthenticated
from app.core.sessions import (
    PrincipalKind, SessionState, decode_session_cookie, destroy_session,
    encode_session_cookie, load_session, save_session
)

# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=get_settings().bcrypt_rounds
)

# Bearer token extractor (optional; browsers use the cookie)
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


async def get_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> SessionState:
    """
    FastAPI dependency - Load the caller's session.

    Always returns a SessionState; an anonymous caller gets an empty one.
    """
    settings = get_settings()
    raw = request.cookies.get(settings.session_cookie_name)
    if not raw and credentials:
        raw = credentials.credentials

    token = decode_session_cookie(raw) if raw else None
    return load_session(token)


def commit_session(response: Response, session: SessionState) -> None:
    """Persist a modified session and (re)issue the cookie. Empty sessions are destroyed."""
    settings = get_settings()
    if session.is_empty:
        end_session(response, session)
        return
    if not session.dirty and session.token:
        return

    token = save_session(session)
    response.set_cookie(
        settings.session_cookie_name,
        encode_session_cookie(token),
        max_age=settings.jwt_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def end_session(response: Response, session: SessionState) -> None:
    destroy_session(session)
    response.delete_cookie(get_settings().session_cookie_name)


def _require(session: SessionState, kind: PrincipalKind, message: str) -> int:
    principal_id = session.principal(kind)
    if principal_id is None:
        raise Unauthenticated(message)
    return principal_id


async def get_current_student(session: SessionState = Depends(get_session)) -> dict:
    """
    FastAPI dependency - Require a signed-in, verified student.

    Usage:
        @router.get("/protected")
        async def route(student: dict = Depends(get_current_student)):
            return student
    """
    user_id = _require(session, PrincipalKind.student, "Not authenticated. Please sign in.")
    return {"user_id": user_id}


async def get_optional_student(session: SessionState = Depends(get_session)) -> Optional[dict]:
    user_id = session.principal(PrincipalKind.student)
    return {"user_id": user_id} if user_id is not None else None


async def get_current_admin(session: SessionState = Depends(get_session)) -> dict:
    """Dependency - Require an admin session."""
    admin_id = _require(session, PrincipalKind.admin, "Admin sign-in required.")
    return {"admin_id": admin_id}


async def get_current_recruiter(session: SessionState = Depends(get_session)) -> dict:
    """Dependency - Require a recruiter session."""
    recruiter_id = _require(session, PrincipalKind.recruiter, "Recruiter sign-in required.")
    return {"recruiter_id": recruiter_id}


async def get_staff_viewer(session: SessionState = Depends(get_session)) -> dict:
    """Dependency - Admin or recruiter (read-only views over student data)."""
    admin_id = session.principal(PrincipalKind.admin)
    recruiter_id = session.principal(PrincipalKind.recruiter)
    if admin_id is None and recruiter_id is None:
        raise Unauthenticated("Admin or recruiter sign-in required.")
    return {"admin_id": admin_id, "recruiter_id": recruiter_id}
