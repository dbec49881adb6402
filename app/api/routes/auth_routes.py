"""
Authentication Routes (form posts, redirect on success)

POST /signup - Register student, email verification code
POST /verify-code - Confirm the emailed code
POST /resend-code - Issue a fresh code (JSON)
POST /signin - Student sign in (username or email)
GET /logout - Destroy the session
GET /auth-status - Which principals the session holds

POST /admin/signup, POST /admin/signin, GET /admin/logout
POST /recruiter/signup, POST /recruiter/signin, GET /recruiter/logout
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form
from fastapi.responses import RedirectResponse

from app.core.auth import commit_session, end_session, get_session
from app.core.errors import Unauthenticated
from app.core.sessions import PrincipalKind, SessionState
from app.schemas.schemas import AuthStatusResponse, ResendCodeResponse
from app.services import identity_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


def _pending_user(session: SessionState) -> int:
    if session.pending_user_id is None:
        raise Unauthenticated("No verification in progress. Please sign up or sign in again.")
    return session.pending_user_id


# ============================================================
# STUDENTS
# ============================================================

@router.post("/signup")
async def signup(
    username: str = Form(""),
    password: str = Form(""),
    email: str = Form(""),
    session: SessionState = Depends(get_session)
):
    """
    Create a student account and send the verification code.
    The session is put into the pending-verification state.
    """
    result = identity_service.register_student(username, password, email)

    session.begin_verification(result.user_id)
    url = "/verify.html" if result.email_sent else "/verify.html?email_sent=0"
    response = _redirect(url)
    commit_session(response, session)
    return response


@router.post("/verify-code")
async def verify_code(code: str = Form(""), session: SessionState = Depends(get_session)):
    """Confirm the emailed 6-digit code for the pending account."""
    user_id = _pending_user(session)
    identity_service.verify_code(user_id, code)

    session.end_verification()
    response = _redirect("/signin.html?verified=1")
    commit_session(response, session)
    return response


@router.post("/resend-code", response_model=ResendCodeResponse)
async def resend_code(session: SessionState = Depends(get_session)):
    """Replace the pending code with a new one. The previous code stops working."""
    user_id = _pending_user(session)
    sent = identity_service.resend_code(user_id)
    if sent:
        return ResendCodeResponse(success=True, message="A new verification code has been sent to your email.")
    return ResendCodeResponse(success=False, message="Could not send the verification email. Please try again later.")


@router.post("/signin")
async def signin(
    username: str = Form(""),
    password: str = Form(""),
    session: SessionState = Depends(get_session)
):
    """
    Sign in with username or email.
    Unverified accounts are sent to the verification page instead.
    """
    result = identity_service.authenticate_student(username, password)

    if not result.verified:
        session.begin_verification(result.user_id)
        response = _redirect("/verify.html?required=1")
        commit_session(response, session)
        return response

    session.end_verification()
    session.attach(PrincipalKind.student, result.user_id)
    logger.info("Student %s signed in", result.username)
    response = _redirect("/profile.html")
    commit_session(response, session)
    return response


@router.get("/logout")
async def logout(session: SessionState = Depends(get_session)):
    response = _redirect("/signin.html")
    end_session(response, session)
    return response


@router.get("/auth-status", response_model=AuthStatusResponse)
async def auth_status(session: SessionState = Depends(get_session)):
    user_id = session.principal(PrincipalKind.student)
    username = None
    if user_id is not None:
        username = identity_service.get_student_account(user_id)["username"]
    return AuthStatusResponse(
        authenticated=user_id is not None,
        username=username,
        pending_verification=session.pending_user_id is not None,
        admin=session.principal(PrincipalKind.admin) is not None,
        recruiter=session.principal(PrincipalKind.recruiter) is not None
    )


# ============================================================
# ADMINS
# ============================================================

@router.post("/admin/signup")
async def admin_signup(
    username: str = Form(""),
    password: str = Form(""),
    email: Optional[str] = Form(None),
    full_name: Optional[str] = Form(None),
    session: SessionState = Depends(get_session)
):
    admin_id = identity_service.register_admin(username, password, email, full_name)
    session.attach(PrincipalKind.admin, admin_id)
    response = _redirect("/admin/dashboard.html")
    commit_session(response, session)
    return response


@router.post("/admin/signin")
async def admin_signin(
    username: str = Form(""),
    password: str = Form(""),
    session: SessionState = Depends(get_session)
):
    admin_id = identity_service.authenticate_admin(username, password)
    session.attach(PrincipalKind.admin, admin_id)
    response = _redirect("/admin/dashboard.html")
    commit_session(response, session)
    return response


@router.get("/admin/logout")
async def admin_logout(session: SessionState = Depends(get_session)):
    session.detach(PrincipalKind.admin)
    response = _redirect("/admin/signin.html")
    commit_session(response, session)
    return response


# ============================================================
# RECRUITERS
# ============================================================

@router.post("/recruiter/signup")
async def recruiter_signup(
    username: str = Form(""),
    password: str = Form(""),
    email: Optional[str] = Form(None),
    company_name: str = Form(""),
    session: SessionState = Depends(get_session)
):
    recruiter_id = identity_service.register_recruiter(username, password, email, company_name)
    session.attach(PrincipalKind.recruiter, recruiter_id)
    response = _redirect("/recruiter/dashboard.html")
    commit_session(response, session)
    return response


@router.post("/recruiter/signin")
async def recruiter_signin(
    username: str = Form(""),
    password: str = Form(""),
    session: SessionState = Depends(get_session)
):
    recruiter_id = identity_service.authenticate_recruiter(username, password)
    session.attach(PrincipalKind.recruiter, recruiter_id)
    response = _redirect("/recruiter/dashboard.html")
    commit_session(response, session)
    return response


@router.get("/recruiter/logout")
async def recruiter_logout(session: SessionState = Depends(get_session)):
    session.detach(PrincipalKind.recruiter)
    response = _redirect("/recruiter/signin.html")
    commit_session(response, session)
    return response
