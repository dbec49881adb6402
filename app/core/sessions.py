"""
Server-side sessions.

One session per client token. A session holds a set of principal claims
(student, admin, recruiter), each checked independently by the route guards,
plus an optional pending-verification user id (the half-session used between
signup and code confirmation).

Rows live in web_sessions; the cookie only carries a signed reference to the
token.
"""

import json
import logging
import secrets
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Dict, Optional

from jose import JWTError, jwt
from sqlalchemy import text

from app.core.config import get_settings
from app.db.database import get_db_session
from app.utils.timeutil import iso_in, to_iso, utcnow, utcnow_iso

logger = logging.getLogger(__name__)

PENDING_KEY = "pending_verification"


class PrincipalKind(str, Enum):
    student = "student"
    admin = "admin"
    recruiter = "recruiter"


@dataclass
class SessionState:
    token: Optional[str] = None
    claims: Dict[str, int] = field(default_factory=dict)
    pending_user_id: Optional[int] = None
    dirty: bool = False

    def principal(self, kind: PrincipalKind) -> Optional[int]:
        return self.claims.get(kind.value)

    def attach(self, kind: PrincipalKind, principal_id: int) -> None:
        self.claims[kind.value] = principal_id
        self.dirty = True

    def detach(self, kind: PrincipalKind) -> None:
        if self.claims.pop(kind.value, None) is not None:
            self.dirty = True

    def begin_verification(self, user_id: int) -> None:
        self.pending_user_id = user_id
        self.dirty = True

    def end_verification(self) -> None:
        if self.pending_user_id is not None:
            self.pending_user_id = None
            self.dirty = True

    @property
    def is_empty(self) -> bool:
        return not self.claims and self.pending_user_id is None

    def payload(self) -> str:
        data = dict(self.claims)
        if self.pending_user_id is not None:
            data[PENDING_KEY] = self.pending_user_id
        return json.dumps(data)


# ============================================================
# TOKEN <-> COOKIE
# ============================================================

def encode_session_cookie(token: str) -> str:
    settings = get_settings()
    expire = utcnow() + timedelta(minutes=settings.jwt_expire_minutes)
    return jwt.encode({"sid": token, "exp": expire}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_session_cookie(value: str) -> Optional[str]:
    settings = get_settings()
    try:
        payload = jwt.decode(value, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    return payload.get("sid")


# ============================================================
# STORE
# ============================================================

def load_session(token: Optional[str]) -> SessionState:
    """Load a session by token. Unknown or expired tokens give a fresh, empty session.

    An expired row is deleted on sight.
    """
    if not token:
        return SessionState()

    with get_db_session() as db:
        row = db.execute(
            text("SELECT claims, expires_at FROM web_sessions WHERE token = :token"),
            {"token": token}
        ).fetchone()
        if row and row[1] < utcnow_iso():
            db.execute(text("DELETE FROM web_sessions WHERE token = :token"), {"token": token})
            row = None

    if not row:
        return SessionState()

    data = json.loads(row[0] or "{}")
    pending = data.pop(PENDING_KEY, None)
    claims = {k: int(v) for k, v in data.items() if k in PrincipalKind.__members__}
    return SessionState(token=token, claims=claims, pending_user_id=pending)


def save_session(state: SessionState) -> str:
    """Persist the session, issuing a token on first save. Returns the token."""
    settings = get_settings()
    expires_at = iso_in(settings.jwt_expire_minutes)

    with get_db_session() as db:
        if state.token is None:
            state.token = secrets.token_urlsafe(32)
            db.execute(
                text("""
                    INSERT INTO web_sessions (token, claims, created_at, expires_at)
                    VALUES (:token, :claims, :now, :expires_at)
                """),
                {"token": state.token, "claims": state.payload(), "now": utcnow_iso(), "expires_at": expires_at}
            )
        else:
            db.execute(
                text("UPDATE web_sessions SET claims = :claims, expires_at = :expires_at WHERE token = :token"),
                {"token": state.token, "claims": state.payload(), "expires_at": expires_at}
            )

    state.dirty = False
    return state.token


def destroy_session(state: SessionState) -> None:
    """Delete the session row. Safe to call on a session that was never saved."""
    if state.token:
        with get_db_session() as db:
            db.execute(text("DELETE FROM web_sessions WHERE token = :token"), {"token": state.token})
    state.token = None
    state.claims.clear()
    state.pending_user_id = None
    state.dirty = False


def purge_expired_sessions() -> int:
    with get_db_session() as db:
        result = db.execute(
            text("DELETE FROM web_sessions WHERE expires_at < :now"),
            {"now": to_iso(utcnow())}
        )
        removed = result.rowcount
    if removed:
        logger.info("Purged %d expired sessions", removed)
    return removed
