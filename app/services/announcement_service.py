"""
Announcement Service

An announcement shows on the public feed when it is published, its
scheduled_at (if any) has arrived and its expires_at (if any) has not passed.
Feed order: high, then normal, then everything else; newest first within
each tier.
"""

from typing import Iterable, List, Optional

from sqlalchemy import text

from app.core.errors import NotFound, ValidationError
from app.db.database import execute_raw_sql, fetch_one, get_db_session
from app.utils.timeutil import normalize_timestamp, utcnow_iso

PRIORITY_RANK = {"high": 0, "normal": 1}
COLUMNS = "id, title, content, priority, scheduled_at, expires_at, is_published, created_at"


def is_visible(announcement: dict, now: str) -> bool:
    if not announcement.get("is_published"):
        return False
    scheduled_at = announcement.get("scheduled_at")
    if scheduled_at and scheduled_at > now:
        return False
    expires_at = announcement.get("expires_at")
    if expires_at and expires_at < now:
        return False
    return True


def sort_announcements(items: Iterable[dict]) -> List[dict]:
    # Two stable passes: newest first, then by tier
    by_newest = sorted(items, key=lambda a: (a.get("created_at") or "", a.get("id") or 0), reverse=True)
    return sorted(by_newest, key=lambda a: PRIORITY_RANK.get(a.get("priority"), 2))


def visible_announcements(items: Iterable[dict], now: str) -> List[dict]:
    return sort_announcements(a for a in items if is_visible(a, now))


def list_public_announcements(now: Optional[str] = None) -> List[dict]:
    rows = execute_raw_sql(f"SELECT {COLUMNS} FROM announcements WHERE is_published = 1")
    return visible_announcements(rows, now or utcnow_iso())


def list_all_announcements() -> List[dict]:
    return execute_raw_sql(f"SELECT {COLUMNS} FROM announcements ORDER BY created_at DESC, id DESC")


def _window(data: dict) -> dict:
    out = {}
    for field in ("scheduled_at", "expires_at"):
        if field in data:
            try:
                out[field] = normalize_timestamp(data[field])
            except ValueError:
                raise ValidationError(f"{field} must be an ISO-8601 date or datetime.")
    return out


def create_announcement(data: dict, admin_id: int) -> dict:
    window = _window(data)
    with get_db_session() as db:
        new_id = db.execute(
            text("""
                INSERT INTO announcements (title, content, priority, scheduled_at, expires_at,
                    is_published, created_by_admin, created_at)
                VALUES (:title, :content, :priority, :scheduled_at, :expires_at, :is_published, :admin_id, :now)
                RETURNING id
            """),
            {
                "title": data["title"], "content": data["content"],
                "priority": data.get("priority") or "normal",
                "scheduled_at": window.get("scheduled_at"), "expires_at": window.get("expires_at"),
                "is_published": 1 if data.get("is_published", True) else 0,
                "admin_id": admin_id, "now": utcnow_iso()
            }
        ).fetchone()[0]
    return get_announcement(new_id)


def get_announcement(announcement_id: int) -> dict:
    row = fetch_one(f"SELECT {COLUMNS} FROM announcements WHERE id = :id", {"id": announcement_id})
    if not row:
        raise NotFound("Announcement not found.")
    return row


def update_announcement(announcement_id: int, changes: dict) -> dict:
    changes = {k: v for k, v in changes.items() if v is not None}
    changes.update(_window(changes))
    if "is_published" in changes:
        changes["is_published"] = 1 if changes["is_published"] else 0

    allowed = ["title", "content", "priority", "scheduled_at", "expires_at", "is_published"]
    updates = [f"{f} = :{f}" for f in allowed if f in changes]
    if updates:
        params = {f: changes[f] for f in allowed if f in changes}
        params["id"] = announcement_id
        with get_db_session() as db:
            result = db.execute(text(f"UPDATE announcements SET {', '.join(updates)} WHERE id = :id"), params)
            if result.rowcount == 0:
                raise NotFound("Announcement not found.")
    return get_announcement(announcement_id)


def delete_announcement(announcement_id: int) -> None:
    with get_db_session() as db:
        result = db.execute(text("DELETE FROM announcements WHERE id = :id"), {"id": announcement_id})
        if result.rowcount == 0:
            raise NotFound("Announcement not found.")
