"""
Announcement Routes

GET /announcements - Public feed (published, inside the schedule window)
"""

from fastapi import APIRouter
from typing import List

from app.schemas.schemas import AnnouncementResponse
from app.services import announcement_service

router = APIRouter(prefix="/announcements", tags=["Announcements"])


@router.get("", response_model=List[AnnouncementResponse])
async def public_announcements():
    """High priority first, then normal, then the rest; newest first within each."""
    return [AnnouncementResponse(**a) for a in announcement_service.list_public_announcements()]
