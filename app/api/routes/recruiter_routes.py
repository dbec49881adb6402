"""
Recruiter Routes (require a recruiter session)

POST /recruiter/drives - Post a drive (starts as pending_approval)
GET /recruiter/drives - Own drives, any status
GET /recruiter/drives/{drive_id}/applicants - Applicants of an own drive
"""

from fastapi import APIRouter, Depends
from typing import List

from app.core.auth import get_current_recruiter
from app.schemas.schemas import ApplicantResponse, DriveCreate, DriveResponse
from app.services import drive_service

router = APIRouter(prefix="/recruiter", tags=["Recruiters"])


@router.post("/drives", response_model=DriveResponse, status_code=201)
async def post_drive(drive: DriveCreate, recruiter: dict = Depends(get_current_recruiter)):
    """Post a drive. It stays hidden from students until an admin publishes it."""
    data = drive.model_dump(exclude={"status"})
    return DriveResponse(**drive_service.create_drive(data, recruiter_id=recruiter["recruiter_id"]))


@router.get("/drives", response_model=List[DriveResponse])
async def my_drives(recruiter: dict = Depends(get_current_recruiter)):
    return [DriveResponse(**d) for d in drive_service.list_recruiter_drives(recruiter["recruiter_id"])]


@router.get("/drives/{drive_id}/applicants", response_model=List[ApplicantResponse])
async def drive_applicants(drive_id: int, recruiter: dict = Depends(get_current_recruiter)):
    rows = drive_service.list_drive_applicants(drive_id, recruiter_id=recruiter["recruiter_id"])
    return [ApplicantResponse(**r) for r in rows]
