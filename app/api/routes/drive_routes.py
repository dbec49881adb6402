"""
Drive Routes

GET /drives - Open drives (published, deadline not passed) with filters
GET /drives/{drive_id} - Drive details (published drives only)
POST /drives/{drive_id}/apply - Apply to a drive (student only)

Form route (no /api prefix):
POST /apply - Apply from the drives page (drive_id) or the legacy company form (company_name)
"""

from fastapi import APIRouter, Depends, Form, Query
from fastapi.responses import RedirectResponse
from typing import List, Optional

from app.core.auth import get_current_student, get_optional_student
from app.core.errors import NotFound, Unauthenticated, ValidationError
from app.db.database import fetch_one
from app.schemas.schemas import DriveResponse, MessageResponse
from app.services import application_service, drive_service
from app.services.drive_service import DriveFilters

router = APIRouter(prefix="/drives", tags=["Drives"])
form_router = APIRouter(tags=["Drives"])


@router.get("", response_model=List[DriveResponse])
async def list_drives(
    search: Optional[str] = Query(None, description="Substring of company or role"),
    job_type: Optional[str] = Query(None),
    branch: Optional[str] = Query(None),
    batch_year: Optional[int] = Query(None),
    eligible_only: bool = Query(False, description="Only drives the signed-in student qualifies for"),
    student: Optional[dict] = Depends(get_optional_student)
):
    """List open drives, soonest deadline first."""
    filters = DriveFilters(search=search, job_type=job_type, branch=branch, batch_year=batch_year)

    if eligible_only:
        if not student:
            raise Unauthenticated("Sign in to filter by eligibility.")
        profile = fetch_one(
            "SELECT branch, cgpa, backlogs, batch_year FROM profiles WHERE user_id = :uid",
            {"uid": student["user_id"]}
        ) or {}
        filters.branch = filters.branch or profile.get("branch")
        filters.batch_year = filters.batch_year if filters.batch_year is not None else profile.get("batch_year")
        filters.cgpa = profile.get("cgpa")
        filters.backlogs = profile.get("backlogs")

    return [DriveResponse(**d) for d in drive_service.list_open_drives(filters)]


@router.get("/{drive_id}", response_model=DriveResponse)
async def get_drive(drive_id: int):
    drive = drive_service.get_drive(drive_id)
    if drive["status"] != drive_service.STATUS_PUBLISHED:
        raise NotFound("Drive not found.")
    return DriveResponse(**drive)


@router.post("/{drive_id}/apply", response_model=MessageResponse, status_code=201)
async def apply_to_drive(drive_id: int, student: dict = Depends(get_current_student)):
    """Apply to a drive. Students only. A second application to the same drive is rejected."""
    application_service.apply(student_id=student["user_id"], drive_id=drive_id)
    return MessageResponse(message="Application submitted successfully")


@form_router.post("/apply")
async def apply_form(
    drive_id: Optional[str] = Form(None),
    company_name: Optional[str] = Form(None),
    student: Optional[dict] = Depends(get_optional_student)
):
    """Form apply: drive-linked when drive_id is given, legacy company-name record otherwise."""
    parsed_drive_id = None
    if drive_id:
        try:
            parsed_drive_id = int(drive_id)
        except ValueError:
            raise ValidationError("Invalid drive id.")

    application_service.apply(
        student_id=student["user_id"] if student else None,
        drive_id=parsed_drive_id,
        company_name=company_name
    )
    return RedirectResponse(url="/applySuccess.html", status_code=303)
