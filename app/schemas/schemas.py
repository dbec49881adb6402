"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Timestamps travel as the ISO-8601 strings stored in the database.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Annotated, Optional, List, Literal, Union
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class DriveStatus(str, Enum):
    published = "published"
    pending_approval = "pending_approval"
    closed = "closed"


class AnnouncementPriority(str, Enum):
    high = "high"
    normal = "normal"
    low = "low"


class SlotStatus(str, Enum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"


class OfferDecisionValue(str, Enum):
    accepted = "accepted"
    declined = "declined"


class DocumentStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class TicketStatus(str, Enum):
    open = "open"
    in_progress = "in_progress"
    resolved = "resolved"


class MentorSessionStatus(str, Enum):
    requested = "requested"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class AuthStatusResponse(BaseModel):
    authenticated: bool
    username: Optional[str] = None
    pending_verification: bool = False
    admin: bool = False
    recruiter: bool = False


class ResendCodeResponse(BaseModel):
    success: bool
    message: str


# ============================================================
# PROFILE SCHEMAS
# ============================================================

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    branch: Optional[str] = None
    cgpa: Optional[float] = Field(None, ge=0, le=10)
    backlogs: Optional[int] = Field(None, ge=0)
    batch_year: Optional[int] = Field(None, ge=2000, le=2100)
    skills: Optional[str] = None
    linkedin_url: Optional[str] = None


class ProfileResponse(BaseModel):
    user_id: int
    username: Optional[str] = None
    full_name: Optional[str] = ""
    email: Optional[str] = ""
    phone: Optional[str] = ""
    resume_path: Optional[str] = ""
    branch: Optional[str] = None
    cgpa: Optional[float] = None
    backlogs: Optional[int] = None
    batch_year: Optional[int] = None
    skills: Optional[str] = ""
    linkedin_url: Optional[str] = None
    profile_views: int = 0


# ============================================================
# DRIVE SCHEMAS
# ============================================================

class DriveCreate(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=200)
    role: str = Field(..., min_length=1, max_length=200)
    job_type: Optional[str] = None
    location: Optional[str] = None
    ctc: Optional[str] = None
    description: Optional[str] = None
    min_cgpa: Optional[float] = Field(None, ge=0, le=10)
    max_backlogs: Optional[int] = Field(None, ge=0)
    eligible_branches: Optional[str] = ""
    batch_year: Optional[int] = Field(None, ge=2000, le=2100)
    deadline: str
    status: Optional[DriveStatus] = None


class DriveUpdate(BaseModel):
    company_name: Optional[str] = None
    role: Optional[str] = None
    job_type: Optional[str] = None
    location: Optional[str] = None
    ctc: Optional[str] = None
    description: Optional[str] = None
    min_cgpa: Optional[float] = Field(None, ge=0, le=10)
    max_backlogs: Optional[int] = Field(None, ge=0)
    eligible_branches: Optional[str] = None
    batch_year: Optional[int] = Field(None, ge=2000, le=2100)
    deadline: Optional[str] = None
    status: Optional[DriveStatus] = None


class DriveResponse(BaseModel):
    id: int
    company_name: str
    role: str
    job_type: Optional[str] = None
    location: Optional[str] = None
    ctc: Optional[str] = None
    description: Optional[str] = None
    min_cgpa: Optional[float] = None
    max_backlogs: Optional[int] = None
    eligible_branches: Optional[str] = ""
    batch_year: Optional[int] = None
    deadline: str
    status: str
    created_by_admin: Optional[int] = None
    created_by_recruiter: Optional[int] = None
    created_at: str
    updated_at: str


class ApplicantResponse(BaseModel):
    application_id: int
    user_id: int
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    branch: Optional[str] = None
    cgpa: Optional[float] = None
    backlogs: Optional[int] = None
    batch_year: Optional[int] = None
    skills: Optional[str] = None
    resume_path: Optional[str] = None
    status: str
    current_round: Optional[str] = None
    application_date: str
    updated_at: str


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class RoundUpdateRequest(BaseModel):
    round_name: str = Field(..., min_length=1, max_length=100)
    status: str = Field(..., min_length=1, max_length=50)
    remarks: Optional[str] = None


class RoundEventResponse(BaseModel):
    id: int
    application_id: int
    round_name: str
    status: str
    remarks: Optional[str] = None
    updated_by_admin: Optional[int] = None
    created_at: str


class LinkedApplication(BaseModel):
    """Application tied to a drive (and normally to a student)."""
    kind: Literal["linked"] = "linked"
    id: int
    drive_id: int
    user_id: Optional[int] = None
    username: Optional[str] = None
    email: Optional[str] = None
    company_name: str
    role: str
    status: str
    current_round: Optional[str] = None
    notes: Optional[str] = None
    application_date: str
    updated_at: str


class LegacyApplication(BaseModel):
    """Company-name-only application from the old apply form. No drive, no owner."""
    kind: Literal["legacy"] = "legacy"
    id: int
    company_name: str
    status: str
    current_round: Optional[str] = None
    application_date: str
    updated_at: str


ApplicationRecord = Annotated[Union[LinkedApplication, LegacyApplication], Field(discriminator="kind")]


class StudentApplicationResponse(BaseModel):
    id: int
    drive_id: int
    company_name: str
    role: str
    job_type: Optional[str] = None
    location: Optional[str] = None
    ctc: Optional[str] = None
    status: str
    current_round: Optional[str] = None
    notes: Optional[str] = None
    application_date: str
    updated_at: str


# ============================================================
# ANNOUNCEMENT SCHEMAS
# ============================================================

class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    priority: AnnouncementPriority = AnnouncementPriority.normal
    scheduled_at: Optional[str] = None
    expires_at: Optional[str] = None
    is_published: bool = True


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    priority: Optional[AnnouncementPriority] = None
    scheduled_at: Optional[str] = None
    expires_at: Optional[str] = None
    is_published: Optional[bool] = None


class AnnouncementResponse(BaseModel):
    id: int
    title: str
    content: str
    priority: str
    scheduled_at: Optional[str] = None
    expires_at: Optional[str] = None
    is_published: bool
    created_at: str


# ============================================================
# INTERVIEW SLOT / OFFER / DOCUMENT SCHEMAS
# ============================================================

class InterviewSlotCreate(BaseModel):
    drive_id: int
    user_id: int
    slot_start: str
    slot_end: Optional[str] = None
    mode: str = "onsite"
    location: Optional[str] = None


class SlotStatusUpdate(BaseModel):
    status: SlotStatus


class InterviewSlotResponse(BaseModel):
    id: int
    drive_id: int
    user_id: int
    company_name: Optional[str] = None
    role: Optional[str] = None
    slot_start: str
    slot_end: Optional[str] = None
    mode: Optional[str] = None
    location: Optional[str] = None
    status: str
    created_at: str


class OfferCreate(BaseModel):
    user_id: int
    drive_id: Optional[int] = None
    ctc: Optional[str] = None
    joining_date: Optional[str] = None
    file_path: Optional[str] = None


class OfferDecision(BaseModel):
    decision: OfferDecisionValue


class OfferResponse(BaseModel):
    id: int
    user_id: int
    drive_id: Optional[int] = None
    company_name: Optional[str] = None
    role: Optional[str] = None
    ctc: Optional[str] = None
    joining_date: Optional[str] = None
    file_path: Optional[str] = None
    status: str
    created_at: str
    responded_at: Optional[str] = None


class DocumentReview(BaseModel):
    status: DocumentStatus
    review_remarks: Optional[str] = None


class DocumentResponse(BaseModel):
    id: int
    user_id: int
    doc_type: str
    file_path: str
    original_name: Optional[str] = None
    status: str
    review_remarks: Optional[str] = None
    uploaded_at: str
    reviewed_at: Optional[str] = None


# ============================================================
# HELPDESK / MENTOR / STORY SCHEMAS
# ============================================================

class TicketCreate(BaseModel):
    subject: str = Field(..., min_length=3, max_length=200)
    message: str = Field(..., min_length=1)
    category: str = "general"


class TicketUpdate(BaseModel):
    status: Optional[TicketStatus] = None
    admin_response: Optional[str] = None


class TicketResponse(BaseModel):
    id: int
    user_id: int
    subject: str
    message: str
    category: Optional[str] = None
    status: str
    admin_response: Optional[str] = None
    created_at: str
    updated_at: str


class MentorCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    expertise: Optional[str] = None
    company: Optional[str] = None
    bio: Optional[str] = None


class MentorResponse(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    expertise: Optional[str] = None
    company: Optional[str] = None
    bio: Optional[str] = None
    is_active: bool


class MentorSessionCreate(BaseModel):
    mentor_id: int
    topic: str = Field(..., min_length=3, max_length=200)
    preferred_time: Optional[str] = None


class MentorSessionUpdate(BaseModel):
    status: MentorSessionStatus
    notes: Optional[str] = None


class MentorSessionResponse(BaseModel):
    id: int
    mentor_id: int
    mentor_name: Optional[str] = None
    user_id: int
    topic: str
    preferred_time: Optional[str] = None
    status: str
    notes: Optional[str] = None
    created_at: str


class SuccessStoryCreate(BaseModel):
    student_name: Optional[str] = None
    company_name: str = Field(..., min_length=1, max_length=200)
    story: str = Field(..., min_length=10)


class SuccessStoryResponse(BaseModel):
    id: int
    student_name: Optional[str] = None
    company_name: str
    story: str
    created_at: str


# ============================================================
# CHAT / STATS SCHEMAS
# ============================================================

class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)

    @field_validator("message")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message cannot be empty")
        return value


class ChatResponse(BaseModel):
    response: str


class StatsResponse(BaseModel):
    students: int
    verified_students: int
    drives: int
    published_drives: int
    pending_drives: int
    applications: int
    applications_by_status: dict
    open_tickets: int


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True
