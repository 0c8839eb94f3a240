"""Application-related Pydantic schemas."""
from datetime import datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from jobboard.models.application import ApplicationStatus, InterviewType
from jobboard.schemas.job import JobSummary


class ApplyRequest(BaseModel):
    cover_letter: Optional[str] = Field(None, max_length=1000)


class InterviewDetails(BaseModel):
    interview_date: Optional[datetime] = None
    interview_location: Optional[str] = Field(None, max_length=255)
    interview_type: Optional[InterviewType] = None


class ApplicationUpdateRequest(InterviewDetails):
    """Recruiter review of one application."""
    status: ApplicationStatus
    recruiter_notes: Optional[str] = Field(None, max_length=500)


class BulkUpdateRequest(BaseModel):
    application_ids: List[UUID] = Field(..., min_length=1)
    status: ApplicationStatus
    recruiter_notes: Optional[str] = Field(None, max_length=500)


class BulkUpdateResponse(BaseModel):
    success: bool = True
    updated: int
    message: str


class StatusOverrideRequest(BaseModel):
    status: ApplicationStatus


class StudentSummary(BaseModel):
    """Student fields embedded in application payloads."""
    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    field: Optional[str] = None
    graduation_year: Optional[int] = None
    profile_picture_url: Optional[str] = None
    
    model_config = ConfigDict(from_attributes=True)


class RecruiterSummary(BaseModel):
    id: UUID
    name: str
    company_name: Optional[str] = None
    
    model_config = ConfigDict(from_attributes=True)


class ApplicationResponse(BaseModel):
    """Schema for application response."""
    id: UUID
    job_id: Optional[UUID] = None
    student_id: UUID
    recruiter_id: UUID
    status: ApplicationStatus
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None
    recruiter_notes: Optional[str] = None
    interview_date: Optional[datetime] = None
    interview_location: Optional[str] = None
    interview_type: Optional[str] = None
    applied_at: datetime
    reviewed_at: Optional[datetime] = None
    
    model_config = ConfigDict(from_attributes=True)


class ApplicationDetail(ApplicationResponse):
    """Application with job, student and recruiter populated."""
    job: Optional[JobSummary] = None
    student: Optional[StudentSummary] = None
    recruiter: Optional[RecruiterSummary] = None


class ApplicationPage(BaseModel):
    applications: List[ApplicationDetail]
    total: int
    total_pages: int
    current_page: int


class StatusCount(BaseModel):
    status: ApplicationStatus
    count: int


class MonthCount(BaseModel):
    year: int
    month: int
    count: int


class ApplicationStats(BaseModel):
    """Status counts over the applications visible to the caller."""
    total_applications: int = 0
    pending_applications: int = 0
    accepted_applications: int = 0
    rejected_applications: int = 0
    withdrawn_applications: int = 0
    applications_by_status: List[StatusCount] = []
    applications_by_month: List[MonthCount] = []


class RecruiterDashboard(BaseModel):
    total_jobs: int = 0
    active_jobs: int = 0
    total_applications: int = 0
    pending_applications: int = 0
