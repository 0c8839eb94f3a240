"""Job-related Pydantic schemas."""
from datetime import datetime
from typing import Optional, List, Union
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_validator

from jobboard.models.job import JobField, JobType, ExperienceLevel


def _split_list(value):
    """Accept either a list or a comma-separated string (as the job form posts it)."""
    if value is None:
        return value
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item).strip() for item in value if str(item).strip()]


class JobBase(BaseModel):
    """Base schema with common job posting fields."""
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=2000)
    requirements: str = Field(..., min_length=1, max_length=1000)
    field: JobField
    location: str = Field(..., min_length=1, max_length=255)
    job_type: JobType
    experience: ExperienceLevel
    salary_min: int = Field(..., ge=0)
    salary_max: int = Field(..., ge=0)
    salary_currency: str = "INR"
    skills: List[str] = []
    benefits: List[str] = []
    application_deadline: datetime


class JobCreate(JobBase):
    """Schema for creating a new job posting."""
    
    @field_validator("skills", "benefits", mode="before")
    @classmethod
    def split_lists(cls, value: Union[str, List[str], None]):
        return _split_list(value) or []


class JobUpdate(BaseModel):
    """Partial update of a job posting; the salary range is re-checked against stored values."""
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    requirements: Optional[str] = Field(None, min_length=1, max_length=1000)
    field: Optional[JobField] = None
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    job_type: Optional[JobType] = None
    experience: Optional[ExperienceLevel] = None
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    salary_currency: Optional[str] = None
    skills: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    application_deadline: Optional[datetime] = None
    is_active: Optional[bool] = None
    
    @field_validator("skills", "benefits", mode="before")
    @classmethod
    def split_lists(cls, value: Union[str, List[str], None]):
        return _split_list(value)


class JobResponse(JobBase):
    """Schema for job posting response."""
    id: UUID
    recruiter_id: UUID
    company_name: str
    is_active: bool
    total_applications: int
    accepted_applications: int
    rejected_applications: int
    views: int
    days_until_deadline: int
    created_at: datetime
    updated_at: datetime
    
    model_config = ConfigDict(from_attributes=True)


class JobDetailResponse(JobResponse):
    """Single job view; has_applied is only meaningful for students."""
    has_applied: bool = False


class JobPage(BaseModel):
    jobs: List[JobResponse]
    total: int
    total_pages: int
    current_page: int
    has_next_page: bool
    has_prev_page: bool


class JobSummary(BaseModel):
    """Job fields embedded in application payloads."""
    id: UUID
    title: str
    company_name: str
    field: str
    location: str
    job_type: str
    
    model_config = ConfigDict(from_attributes=True)


class FieldCount(BaseModel):
    field: str
    count: int


class JobStats(BaseModel):
    """Public board totals; `fields` counts active postings per field, largest first."""
    total_jobs: int = 0
    active_jobs: int = 0
    total_applications: int = 0
    fields: List[FieldCount] = []
