"""Profile-related Pydantic schemas."""
from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from jobboard.models.job import JobField
from jobboard.models.user import UserRole


class UserResponse(BaseModel):
    """Public view of a user account (never includes the password hash)."""
    id: UUID
    name: str
    email: str
    role: UserRole
    phone: Optional[str] = None
    is_active: bool
    profile_picture_url: Optional[str] = None
    
    # Student fields
    field: Optional[str] = None
    graduation_year: Optional[int] = None
    resume_url: Optional[str] = None
    
    # Recruiter fields
    company_name: Optional[str] = None
    company_description: Optional[str] = None
    company_logo_url: Optional[str] = None
    
    last_login_at: Optional[datetime] = None
    created_at: datetime
    
    model_config = ConfigDict(from_attributes=True)


class StudentProfileUpdate(BaseModel):
    """Request body for updating a student profile (partial update)."""
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    phone: Optional[str] = Field(None, pattern=r"^[0-9]{10}$")
    field: Optional[JobField] = None
    graduation_year: Optional[int] = Field(None, ge=2020, le=2030)


class RecruiterProfileUpdate(BaseModel):
    """Request body for updating a recruiter profile (partial update)."""
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    phone: Optional[str] = Field(None, pattern=r"^[0-9]{10}$")
    company_description: Optional[str] = Field(None, max_length=500)


class UploadResponse(BaseModel):
    success: bool = True
    url: str
