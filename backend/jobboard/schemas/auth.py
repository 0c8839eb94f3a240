"""Authentication-related Pydantic schemas."""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from jobboard.models.job import JobField
from jobboard.models.user import UserRole
from jobboard.schemas.profile import UserResponse


class RegisterRequest(BaseModel):
    """Registration of a student or recruiter account."""
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole
    phone: str = Field(..., pattern=r"^[0-9]{10}$")
    
    # Student fields
    field: Optional[JobField] = None
    graduation_year: Optional[int] = Field(None, ge=2020, le=2030)
    
    # Recruiter fields
    company_name: Optional[str] = Field(None, max_length=255)
    company_description: Optional[str] = Field(None, max_length=500)
    
    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()
    
    @model_validator(mode="after")
    def check_role_fields(self):
        if self.role == UserRole.STUDENT:
            if self.field is None:
                raise ValueError("Field is required for students")
            if self.graduation_year is None:
                raise ValueError("Graduation year is required for students")
        if self.role == UserRole.RECRUITER and not self.company_name:
            raise ValueError("Company name is required for recruiters")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
    role: UserRole
    
    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class AuthResponse(BaseModel):
    """Response after successful registration or login."""
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class AdminLoginRequest(BaseModel):
    email: str
    password: str


class AdminResponse(BaseModel):
    email: str
    role: str = "admin"
