from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Uuid, Enum as SQLEnum
import uuid
import enum

from jobboard.database import Base


class UserRole(str, enum.Enum):
    """Role of a registered account. Admin is a separate credential, not a role."""
    STUDENT = "student"
    RECRUITER = "recruiter"


class User(Base):
    __tablename__ = "users"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    phone = Column(String(20), nullable=True)
    
    role = Column(
        SQLEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True
    )
    
    # Deactivated accounts cannot log in (admin moderation)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime, nullable=True)
    
    # Profile picture (blob store reference)
    profile_picture_url = Column(String(500), nullable=True)
    profile_picture_key = Column(String(500), nullable=True)
    
    # Student fields
    field = Column(String(50), nullable=True)
    graduation_year = Column(Integer, nullable=True)
    resume_url = Column(String(500), nullable=True)
    resume_key = Column(String(500), nullable=True)
    resume_uploaded_at = Column(DateTime, nullable=True)
    
    # Recruiter fields
    company_name = Column(String(255), nullable=True)
    company_description = Column(String(500), nullable=True)
    company_logo_url = Column(String(500), nullable=True)
    company_logo_key = Column(String(500), nullable=True)
    
    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT
    
    def is_recruiter(self) -> bool:
        return self.role == UserRole.RECRUITER
    
    def has_resume(self) -> bool:
        """A student can only apply once a resume has been uploaded."""
        return bool(self.resume_url)
