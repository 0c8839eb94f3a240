from datetime import datetime
from sqlalchemy import Column, String, Integer, Text, Boolean, DateTime, ForeignKey, Uuid, JSON, Index
from sqlalchemy.orm import relationship
import uuid
import enum

from jobboard.database import Base


class JobField(str, enum.Enum):
    """Academic field a posting targets (shared with student profiles)."""
    MECHANICAL_ENGINEERING = "Mechanical Engineering"
    COMPUTER_SCIENCE = "Computer Science"
    BCA = "BCA"
    BCOM = "B.Com"
    ELECTRICAL_ENGINEERING = "Electrical Engineering"
    CIVIL_ENGINEERING = "Civil Engineering"
    OTHER = "Other"


class JobType(str, enum.Enum):
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    INTERNSHIP = "Internship"
    CONTRACT = "Contract"


class ExperienceLevel(str, enum.Enum):
    ENTRY_LEVEL = "Entry Level"
    ONE_TO_TWO = "1-2 years"
    THREE_TO_FIVE = "3-5 years"
    FIVE_PLUS = "5+ years"


class Job(Base):
    __tablename__ = "jobs"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    recruiter_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    
    # Denormalized from the recruiter at creation for listings
    company_name = Column(String(255), nullable=False)
    
    # Posting details
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(Text, nullable=False)
    field = Column(String(50), nullable=False)
    location = Column(String(255), nullable=False)
    job_type = Column(String(20), nullable=False)
    experience = Column(String(20), nullable=False)
    
    # Salary range (salary_min <= salary_max)
    salary_min = Column(Integer, nullable=False)
    salary_max = Column(Integer, nullable=False)
    salary_currency = Column(String(10), nullable=False, default="INR")
    
    skills = Column(JSON, nullable=False, default=list)
    benefits = Column(JSON, nullable=False, default=list)
    
    application_deadline = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    
    # Derived from the job's applications, only written by the lifecycle engine
    total_applications = Column(Integer, nullable=False, default=0)
    accepted_applications = Column(Integer, nullable=False, default=0)
    rejected_applications = Column(Integer, nullable=False, default=0)
    
    # Best-effort counter
    views = Column(Integer, nullable=False, default=0)
    
    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    
    # Relationships
    recruiter = relationship("User", lazy="raise")
    
    __table_args__ = (
        Index("idx_jobs_field_active", "field", "is_active", "created_at"),
        Index("idx_jobs_recruiter_active", "recruiter_id", "is_active"),
    )
    
    @property
    def days_until_deadline(self) -> int:
        """Whole days left before the deadline (rounded up, negative once passed)."""
        remaining = self.application_deadline - datetime.utcnow()
        days, rest = divmod(remaining.total_seconds(), 86400)
        return int(days) + (1 if rest > 0 else 0)
