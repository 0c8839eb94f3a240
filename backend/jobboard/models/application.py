from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Uuid, Index, UniqueConstraint
from sqlalchemy.orm import relationship
import uuid
import enum

from jobboard.database import Base


class ApplicationStatus(str, enum.Enum):
    """Valid states for job applications"""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class InterviewType(str, enum.Enum):
    ONLINE = "Online"
    IN_PERSON = "In-person"
    PHONE = "Phone"
    NOT_SCHEDULED = "Not scheduled"


class Application(Base):
    __tablename__ = "applications"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Cleared when the recruiter deletes the job; the application itself is kept
    job_id = Column(Uuid, ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True)
    student_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    # Copied from the job owner at creation, never re-derived
    recruiter_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    
    # State machine
    status = Column(String, nullable=False, default=ApplicationStatus.PENDING.value)
    
    cover_letter = Column(Text, nullable=True)
    
    # Snapshot of the student's resume at apply time
    resume_url = Column(String(500), nullable=True)
    resume_key = Column(String(500), nullable=True)
    
    # Review fields
    recruiter_notes = Column(Text, nullable=True)
    interview_date = Column(DateTime, nullable=True)
    interview_location = Column(String(255), nullable=True)
    interview_type = Column(String(20), nullable=True)
    
    # Timestamps
    applied_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    reviewed_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    
    # Relationships
    job = relationship("Job", lazy="raise")
    student = relationship("User", foreign_keys=[student_id], lazy="raise")
    recruiter = relationship("User", foreign_keys=[recruiter_id], lazy="raise")
    
    __table_args__ = (
        # One application per student per job
        UniqueConstraint("job_id", "student_id", name="uq_job_student"),
        
        Index("idx_applications_student_status", "student_id", "status"),
        Index("idx_applications_recruiter_status", "recruiter_id", "status"),
        Index("idx_applications_status_applied", "status", "applied_at"),
    )
