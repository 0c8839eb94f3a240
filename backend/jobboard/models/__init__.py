"""Database models"""
from jobboard.models.user import User, UserRole
from jobboard.models.job import Job, JobField, JobType, ExperienceLevel
from jobboard.models.application import Application, ApplicationStatus, InterviewType

__all__ = [
    "User",
    "UserRole",
    "Job",
    "JobField",
    "JobType",
    "ExperienceLevel",
    "Application",
    "ApplicationStatus",
    "InterviewType",
]
