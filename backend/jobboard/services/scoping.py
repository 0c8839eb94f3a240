"""
Role-scoped access policy.

Every Application list query goes through scope_for(); single-entity
reads and writes go through the ensure_* checks, which distinguish a
missing entity (NotFoundError) from one the caller does not own
(ForbiddenError).
"""
import enum
import logging
from dataclasses import dataclass
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import false, true
from sqlalchemy.sql.elements import ColumnElement

from jobboard.models.application import Application
from jobboard.models.job import Job
from jobboard.models.user import User, UserRole
from jobboard.services.errors import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


class IdentityKind(str, enum.Enum):
    ANONYMOUS = "anonymous"
    STUDENT = "student"
    RECRUITER = "recruiter"
    ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    """Caller resolved from the session cookies for one request."""
    kind: IdentityKind
    id: Optional[Union[UUID, str]] = None
    user: Optional[User] = None
    email: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "Identity":
        return cls(kind=IdentityKind.ANONYMOUS)

    @classmethod
    def admin(cls, email: str) -> "Identity":
        return cls(kind=IdentityKind.ADMIN, id="admin", email=email)

    @classmethod
    def for_user(cls, user: User) -> "Identity":
        kind = IdentityKind.STUDENT if user.role == UserRole.STUDENT else IdentityKind.RECRUITER
        return cls(kind=kind, id=user.id, user=user, email=user.email)

    @property
    def is_anonymous(self) -> bool:
        return self.kind == IdentityKind.ANONYMOUS

    @property
    def is_admin(self) -> bool:
        return self.kind == IdentityKind.ADMIN

    @property
    def is_student(self) -> bool:
        return self.kind == IdentityKind.STUDENT

    @property
    def is_recruiter(self) -> bool:
        return self.kind == IdentityKind.RECRUITER

    @property
    def channel_key(self) -> Optional[str]:
        """Realtime channel for this identity, `{role}-{id}`."""
        if self.is_student or self.is_recruiter:
            return f"{self.kind.value}-{self.id}"
        return None


def scope_for(identity: Identity) -> ColumnElement[bool]:
    """
    Predicate restricting Application queries to what the caller may see.

    student   -> own applications
    recruiter -> applications to the recruiter's jobs
    admin     -> everything
    anonymous -> nothing
    """
    if identity.is_student:
        return Application.student_id == identity.id
    if identity.is_recruiter:
        return Application.recruiter_id == identity.id
    if identity.is_admin:
        return true()
    return false()


def owned_jobs_scope(identity: Identity) -> ColumnElement[bool]:
    """Predicate for job management queries (a recruiter's own postings)."""
    if identity.is_recruiter:
        return Job.recruiter_id == identity.id
    if identity.is_admin:
        return true()
    return false()


def visible_jobs_scope(identity: Identity) -> ColumnElement[bool]:
    """Predicate for job browsing: only active postings, except for the admin."""
    if identity.is_admin:
        return true()
    return Job.is_active.is_(True)


def ensure_application_access(identity: Identity, application: Optional[Application], application_id) -> Application:
    """
    Re-check ownership of a single application fetched by id.

    Raises:
        NotFoundError: application does not exist
        ForbiddenError: caller is not the student, the recruiter or the admin
    """
    if application is None:
        raise NotFoundError(f"Application {application_id} not found")
    
    if identity.is_admin:
        return application
    if identity.is_student and application.student_id == identity.id:
        return application
    if identity.is_recruiter and application.recruiter_id == identity.id:
        return application
    
    logger.warning(
        f"Access denied: {identity.kind.value} {identity.id} tried to access application {application_id}"
    )
    raise ForbiddenError("Not authorized to access this application")


def ensure_job_owner(identity: Identity, job: Optional[Job], job_id) -> Job:
    """
    Re-check that the caller owns a job before editing or deleting it.

    Raises:
        NotFoundError: job does not exist
        ForbiddenError: caller is not the owning recruiter
    """
    if job is None:
        raise NotFoundError(f"Job {job_id} not found")
    
    if identity.is_recruiter and job.recruiter_id == identity.id:
        return job
    
    logger.warning(f"Access denied: {identity.kind.value} {identity.id} tried to modify job {job_id}")
    raise ForbiddenError("Not authorized to modify this job")


def can_view_job(identity: Identity, job: Job) -> bool:
    """Inactive jobs are only visible to their owner and the admin."""
    if job.is_active or identity.is_admin:
        return True
    return identity.is_recruiter and job.recruiter_id == identity.id
