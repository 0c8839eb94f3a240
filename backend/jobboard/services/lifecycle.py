"""
Application lifecycle engine.
ALL application status changes must go through this module.

Every operation follows the same pipeline:
    read -> business-rule check -> write + commit -> counter recompute -> publish

Counter recompute and publish run after the status write is committed; their
failures are logged and never undo the write.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from jobboard.models.application import Application, ApplicationStatus
from jobboard.models.job import Job
from jobboard.models.user import User, UserRole
from jobboard.schemas.application import ApplicationDetail
from jobboard.services.errors import (
    DeadlinePassedError,
    DuplicateApplicationError,
    ForbiddenError,
    InvalidTransitionError,
    JobInactiveError,
    MissingResumeError,
    NotFoundError,
)
from jobboard.services.notifications import (
    EventKind,
    NotificationEvent,
    NotificationPort,
    publish_safely,
    user_channel,
)

# Configure logger
logger = logging.getLogger(__name__)


# Define allowed state transitions
ALLOWED_TRANSITIONS: Dict[ApplicationStatus, list[ApplicationStatus]] = {
    ApplicationStatus.PENDING: [
        ApplicationStatus.ACCEPTED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    ],
    ApplicationStatus.ACCEPTED: [],  # Terminal state
    ApplicationStatus.REJECTED: [],  # Terminal state
    ApplicationStatus.WITHDRAWN: [],  # Terminal state (student pulled out)
}

# Which targets each actor may request
RECRUITER_TARGETS = {ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED}
STUDENT_TARGETS = {ApplicationStatus.WITHDRAWN}


def can_transition(from_state: ApplicationStatus, to_state: ApplicationStatus) -> bool:
    """Check if a transition is allowed without touching the database"""
    return to_state in ALLOWED_TRANSITIONS.get(from_state, [])


def _check_transition(
    application: Application,
    to_state: ApplicationStatus,
    actor_targets: set[ApplicationStatus],
) -> ApplicationStatus:
    current_state = ApplicationStatus(application.status)
    if to_state not in actor_targets or not can_transition(current_state, to_state):
        raise InvalidTransitionError(
            f"Invalid transition from {current_state.value} to {to_state.value}"
        )
    return current_state


# =============================================================================
# Job counters
# =============================================================================

@dataclass(frozen=True)
class JobCounters:
    total_applications: int
    accepted_applications: int
    rejected_applications: int


def compute_job_counters(status_counts: Mapping[str, int]) -> JobCounters:
    """
    Project application status counts onto the job's counters.

    Withdrawn applications are not counted in the total.
    """
    pending = status_counts.get(ApplicationStatus.PENDING.value, 0)
    accepted = status_counts.get(ApplicationStatus.ACCEPTED.value, 0)
    rejected = status_counts.get(ApplicationStatus.REJECTED.value, 0)
    return JobCounters(
        total_applications=pending + accepted + rejected,
        accepted_applications=accepted,
        rejected_applications=rejected,
    )


async def recompute_job_counters(db: AsyncSession, job_id: UUID) -> Optional[JobCounters]:
    """
    Recompute a job's counters from a fresh aggregation of its applications.

    Always re-reads the full state, so concurrent recomputes converge and
    replaying it is harmless. Returns None if the job no longer exists.
    """
    result = await db.execute(
        select(Application.status, func.count(Application.id))
        .where(Application.job_id == job_id)
        .group_by(Application.status)
    )
    counters = compute_job_counters({status: count for status, count in result.all()})

    job = await db.get(Job, job_id)
    if job is None:
        return None

    job.total_applications = counters.total_applications
    job.accepted_applications = counters.accepted_applications
    job.rejected_applications = counters.rejected_applications
    await db.commit()

    logger.debug(f"Recomputed counters for job {job_id}: {counters}")
    return counters


async def _recompute_after_write(db: AsyncSession, job_ids: Iterable[Optional[UUID]]) -> None:
    """Recompute counters after a committed write; failures are left for the next trigger."""
    for job_id in {job_id for job_id in job_ids if job_id is not None}:
        try:
            await recompute_job_counters(db, job_id)
        except Exception as e:
            await db.rollback()
            logger.error(f"Counter recompute failed for job {job_id}: {str(e)}", exc_info=True)


# =============================================================================
# Queries
# =============================================================================

async def load_application(db: AsyncSession, application_id: UUID) -> Optional[Application]:
    """Fetch one application with job, student and recruiter populated (no scoping)."""
    result = await db.execute(
        select(Application)
        .where(Application.id == application_id)
        .options(
            selectinload(Application.job),
            selectinload(Application.student),
            selectinload(Application.recruiter),
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def find_existing_application(db: AsyncSession, job_id: UUID, student_id: UUID) -> Optional[Application]:
    result = await db.execute(
        select(Application).where(
            Application.job_id == job_id,
            Application.student_id == student_id,
        )
    )
    return result.scalar_one_or_none()


# =============================================================================
# Event payloads
# =============================================================================

def _updated_payload(application: Application) -> dict:
    return {
        "application_id": str(application.id),
        "status": application.status,
        "recruiter_notes": application.recruiter_notes,
        "interview_date": application.interview_date.isoformat() if application.interview_date else None,
        "interview_location": application.interview_location,
        "interview_type": application.interview_type,
    }


# =============================================================================
# Operations
# =============================================================================

async def apply_to_job(
    db: AsyncSession,
    job_id: UUID,
    student: User,
    notifier: NotificationPort,
    cover_letter: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Application:
    """
    Create a pending application for a student.

    Preconditions are checked in order and the first failure wins:
    job exists, job is active, deadline not passed, no previous application,
    student has a resume on file.

    Raises:
        NotFoundError, JobInactiveError, DeadlinePassedError,
        DuplicateApplicationError, MissingResumeError
    """
    now = now or datetime.utcnow()

    job = await db.get(Job, job_id)
    if job is None:
        raise NotFoundError(f"Job {job_id} not found")

    if not job.is_active:
        raise JobInactiveError("Job is no longer active")

    # Deadline instant itself is still open
    if now > job.application_deadline:
        raise DeadlinePassedError("Application deadline has passed")

    if await find_existing_application(db, job.id, student.id) is not None:
        raise DuplicateApplicationError("You have already applied for this job")

    if not student.has_resume():
        raise MissingResumeError("Please upload your resume before applying")

    application = Application(
        job_id=job.id,
        student_id=student.id,
        recruiter_id=job.recruiter_id,
        status=ApplicationStatus.PENDING.value,
        cover_letter=cover_letter or None,
        resume_url=student.resume_url,
        resume_key=student.resume_key,
        applied_at=now,
    )
    db.add(application)
    student_id = student.id

    try:
        await db.commit()
    except IntegrityError:
        # A concurrent apply for the same (job, student) won the race
        await db.rollback()
        logger.info(f"Duplicate application rejected by unique constraint: job={job_id} student={student_id}")
        raise DuplicateApplicationError("You have already applied for this job")

    application_id = application.id
    recruiter_id = job.recruiter_id
    logger.info(
        f"Application created: student {student_id} → job {job_id}",
        extra={"application_id": str(application_id), "job_id": str(job_id), "to_state": "pending"},
    )

    application = await load_application(db, application_id)
    event = NotificationEvent(
        EventKind.NEW_APPLICATION,
        {"application": ApplicationDetail.model_validate(application).model_dump(mode="json")},
    )

    await _recompute_after_write(db, [job_id])

    await publish_safely(notifier, event, user_channel(UserRole.RECRUITER.value, recruiter_id))
    return await load_application(db, application_id)


async def withdraw_application(
    db: AsyncSession,
    application_id: UUID,
    student: User,
    notifier: NotificationPort,
) -> Application:
    """
    Withdraw a pending application (student only, pending → withdrawn).

    Raises:
        NotFoundError: application does not exist
        ForbiddenError: application belongs to another student
        InvalidTransitionError: application is no longer pending
    """
    application = await load_application(db, application_id)
    if application is None:
        raise NotFoundError(f"Application {application_id} not found")

    if application.student_id != student.id:
        logger.warning(f"Access denied: student {student.id} tried to withdraw application {application_id}")
        raise ForbiddenError("Not authorized to withdraw this application")

    try:
        from_state = _check_transition(application, ApplicationStatus.WITHDRAWN, STUDENT_TARGETS)
    except InvalidTransitionError:
        raise InvalidTransitionError("Cannot withdraw application that is not pending")

    application.status = ApplicationStatus.WITHDRAWN.value
    await db.commit()

    logger.info(
        f"Application state transition: {from_state.value} → withdrawn",
        extra={"application_id": str(application_id), "from_state": from_state.value, "to_state": "withdrawn"},
    )

    event = NotificationEvent(
        EventKind.APPLICATION_WITHDRAWN,
        {"application_id": str(application.id), "student_name": student.name},
    )
    channel_key = user_channel(UserRole.RECRUITER.value, application.recruiter_id)

    await _recompute_after_write(db, [application.job_id])

    await publish_safely(notifier, event, channel_key)
    return await load_application(db, application_id)


async def update_application(
    db: AsyncSession,
    application_id: UUID,
    recruiter: User,
    status: ApplicationStatus,
    notifier: NotificationPort,
    recruiter_notes: Optional[str] = None,
    interview: Optional[dict] = None,
) -> Application:
    """
    Review an application (owning recruiter only, pending → accepted | rejected).

    Args:
        recruiter_notes: Replaces the notes when given
        interview: Any of interview_date / interview_location / interview_type to set

    Raises:
        NotFoundError: application (or its job) does not exist
        ForbiddenError: caller does not own the job
        InvalidTransitionError: target not reachable from the current status
    """
    application = await load_application(db, application_id)
    if application is None:
        raise NotFoundError(f"Application {application_id} not found")

    if application.recruiter_id != recruiter.id:
        logger.warning(f"Access denied: recruiter {recruiter.id} tried to update application {application_id}")
        raise ForbiddenError("Not authorized to update this application")

    if application.job_id is None:
        raise NotFoundError("The job for this application no longer exists")

    from_state = _check_transition(application, status, RECRUITER_TARGETS)

    application.status = status.value
    application.reviewed_at = datetime.utcnow()
    if recruiter_notes is not None:
        application.recruiter_notes = recruiter_notes
    for key, value in (interview or {}).items():
        if key in ("interview_date", "interview_location", "interview_type"):
            setattr(application, key, value.value if hasattr(value, "value") else value)

    await db.commit()

    logger.info(
        f"Application state transition: {from_state.value} → {status.value}",
        extra={"application_id": str(application_id), "from_state": from_state.value, "to_state": status.value},
    )

    event = NotificationEvent(EventKind.APPLICATION_UPDATED, _updated_payload(application))
    channel_key = user_channel(UserRole.STUDENT.value, application.student_id)

    await _recompute_after_write(db, [application.job_id])

    await publish_safely(notifier, event, channel_key)
    return await load_application(db, application_id)


async def bulk_update_applications(
    db: AsyncSession,
    application_ids: List[UUID],
    recruiter: User,
    status: ApplicationStatus,
    notifier: NotificationPort,
    recruiter_notes: Optional[str] = None,
) -> int:
    """
    Move many applications to the same status in one commit.

    The whole call is rejected, with nothing written, if any id is unknown,
    not owned by the recruiter, or not in a state that allows the transition.

    Returns:
        Number of applications updated
    """
    unique_ids = list(dict.fromkeys(application_ids))

    result = await db.execute(select(Application).where(Application.id.in_(unique_ids)))
    applications = result.scalars().all()

    if len(applications) != len(unique_ids):
        found = {application.id for application in applications}
        missing = [str(app_id) for app_id in unique_ids if app_id not in found]
        raise NotFoundError(f"Applications not found: {', '.join(missing)}")

    not_owned = [application for application in applications if application.recruiter_id != recruiter.id]
    if not_owned:
        logger.warning(
            f"Bulk update denied: recruiter {recruiter.id} does not own {len(not_owned)} of {len(unique_ids)} applications"
        )
        raise ForbiddenError("Some applications are not owned by you; nothing was updated")

    for application in applications:
        if application.job_id is None:
            raise NotFoundError(f"The job for application {application.id} no longer exists")
        _check_transition(application, status, RECRUITER_TARGETS)

    reviewed_at = datetime.utcnow()
    for application in applications:
        application.status = status.value
        application.reviewed_at = reviewed_at
        if recruiter_notes is not None:
            application.recruiter_notes = recruiter_notes

    await db.commit()

    logger.info(
        f"Bulk transition of {len(applications)} applications → {status.value}",
        extra={"recruiter_id": str(recruiter.id), "to_state": status.value, "count": len(applications)},
    )

    deliveries = [
        (
            NotificationEvent(EventKind.APPLICATION_UPDATED, _updated_payload(application)),
            user_channel(UserRole.STUDENT.value, application.student_id),
        )
        for application in applications
    ]
    job_ids = [application.job_id for application in applications]

    await _recompute_after_write(db, job_ids)

    for event, channel_key in deliveries:
        await publish_safely(notifier, event, channel_key)
    return len(deliveries)


async def override_application_status(
    db: AsyncSession,
    application_id: UUID,
    status: ApplicationStatus,
    notifier: NotificationPort,
) -> Application:
    """
    Admin override: set any status regardless of the transition table.

    Kept separate from the regular transitions so every bypass is explicit
    and logged as an override.
    """
    application = await load_application(db, application_id)
    if application is None:
        raise NotFoundError(f"Application {application_id} not found")

    from_state = application.status
    application.status = status.value
    if status != ApplicationStatus.PENDING:
        application.reviewed_at = datetime.utcnow()
    await db.commit()

    logger.warning(
        f"Admin override: application {application_id} {from_state} → {status.value}",
        extra={"application_id": str(application_id), "from_state": from_state, "to_state": status.value, "override": True},
    )

    event = NotificationEvent(EventKind.APPLICATION_UPDATED, _updated_payload(application))
    channel_keys = [
        user_channel(UserRole.STUDENT.value, application.student_id),
        user_channel(UserRole.RECRUITER.value, application.recruiter_id),
    ]

    await _recompute_after_write(db, [application.job_id])

    for channel_key in channel_keys:
        await publish_safely(notifier, event, channel_key)
    return await load_application(db, application_id)
