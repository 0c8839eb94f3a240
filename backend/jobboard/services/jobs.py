"""
Job posting management and browsing.

Recruiters create and manage their own postings; everyone else only ever
sees active postings. Application counters on a job are never written here,
they belong to the lifecycle engine.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import String, cast, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.models.application import Application
from jobboard.models.job import Job
from jobboard.models.user import User
from jobboard.schemas.job import FieldCount, JobCreate, JobDetailResponse, JobPage, JobResponse, JobStats
from jobboard.services.errors import NotFoundError, ValidationError
from jobboard.services.lifecycle import find_existing_application
from jobboard.services.notifications import (
    EventKind,
    NotificationEvent,
    NotificationPort,
    field_channel,
    publish_safely,
)
from jobboard.services.pagination import page_count, page_offset
from jobboard.services.scoping import Identity, can_view_job, ensure_job_owner, owned_jobs_scope, visible_jobs_scope

logger = logging.getLogger(__name__)

POPULAR_JOBS_LIMIT = 6

SORT_COLUMNS = {
    "created_at": Job.created_at,
    "application_deadline": Job.application_deadline,
    "views": Job.views,
    "total_applications": Job.total_applications,
    "salary_min": Job.salary_min,
    "salary_max": Job.salary_max,
    "title": Job.title,
}


@dataclass
class JobFilters:
    """Query options of the public job listing."""
    field: Optional[str] = None
    job_type: Optional[str] = None
    experience: Optional[str] = None
    location: Optional[str] = None
    search: Optional[str] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"
    page: int = 1
    limit: int = 10


def to_naive_utc(value: datetime) -> datetime:
    """Deadlines are stored as naive UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _enum_value(value):
    return value.value if hasattr(value, "value") else value


def _job_updated_event(job: Job) -> NotificationEvent:
    return NotificationEvent(
        EventKind.JOB_UPDATED,
        {
            "job_id": str(job.id),
            "title": job.title,
            "field": job.field,
            "is_active": job.is_active,
        },
    )


async def _count_views(db: AsyncSession, job_ids: List[UUID]) -> None:
    """Best-effort view counter; a failure is logged and the views are lost."""
    if not job_ids:
        return
    try:
        await db.execute(
            update(Job)
            .where(Job.id.in_(job_ids))
            .values(views=Job.views + 1)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.warning(f"Failed to count views for {len(job_ids)} jobs: {str(e)}")


# =============================================================================
# Recruiter management
# =============================================================================

async def create_job(db: AsyncSession, recruiter: User, data: JobCreate) -> Job:
    """Create a posting owned by the recruiter, denormalizing the company name."""
    if data.salary_min > data.salary_max:
        raise ValidationError("salary_min cannot be greater than salary_max")

    job = Job(
        recruiter_id=recruiter.id,
        company_name=recruiter.company_name or recruiter.name,
        title=data.title,
        description=data.description,
        requirements=data.requirements,
        field=data.field.value,
        location=data.location,
        job_type=data.job_type.value,
        experience=data.experience.value,
        salary_min=data.salary_min,
        salary_max=data.salary_max,
        salary_currency=data.salary_currency,
        skills=list(data.skills),
        benefits=list(data.benefits),
        application_deadline=to_naive_utc(data.application_deadline),
        is_active=True,
    )
    db.add(job)
    await db.commit()
    await db.refresh(job)

    logger.info(f"Created job {job.id}: {job.title} at {job.company_name}")
    return job


async def update_job(
    db: AsyncSession,
    job_id: UUID,
    identity: Identity,
    changes: dict,
    notifier: NotificationPort,
) -> Job:
    """
    Apply a partial edit to an owned posting.

    The salary range is re-checked against the stored values, so sending only
    one bound cannot invert the range.
    """
    job = ensure_job_owner(identity, await db.get(Job, job_id), job_id)

    salary_min = changes.get("salary_min")
    salary_max = changes.get("salary_max")
    if salary_min is None:
        salary_min = job.salary_min
    if salary_max is None:
        salary_max = job.salary_max
    if salary_min > salary_max:
        raise ValidationError("salary_min cannot be greater than salary_max")

    for key, value in changes.items():
        # Columns are NOT NULL, an explicit null leaves the stored value
        if value is None:
            continue
        if key == "application_deadline":
            value = to_naive_utc(value)
        setattr(job, key, _enum_value(value))

    await db.commit()
    await db.refresh(job)

    logger.info(f"Updated job {job_id}", extra={"job_id": str(job_id), "fields": sorted(changes)})

    await publish_safely(notifier, _job_updated_event(job), field_channel(job.field))
    return job


async def delete_job(db: AsyncSession, job_id: UUID, identity: Identity) -> None:
    """
    Delete an owned posting.

    Its applications are kept as history with job_id cleared.
    """
    job = ensure_job_owner(identity, await db.get(Job, job_id), job_id)

    result = await db.execute(
        update(Application)
        .where(Application.job_id == job.id)
        .values(job_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.delete(job)
    await db.commit()

    logger.info(f"Deleted job {job_id}, detached {result.rowcount} applications")


async def toggle_job(
    db: AsyncSession,
    job_id: UUID,
    identity: Identity,
    notifier: NotificationPort,
) -> Job:
    """Flip is_active. The owning recruiter and the admin may do this."""
    job = await db.get(Job, job_id)
    if identity.is_admin:
        if job is None:
            raise NotFoundError(f"Job {job_id} not found")
    else:
        job = ensure_job_owner(identity, job, job_id)

    job.is_active = not job.is_active
    await db.commit()
    await db.refresh(job)

    logger.info(
        f"Job {job_id} {'activated' if job.is_active else 'deactivated'} by {identity.kind.value}",
        extra={"job_id": str(job_id), "is_active": job.is_active},
    )

    await publish_safely(notifier, _job_updated_event(job), field_channel(job.field))
    return job


async def list_owned_jobs(
    db: AsyncSession,
    identity: Identity,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Job], int]:
    """A recruiter's own postings, newest first; status is 'active' or 'inactive'."""
    conditions = [owned_jobs_scope(identity)]
    if status == "active":
        conditions.append(Job.is_active.is_(True))
    elif status == "inactive":
        conditions.append(Job.is_active.is_(False))

    total = await db.scalar(select(func.count(Job.id)).where(*conditions))
    result = await db.execute(
        select(Job)
        .where(*conditions)
        .order_by(Job.created_at.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0


# =============================================================================
# Browsing
# =============================================================================

async def list_jobs(db: AsyncSession, identity: Identity, filters: JobFilters) -> JobPage:
    """
    Public job listing with filters, sorting and pagination.

    Every listed job gets its view counter bumped (best effort).
    """
    sort_column = SORT_COLUMNS.get(filters.sort_by)
    if sort_column is None:
        raise ValidationError(f"Cannot sort jobs by {filters.sort_by}")

    conditions = [visible_jobs_scope(identity)]
    if filters.field and filters.field != "all":
        conditions.append(Job.field == filters.field)
    if filters.job_type and filters.job_type != "all":
        conditions.append(Job.job_type == filters.job_type)
    if filters.experience and filters.experience != "all":
        conditions.append(Job.experience == filters.experience)
    if filters.location and filters.location != "all":
        conditions.append(Job.location.ilike(f"%{filters.location}%"))
    if filters.search:
        pattern = f"%{filters.search}%"
        conditions.append(
            or_(
                Job.title.ilike(pattern),
                Job.description.ilike(pattern),
                Job.company_name.ilike(pattern),
                cast(Job.skills, String).ilike(pattern),
            )
        )

    order = sort_column.asc() if filters.sort_order == "asc" else sort_column.desc()

    total = await db.scalar(select(func.count(Job.id)).where(*conditions)) or 0
    result = await db.execute(
        select(Job)
        .where(*conditions)
        .order_by(order, Job.id)
        .offset(page_offset(filters.page, filters.limit))
        .limit(filters.limit)
    )
    jobs = [JobResponse.model_validate(job) for job in result.scalars().all()]

    await _count_views(db, [job.id for job in jobs])

    return JobPage(
        jobs=jobs,
        total=total,
        total_pages=page_count(total, filters.limit),
        current_page=filters.page,
        has_next_page=filters.page * filters.limit < total,
        has_prev_page=filters.page > 1,
    )


async def get_visible_job(db: AsyncSession, job_id: UUID, identity: Identity) -> JobDetailResponse:
    """
    Fetch one posting if the caller may see it.

    Inactive postings answer NotFound to everyone but their owner and the admin.
    """
    job = await db.get(Job, job_id)
    if job is None or not can_view_job(identity, job):
        raise NotFoundError("Job not found")

    has_applied = False
    if identity.is_student:
        has_applied = await find_existing_application(db, job.id, identity.id) is not None

    detail = JobDetailResponse.model_validate(job).model_copy(update={"has_applied": has_applied})
    await _count_views(db, [job.id])
    return detail


async def popular_jobs(db: AsyncSession) -> List[JobResponse]:
    result = await db.execute(
        select(Job)
        .where(Job.is_active.is_(True))
        .order_by(Job.views.desc(), Job.total_applications.desc())
        .limit(POPULAR_JOBS_LIMIT)
    )
    return [JobResponse.model_validate(job) for job in result.scalars().all()]


async def jobs_by_field(db: AsyncSession, field: str, page: int = 1, limit: int = 10) -> JobPage:
    conditions = [Job.field == field, Job.is_active.is_(True)]

    total = await db.scalar(select(func.count(Job.id)).where(*conditions)) or 0
    result = await db.execute(
        select(Job)
        .where(*conditions)
        .order_by(Job.created_at.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
    )
    return JobPage(
        jobs=[JobResponse.model_validate(job) for job in result.scalars().all()],
        total=total,
        total_pages=page_count(total, limit),
        current_page=page,
        has_next_page=page * limit < total,
        has_prev_page=page > 1,
    )


async def job_stats(db: AsyncSession) -> JobStats:
    """Board-wide totals for the landing page."""
    total_jobs = await db.scalar(select(func.count(Job.id)))
    active_jobs = await db.scalar(select(func.count(Job.id)).where(Job.is_active.is_(True)))
    total_applications = await db.scalar(select(func.count(Application.id)))

    count = func.count(Job.id)
    result = await db.execute(
        select(Job.field, count)
        .where(Job.is_active.is_(True))
        .group_by(Job.field)
        .order_by(count.desc(), Job.field)
    )

    return JobStats(
        total_jobs=total_jobs or 0,
        active_jobs=active_jobs or 0,
        total_applications=total_applications or 0,
        fields=[FieldCount(field=field, count=field_count) for field, field_count in result.all()],
    )
