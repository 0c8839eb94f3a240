"""
Read side of applications.

Every list and count here starts from scope_for(identity); single fetches
go through ensure_application_access. Status changes live in lifecycle.py.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy import extract, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from jobboard.models.application import Application, ApplicationStatus
from jobboard.models.job import Job
from jobboard.models.user import User
from jobboard.schemas.application import (
    ApplicationDetail,
    ApplicationPage,
    ApplicationStats,
    MonthCount,
    RecruiterDashboard,
    StatusCount,
)
from jobboard.services.lifecycle import load_application
from jobboard.services.pagination import page_count, page_offset
from jobboard.services.scoping import Identity, ensure_application_access, ensure_job_owner, owned_jobs_scope, scope_for

logger = logging.getLogger(__name__)

STATS_MONTHS = 12

_WITH_RELATIONS = (
    selectinload(Application.job),
    selectinload(Application.student),
    selectinload(Application.recruiter),
)


@dataclass
class ApplicationFilters:
    status: Optional[ApplicationStatus] = None
    job_id: Optional[UUID] = None
    search: Optional[str] = None
    sort: str = "newest"
    page: int = 1
    limit: int = 10


def _search_condition(query, identity: Identity, search: str):
    """
    Free-text search, per role:
    students search job title and company, recruiters search student name
    and field, the admin searches both.
    """
    pattern = f"%{search}%"
    job_terms = [Job.title.ilike(pattern), Job.company_name.ilike(pattern)]
    student_terms = [User.name.ilike(pattern), User.field.ilike(pattern)]

    if identity.is_student:
        return query.outerjoin(Job, Application.job_id == Job.id).where(or_(*job_terms))
    if identity.is_recruiter:
        return query.join(User, Application.student_id == User.id).where(or_(*student_terms))
    return (
        query.outerjoin(Job, Application.job_id == Job.id)
        .join(User, Application.student_id == User.id)
        .where(or_(*job_terms, *student_terms))
    )


async def list_applications(db: AsyncSession, identity: Identity, filters: ApplicationFilters) -> ApplicationPage:
    """Page of applications visible to the caller, job/student/recruiter populated."""
    query = select(Application).where(scope_for(identity))
    if filters.status is not None:
        query = query.where(Application.status == filters.status.value)
    if filters.job_id is not None:
        query = query.where(Application.job_id == filters.job_id)
    if filters.search:
        query = _search_condition(query, identity, filters.search)

    total = await db.scalar(select(func.count()).select_from(query.subquery())) or 0

    order = Application.applied_at.asc() if filters.sort == "oldest" else Application.applied_at.desc()
    result = await db.execute(
        query.options(*_WITH_RELATIONS)
        .order_by(order, Application.id)
        .offset(page_offset(filters.page, filters.limit))
        .limit(filters.limit)
    )
    applications = result.scalars().all()

    return ApplicationPage(
        applications=[ApplicationDetail.model_validate(application) for application in applications],
        total=total,
        total_pages=page_count(total, filters.limit),
        current_page=filters.page,
    )


async def get_application(db: AsyncSession, identity: Identity, application_id: UUID) -> Application:
    """
    Single fetch by id with an explicit ownership check.

    Raises:
        NotFoundError: no such application
        ForbiddenError: it belongs to someone else
    """
    application = await load_application(db, application_id)
    return ensure_application_access(identity, application, application_id)


async def list_job_applications(
    db: AsyncSession,
    identity: Identity,
    job_id: UUID,
    status: Optional[ApplicationStatus] = None,
) -> List[Application]:
    """All applications of a job, for its owner."""
    ensure_job_owner(identity, await db.get(Job, job_id), job_id)

    query = select(Application).where(Application.job_id == job_id, scope_for(identity))
    if status is not None:
        query = query.where(Application.status == status.value)

    result = await db.execute(query.options(*_WITH_RELATIONS).order_by(Application.applied_at.desc()))
    return list(result.scalars().all())


async def application_stats(db: AsyncSession, identity: Identity) -> ApplicationStats:
    """
    Counts over the caller's visible applications.

    Besides the per-status totals this returns the status breakdown (largest
    first) and applications per calendar month of applied_at, for the most
    recent STATS_MONTHS months with any applications, oldest first.
    """
    result = await db.execute(
        select(Application.status, func.count(Application.id))
        .where(scope_for(identity))
        .group_by(Application.status)
    )
    counts = {status: count for status, count in result.all()}

    year = extract("year", Application.applied_at)
    month = extract("month", Application.applied_at)
    result = await db.execute(
        select(year, month, func.count(Application.id))
        .where(scope_for(identity))
        .group_by(year, month)
        .order_by(year.desc(), month.desc())
        .limit(STATS_MONTHS)
    )
    by_month = [MonthCount(year=int(y), month=int(m), count=count) for y, m, count in result.all()]
    by_month.reverse()

    return ApplicationStats(
        total_applications=sum(counts.values()),
        pending_applications=counts.get(ApplicationStatus.PENDING.value, 0),
        accepted_applications=counts.get(ApplicationStatus.ACCEPTED.value, 0),
        rejected_applications=counts.get(ApplicationStatus.REJECTED.value, 0),
        withdrawn_applications=counts.get(ApplicationStatus.WITHDRAWN.value, 0),
        applications_by_status=[
            StatusCount(status=status, count=count)
            for status, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        ],
        applications_by_month=by_month,
    )


async def recruiter_dashboard(db: AsyncSession, identity: Identity) -> RecruiterDashboard:
    total_jobs = await db.scalar(select(func.count(Job.id)).where(owned_jobs_scope(identity)))
    active_jobs = await db.scalar(
        select(func.count(Job.id)).where(owned_jobs_scope(identity), Job.is_active.is_(True))
    )
    stats = await application_stats(db, identity)

    return RecruiterDashboard(
        total_jobs=total_jobs or 0,
        active_jobs=active_jobs or 0,
        total_applications=stats.total_applications,
        pending_applications=stats.pending_applications,
    )
