"""
Jobs API endpoints.
Public browsing of active postings and the student apply action.
"""
import logging
from typing import List, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import get_optional_identity, require_student
from jobboard.database import get_db
from jobboard.models.job import JobField
from jobboard.models.user import User
from jobboard.schemas.application import ApplicationDetail, ApplyRequest
from jobboard.schemas.job import JobDetailResponse, JobPage, JobResponse, JobStats
from jobboard.services.jobs import JobFilters, get_visible_job, job_stats, jobs_by_field, list_jobs, popular_jobs
from jobboard.services.lifecycle import apply_to_job
from jobboard.services.notifications import NotificationPort, get_notifier
from jobboard.services.scoping import Identity

# Configure logger
logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=JobPage)
async def browse_jobs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    field: Optional[str] = Query(None, description="JobField value or 'all'"),
    type: Optional[str] = Query(None, description="JobType value or 'all'"),
    experience: Optional[str] = Query(None, description="ExperienceLevel value or 'all'"),
    location: Optional[str] = Query(None, description="Partial, case-insensitive match"),
    search: Optional[str] = Query(None, description="Title, description, company or skills"),
    sort_by: Literal[
        "created_at", "application_deadline", "views", "total_applications", "salary_min", "salary_max", "title"
    ] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    identity: Identity = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db)
):
    """
    List active job postings with optional filtering.
    Returns paginated results.
    """
    filters = JobFilters(
        field=field,
        job_type=type,
        experience=experience,
        location=location,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    result = await list_jobs(db, identity, filters)

    logger.info(f"Listed {len(result.jobs)} of {result.total} jobs (field={field}, search={search})")
    return result


@router.get("/popular", response_model=List[JobResponse])
async def get_popular_jobs(db: AsyncSession = Depends(get_db)):
    """The six most viewed active postings."""
    return await popular_jobs(db)


@router.get("/stats/overview", response_model=JobStats)
async def get_job_stats(db: AsyncSession = Depends(get_db)):
    """Total and active postings, total applications, and active postings per field."""
    return await job_stats(db)


@router.get("/field/{field}", response_model=JobPage)
async def get_jobs_by_field(
    field: JobField,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    return await jobs_by_field(db, field.value, page, limit)


@router.get("/{job_id}", response_model=JobDetailResponse)
async def get_job(
    job_id: UUID,
    identity: Identity = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db)
):
    """
    Get a specific job posting by ID.

    Inactive postings are only visible to their owner and the admin.
    """
    return await get_visible_job(db, job_id, identity)


@router.post("/{job_id}/apply", response_model=ApplicationDetail, status_code=201)
async def apply(
    job_id: UUID,
    payload: Optional[ApplyRequest] = None,
    student: User = Depends(require_student),
    notifier: NotificationPort = Depends(get_notifier),
    db: AsyncSession = Depends(get_db)
):
    """
    Apply to a job as the logged-in student.

    Returns:
        201: Application created (pending)
        400: Job inactive, deadline passed, or no resume on file
        404: Job not found
        409: Already applied
    """
    cover_letter = payload.cover_letter if payload else None
    return await apply_to_job(db, job_id, student, notifier, cover_letter=cover_letter)
