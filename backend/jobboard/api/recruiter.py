"""
Recruiter endpoints: company profile, job management and application review.
"""
import logging
from typing import List, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import require_recruiter
from jobboard.database import get_db
from jobboard.models.application import ApplicationStatus
from jobboard.models.user import User
from jobboard.schemas.application import (
    ApplicationDetail,
    ApplicationUpdateRequest,
    RecruiterDashboard,
)
from jobboard.schemas.job import JobCreate, JobPage, JobResponse, JobUpdate
from jobboard.schemas.profile import RecruiterProfileUpdate, UploadResponse, UserResponse
from jobboard.services.applications import list_job_applications, recruiter_dashboard
from jobboard.services.jobs import create_job, delete_job, list_owned_jobs, to_naive_utc, toggle_job, update_job
from jobboard.services.lifecycle import update_application
from jobboard.services.notifications import NotificationPort, get_notifier
from jobboard.services.pagination import page_count
from jobboard.services.profile import replace_company_logo, replace_profile_picture, update_user_profile
from jobboard.services.scoping import Identity
from jobboard.services.storage import BlobStore, get_blob_store, read_image_file

logger = logging.getLogger(__name__)
router = APIRouter()


# ============================================================
# PROFILE
# ============================================================

@router.get("/profile", response_model=UserResponse)
async def get_profile(recruiter: User = Depends(require_recruiter)):
    return recruiter


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    profile_data: RecruiterProfileUpdate,
    recruiter: User = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db)
):
    """Update recruiter profile information (partial update)."""
    update_data = profile_data.model_dump(exclude_unset=True)
    user = await update_user_profile(recruiter, update_data, db)
    logger.info(f"Profile updated for recruiter {user.email}")
    return user


@router.post("/company-logo", response_model=UploadResponse)
async def upload_company_logo(
    file: UploadFile = File(...),
    recruiter: User = Depends(require_recruiter),
    store: BlobStore = Depends(get_blob_store),
    db: AsyncSession = Depends(get_db)
):
    """Upload the company logo; the previous logo is deleted."""
    data = await read_image_file(file)
    try:
        user = await replace_company_logo(recruiter, store, file.filename, data, db)
    except Exception as e:
        await db.rollback()
        logger.error(f"Error uploading company logo: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload company logo")

    return UploadResponse(url=user.company_logo_url)


@router.post("/profile-picture", response_model=UploadResponse)
async def upload_profile_picture(
    file: UploadFile = File(...),
    recruiter: User = Depends(require_recruiter),
    store: BlobStore = Depends(get_blob_store),
    db: AsyncSession = Depends(get_db)
):
    data = await read_image_file(file)
    try:
        user = await replace_profile_picture(recruiter, store, file.filename, data, db)
    except Exception as e:
        await db.rollback()
        logger.error(f"Error uploading profile picture: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload profile picture")

    return UploadResponse(url=user.profile_picture_url)


# ============================================================
# JOBS
# ============================================================

@router.post("/jobs", response_model=JobResponse, status_code=201)
async def post_job(
    job: JobCreate,
    recruiter: User = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db)
):
    """Create a new job posting owned by the logged-in recruiter."""
    return await create_job(db, recruiter, job)


@router.get("/jobs", response_model=JobPage)
async def my_jobs(
    status: Optional[Literal["all", "active", "inactive"]] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    recruiter: User = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db)
):
    """The recruiter's own postings, active and inactive, newest first."""
    jobs, total = await list_owned_jobs(db, Identity.for_user(recruiter), status, page, limit)
    return JobPage(
        jobs=[JobResponse.model_validate(job) for job in jobs],
        total=total,
        total_pages=page_count(total, limit),
        current_page=page,
        has_next_page=page * limit < total,
        has_prev_page=page > 1,
    )


@router.put("/jobs/{job_id}", response_model=JobResponse)
async def edit_job(
    job_id: UUID,
    changes: JobUpdate,
    recruiter: User = Depends(require_recruiter),
    notifier: NotificationPort = Depends(get_notifier),
    db: AsyncSession = Depends(get_db)
):
    """
    Edit an owned posting (partial update).

    Returns:
        200: Updated posting
        403: Posting belongs to another recruiter
        404: Posting not found
        422: Salary range would be inverted
    """
    return await update_job(
        db, job_id, Identity.for_user(recruiter), changes.model_dump(exclude_unset=True), notifier
    )


@router.delete("/jobs/{job_id}")
async def remove_job(
    job_id: UUID,
    recruiter: User = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db)
):
    """Delete an owned posting. Its applications are kept with the job reference cleared."""
    await delete_job(db, job_id, Identity.for_user(recruiter))
    return {"success": True, "message": "Job deleted successfully"}


@router.patch("/jobs/{job_id}/toggle", response_model=JobResponse)
async def toggle_job_status(
    job_id: UUID,
    recruiter: User = Depends(require_recruiter),
    notifier: NotificationPort = Depends(get_notifier),
    db: AsyncSession = Depends(get_db)
):
    return await toggle_job(db, job_id, Identity.for_user(recruiter), notifier)


@router.get("/jobs/{job_id}/applications", response_model=List[ApplicationDetail])
async def job_applications(
    job_id: UUID,
    status: Optional[ApplicationStatus] = Query(None),
    recruiter: User = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db)
):
    """All applications to one of the recruiter's postings."""
    return await list_job_applications(db, Identity.for_user(recruiter), job_id, status)


# ============================================================
# APPLICATION REVIEW
# ============================================================

@router.put("/applications/{application_id}", response_model=ApplicationDetail)
async def review_application(
    application_id: UUID,
    review: ApplicationUpdateRequest,
    recruiter: User = Depends(require_recruiter),
    notifier: NotificationPort = Depends(get_notifier),
    db: AsyncSession = Depends(get_db)
):
    """
    Accept or reject a pending application.

    Returns:
        200: Application updated, student notified
        403: Application belongs to another recruiter's job
        404: Application (or its job) not found
        409: Application is no longer pending, or the status is not accepted/rejected
    """
    interview = review.model_dump(
        include={"interview_date", "interview_location", "interview_type"}, exclude_unset=True
    )
    if interview.get("interview_date") is not None:
        interview["interview_date"] = to_naive_utc(interview["interview_date"])
    return await update_application(
        db,
        application_id,
        recruiter,
        review.status,
        notifier,
        recruiter_notes=review.recruiter_notes,
        interview=interview,
    )


@router.get("/dashboard", response_model=RecruiterDashboard)
async def dashboard(
    recruiter: User = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db)
):
    return await recruiter_dashboard(db, Identity.for_user(recruiter))
