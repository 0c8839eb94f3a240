"""
Application endpoints shared by students, recruiters and the admin.

Listing and stats are scoped to the caller; static paths are declared
before /{application_id} so they are not captured by it.
"""
import logging
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import get_current_identity, require_recruiter, require_student
from jobboard.database import get_db
from jobboard.models.application import ApplicationStatus
from jobboard.models.user import User
from jobboard.schemas.application import (
    ApplicationDetail,
    ApplicationPage,
    ApplicationStats,
    BulkUpdateRequest,
    BulkUpdateResponse,
)
from jobboard.services.applications import ApplicationFilters, application_stats, get_application, list_applications
from jobboard.services.lifecycle import bulk_update_applications, withdraw_application
from jobboard.services.notifications import NotificationPort, get_notifier
from jobboard.services.scoping import Identity

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=ApplicationPage)
async def search_applications(
    status: Optional[ApplicationStatus] = Query(None),
    job_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None, description="Job title/company for students, student name/field for recruiters"),
    sort: Literal["newest", "oldest"] = Query("newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """List the applications visible to the caller."""
    filters = ApplicationFilters(status=status, job_id=job_id, search=search, sort=sort, page=page, limit=limit)
    return await list_applications(db, identity, filters)


@router.get("/stats/overview", response_model=ApplicationStats)
async def stats_overview(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    return await application_stats(db, identity)


@router.put("/bulk-update", response_model=BulkUpdateResponse)
async def bulk_update(
    request: BulkUpdateRequest,
    recruiter: User = Depends(require_recruiter),
    notifier: NotificationPort = Depends(get_notifier),
    db: AsyncSession = Depends(get_db)
):
    """
    Move several applications to the same status.

    All or nothing: any unknown, foreign or non-pending application rejects
    the whole request.
    """
    updated = await bulk_update_applications(
        db,
        request.application_ids,
        recruiter,
        request.status,
        notifier,
        recruiter_notes=request.recruiter_notes,
    )
    return BulkUpdateResponse(updated=updated, message=f"{updated} applications updated successfully")


@router.get("/{application_id}", response_model=ApplicationDetail)
async def read_application(
    application_id: UUID,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """
    Get one application.

    Returns:
        200: Caller is its student, its recruiter or the admin
        403: Application belongs to someone else
        404: Application not found
    """
    return await get_application(db, identity, application_id)


@router.put("/{application_id}/withdraw", response_model=ApplicationDetail)
async def withdraw(
    application_id: UUID,
    student: User = Depends(require_student),
    notifier: NotificationPort = Depends(get_notifier),
    db: AsyncSession = Depends(get_db)
):
    """Withdraw a pending application."""
    return await withdraw_application(db, application_id, student, notifier)
