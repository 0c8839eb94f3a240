"""
Admin moderation endpoints.

The admin session is a separate credential (static email/password from
settings, `admin_token` cookie), not a user role.
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import ADMIN_COOKIE, clear_session_cookie, require_admin, set_session_cookie
from jobboard.database import get_db
from jobboard.models.application import ApplicationStatus
from jobboard.models.user import UserRole
from jobboard.schemas.admin import AdminApplicationPage, AdminJobPage, AdminUserPage
from jobboard.schemas.application import ApplicationDetail, StatusOverrideRequest
from jobboard.schemas.auth import AdminLoginRequest, AdminResponse
from jobboard.schemas.job import JobResponse
from jobboard.schemas.profile import UserResponse
from jobboard.services.admin import check_admin_credentials, list_all_jobs, list_users, toggle_user
from jobboard.services.applications import ApplicationFilters, list_applications
from jobboard.services.jobs import toggle_job
from jobboard.services.lifecycle import override_application_status
from jobboard.services.notifications import NotificationPort, get_notifier
from jobboard.services.pagination import page_count
from jobboard.services.scoping import Identity
from jobboard.services.security import create_admin_token

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=AdminResponse)
async def admin_login(request: AdminLoginRequest, response: Response):
    """
    Log in with the configured admin credentials.

    Returns:
        200: Admin cookie set
        401: Invalid admin credentials
    """
    if not check_admin_credentials(request.email, request.password):
        logger.warning(f"Failed admin login for {request.email}")
        raise HTTPException(status_code=401, detail="Invalid admin credentials")

    set_session_cookie(response, ADMIN_COOKIE, create_admin_token(request.email.strip().lower()))
    logger.info("Admin logged in")
    return AdminResponse(email=request.email.strip().lower())


@router.post("/logout")
async def admin_logout(response: Response, admin: Identity = Depends(require_admin)):
    clear_session_cookie(response, ADMIN_COOKIE)
    return {"message": "Successfully logged out"}


@router.get("/me", response_model=AdminResponse)
async def admin_me(admin: Identity = Depends(require_admin)):
    return AdminResponse(email=admin.email)


# ============================================================
# USERS
# ============================================================

@router.get("/users", response_model=AdminUserPage)
async def users(
    role: Optional[UserRole] = Query(None),
    q: Optional[str] = Query(None, description="Name, email or phone"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    items, total = await list_users(db, role, q, page, limit)
    return AdminUserPage(
        items=[UserResponse.model_validate(user) for user in items],
        total=total,
        page=page,
        pages=page_count(total, limit),
    )


@router.patch("/users/{user_id}/toggle", response_model=UserResponse)
async def toggle_user_status(
    user_id: UUID,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Activate or deactivate an account."""
    return await toggle_user(db, user_id)


# ============================================================
# JOBS
# ============================================================

@router.get("/jobs", response_model=AdminJobPage)
async def jobs(
    active: Optional[bool] = Query(None),
    q: Optional[str] = Query(None, description="Title or company"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    items, total = await list_all_jobs(db, active, q, page, limit)
    return AdminJobPage(
        items=[JobResponse.model_validate(job) for job in items],
        total=total,
        page=page,
        pages=page_count(total, limit),
    )


@router.patch("/jobs/{job_id}/toggle", response_model=JobResponse)
async def toggle_job_status(
    job_id: UUID,
    admin: Identity = Depends(require_admin),
    notifier: NotificationPort = Depends(get_notifier),
    db: AsyncSession = Depends(get_db)
):
    return await toggle_job(db, job_id, admin, notifier)


# ============================================================
# APPLICATIONS
# ============================================================

@router.get("/applications", response_model=AdminApplicationPage)
async def applications(
    status: Optional[ApplicationStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    result = await list_applications(db, admin, ApplicationFilters(status=status, page=page, limit=limit))
    return AdminApplicationPage(
        items=result.applications,
        total=result.total,
        page=result.current_page,
        pages=result.total_pages,
    )


@router.patch("/applications/{application_id}/status", response_model=ApplicationDetail)
async def override_status(
    application_id: UUID,
    request: StatusOverrideRequest,
    admin: Identity = Depends(require_admin),
    notifier: NotificationPort = Depends(get_notifier),
    db: AsyncSession = Depends(get_db)
):
    """
    Set an application's status, bypassing the transition rules.

    Counters are recomputed and both the student and the recruiter are notified.
    """
    return await override_application_status(db, application_id, request.status, notifier)
