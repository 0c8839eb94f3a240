"""
Student endpoints: profile, resume and picture uploads, own applications.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import require_student
from jobboard.database import get_db
from jobboard.models.application import ApplicationStatus
from jobboard.models.user import User
from jobboard.schemas.application import ApplicationPage, ApplicationStats
from jobboard.schemas.profile import StudentProfileUpdate, UploadResponse, UserResponse
from jobboard.services.applications import ApplicationFilters, application_stats, list_applications
from jobboard.services.profile import attach_resume, replace_profile_picture, update_user_profile
from jobboard.services.scoping import Identity
from jobboard.services.storage import BlobStore, get_blob_store, read_image_file, read_resume_file

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/profile", response_model=UserResponse)
async def get_profile(student: User = Depends(require_student)):
    """Get current student's profile."""
    return student


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    profile_data: StudentProfileUpdate,
    student: User = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    """Update student profile information (partial update)."""
    update_data = profile_data.model_dump(exclude_unset=True)
    user = await update_user_profile(student, update_data, db)
    logger.info(f"Profile updated for student {user.email}")
    return user


@router.post("/resume", response_model=UploadResponse)
async def upload_resume(
    file: UploadFile = File(...),
    student: User = Depends(require_student),
    store: BlobStore = Depends(get_blob_store),
    db: AsyncSession = Depends(get_db)
):
    """
    Upload resume file (PDF, DOC or DOCX).

    Replaces the profile's resume; applications already submitted keep theirs.
    Maximum file size: 5MB.
    """
    data = await read_resume_file(file)
    try:
        user = await attach_resume(student, store, file.filename, data, db)
    except Exception as e:
        await db.rollback()
        logger.error(f"Error uploading resume: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload resume")

    logger.info(f"Resume uploaded for student {user.email}")
    return UploadResponse(url=user.resume_url)


@router.post("/profile-picture", response_model=UploadResponse)
async def upload_profile_picture(
    file: UploadFile = File(...),
    student: User = Depends(require_student),
    store: BlobStore = Depends(get_blob_store),
    db: AsyncSession = Depends(get_db)
):
    """Upload a profile picture (any image type, up to 5MB)."""
    data = await read_image_file(file)
    try:
        user = await replace_profile_picture(student, store, file.filename, data, db)
    except Exception as e:
        await db.rollback()
        logger.error(f"Error uploading profile picture: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload profile picture")

    return UploadResponse(url=user.profile_picture_url)


@router.get("/applications", response_model=ApplicationPage)
async def my_applications(
    status: Optional[ApplicationStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    student: User = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    """The student's own applications, newest first."""
    filters = ApplicationFilters(status=status, page=page, limit=limit)
    return await list_applications(db, Identity.for_user(student), filters)


@router.get("/dashboard", response_model=ApplicationStats)
async def dashboard(
    student: User = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    """Status counts over the student's applications."""
    return await application_stats(db, Identity.for_user(student))
