"""Profile management business logic."""
import logging
from datetime import datetime
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.models.user import User
from jobboard.services.storage import BlobStore

logger = logging.getLogger(__name__)


async def update_user_profile(user: User, update_data: dict, db: AsyncSession) -> User:
    """Update profile fields (partial update, enums stored by value)."""
    for field, value in update_data.items():
        if value is None:
            continue
        setattr(user, field, value.value if hasattr(value, "value") else value)

    user.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(user)
    return user


async def attach_resume(user: User, store: BlobStore, filename: str, data: bytes, db: AsyncSession) -> User:
    """
    Store a new resume and point the profile at it.

    The previous blob is kept: submitted applications still reference their
    own snapshot of it.
    """
    blob = await run_in_threadpool(store.upload, f"resumes/{user.id}", filename, data)
    user.resume_url = blob.url
    user.resume_key = blob.key
    user.resume_uploaded_at = datetime.utcnow()
    user.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(user)
    return user


async def _replace_image(
    user: User,
    store: BlobStore,
    folder: str,
    filename: str,
    data: bytes,
    url_attr: str,
    key_attr: str,
    db: AsyncSession,
) -> User:
    old_key: Optional[str] = getattr(user, key_attr)
    blob = await run_in_threadpool(store.upload, folder, filename, data)
    setattr(user, url_attr, blob.url)
    setattr(user, key_attr, blob.key)
    user.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(user)

    # Only drop the old image once the new reference is committed
    if old_key:
        await run_in_threadpool(store.delete, old_key)
    return user


async def replace_profile_picture(user: User, store: BlobStore, filename: str, data: bytes, db: AsyncSession) -> User:
    return await _replace_image(
        user, store, "profiles", filename, data, "profile_picture_url", "profile_picture_key", db
    )


async def replace_company_logo(user: User, store: BlobStore, filename: str, data: bytes, db: AsyncSession) -> User:
    return await _replace_image(
        user, store, "logos", filename, data, "company_logo_url", "company_logo_key", db
    )
