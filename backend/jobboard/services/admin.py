"""
Admin moderation queries.

The admin reads everything and flips activation flags; it never creates or
deletes users, jobs or applications.
"""
import logging
import secrets
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.config import settings
from jobboard.models.job import Job
from jobboard.models.user import User, UserRole
from jobboard.services.errors import NotFoundError
from jobboard.services.pagination import page_offset

logger = logging.getLogger(__name__)


def check_admin_credentials(email: str, password: str) -> bool:
    """Compare against the configured static admin credentials."""
    email_ok = secrets.compare_digest(email.strip().lower().encode(), settings.admin_email.lower().encode())
    password_ok = secrets.compare_digest(password.encode(), settings.admin_password.encode())
    return email_ok and password_ok


async def list_users(
    db: AsyncSession,
    role: Optional[UserRole] = None,
    q: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[User], int]:
    conditions = []
    if role is not None:
        conditions.append(User.role == role)
    if q:
        pattern = f"%{q}%"
        conditions.append(or_(User.name.ilike(pattern), User.email.ilike(pattern), User.phone.ilike(pattern)))

    total = await db.scalar(select(func.count(User.id)).where(*conditions)) or 0
    result = await db.execute(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def toggle_user(db: AsyncSession, user_id: UUID) -> User:
    """Flip a user's active flag; deactivated users cannot log in."""
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    user.is_active = not user.is_active
    await db.commit()
    await db.refresh(user)

    logger.warning(f"Admin {'activated' if user.is_active else 'deactivated'} user {user.email}")
    return user


async def list_all_jobs(
    db: AsyncSession,
    active: Optional[bool] = None,
    q: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[Job], int]:
    """Every posting, active or not, newest first."""
    conditions = []
    if active is not None:
        conditions.append(Job.is_active.is_(active))
    if q:
        pattern = f"%{q}%"
        conditions.append(or_(Job.title.ilike(pattern), Job.company_name.ilike(pattern)))

    total = await db.scalar(select(func.count(Job.id)).where(*conditions)) or 0
    result = await db.execute(
        select(Job)
        .where(*conditions)
        .order_by(Job.created_at.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
    )
    return list(result.scalars().all()), total
