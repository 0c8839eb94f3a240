"""
Authentication endpoints and request identity dependencies.

Students and recruiters authenticate with email + password + role and get a
signed session token in the httpOnly `auth_token` cookie. The admin is not a
user account: it logs in through /api/admin/login and carries a separate
`admin_token` cookie.
"""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.config import settings
from jobboard.database import get_db
from jobboard.models.user import User, UserRole
from jobboard.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from jobboard.schemas.profile import UserResponse
from jobboard.services.scoping import Identity
from jobboard.services.security import (
    create_session_token,
    decode_admin_token,
    decode_session_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)
router = APIRouter()

AUTH_COOKIE = "auth_token"
ADMIN_COOKIE = "admin_token"


def set_session_cookie(response: Response, key: str, token: str) -> None:
    response.set_cookie(
        key=key,
        value=token,
        httponly=True,  # Prevents JavaScript access (XSS protection)
        samesite="lax",  # CSRF protection
        max_age=86400 * settings.session_ttl_days,
        secure=settings.cookie_secure,
    )


def clear_session_cookie(response: Response, key: str) -> None:
    response.delete_cookie(key=key, httponly=True, samesite="lax")


# Authentication Dependencies
async def get_current_user(
    auth_token: Optional[str] = Cookie(None),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Dependency to get the authenticated student or recruiter from the session cookie.

    Raises:
        HTTPException 401: Missing, invalid or expired token, unknown user,
            or deactivated account
    """
    if not auth_token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = decode_session_token(auth_token)
    if payload is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user = await db.get(User, user_id)
    if user is None or user.role.value != payload["role"]:
        raise HTTPException(status_code=401, detail="Invalid token. User not found.")

    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account is deactivated")

    return user


async def get_current_identity(
    auth_token: Optional[str] = Cookie(None),
    admin_token: Optional[str] = Cookie(None),
    db: AsyncSession = Depends(get_db)
) -> Identity:
    """Resolve the caller to an admin, student or recruiter identity, or fail with 401."""
    if admin_token:
        payload = decode_admin_token(admin_token)
        if payload is not None:
            return Identity.admin(payload.get("email"))

    user = await get_current_user(auth_token=auth_token, db=db)
    return Identity.for_user(user)


async def get_optional_identity(
    auth_token: Optional[str] = Cookie(None),
    admin_token: Optional[str] = Cookie(None),
    db: AsyncSession = Depends(get_db)
) -> Identity:
    """Like get_current_identity, but unauthenticated callers become anonymous."""
    try:
        return await get_current_identity(auth_token=auth_token, admin_token=admin_token, db=db)
    except HTTPException:
        return Identity.anonymous()


async def require_student(current_user: User = Depends(get_current_user)) -> User:
    """
    Dependency to require the student role.

    Raises:
        HTTPException 403: If user is not a student
    """
    if not current_user.is_student():
        logger.warning(f"User {current_user.email} (role={current_user.role.value}) attempted a student-only action")
        raise HTTPException(status_code=403, detail="Student access required")
    return current_user


async def require_recruiter(current_user: User = Depends(get_current_user)) -> User:
    """
    Dependency to require the recruiter role.

    Raises:
        HTTPException 403: If user is not a recruiter
    """
    if not current_user.is_recruiter():
        logger.warning(f"User {current_user.email} (role={current_user.role.value}) attempted a recruiter-only action")
        raise HTTPException(status_code=403, detail="Recruiter access required")
    return current_user


async def require_admin(admin_token: Optional[str] = Cookie(None)) -> Identity:
    """
    Dependency to require the admin credential.

    Raises:
        HTTPException 401: If the admin cookie is missing or invalid
    """
    if not admin_token:
        raise HTTPException(status_code=401, detail="Not authorized: admin token missing")

    payload = decode_admin_token(admin_token)
    if payload is None:
        raise HTTPException(status_code=401, detail="Admin token is not valid")

    return Identity.admin(payload.get("email"))


# Endpoints
@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    request: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a student or recruiter and start a session.

    Returns:
        201: Account created, session cookie set
        409: Email already registered
        422: Missing role-specific fields
    """
    result = await db.execute(select(User).where(User.email == request.email))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(status_code=409, detail="User already exists with this email")

    user = User(
        name=request.name,
        email=request.email,
        password_hash=await run_in_threadpool(hash_password, request.password),
        phone=request.phone,
        role=request.role,
        last_login_at=datetime.utcnow(),
    )
    if request.role == UserRole.STUDENT:
        user.field = request.field.value
        user.graduation_year = request.graduation_year
    else:
        user.company_name = request.company_name
        user.company_description = request.company_description

    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration of the same email
        await db.rollback()
        logger.info(f"Duplicate registration for {request.email}")
        raise HTTPException(status_code=409, detail="User already exists with this email")
    await db.refresh(user)

    logger.info(f"Registered {user.role.value} {user.email}")

    token = create_session_token(user.id, user.role.value)
    set_session_cookie(response, AUTH_COOKIE, token)
    return AuthResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """
    Log in with email, password and role.

    Returns:
        200: Authenticated, session cookie set
        401: Invalid credentials or deactivated account
    """
    result = await db.execute(
        select(User).where(User.email == request.email, User.role == request.role)
    )
    user = result.scalar_one_or_none()

    if user is None or not await run_in_threadpool(verify_password, request.password, user.password_hash):
        logger.warning(f"Failed login for {request.email} as {request.role.value}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account is deactivated")

    user.last_login_at = datetime.utcnow()
    await db.commit()
    await db.refresh(user)

    logger.info(f"Successful login: {user.email} ({user.role.value})")

    token = create_session_token(user.id, user.role.value)
    set_session_cookie(response, AUTH_COOKIE, token)
    return AuthResponse(access_token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    """Get the logged-in user."""
    return current_user


@router.post("/logout")
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user)
):
    """
    Logout user by clearing the authentication cookie.

    Returns:
        200: Successfully logged out
    """
    clear_session_cookie(response, AUTH_COOKIE)

    logger.info(f"User logged out: {current_user.email}")

    return {"message": "Successfully logged out"}
