"""
Password hashing and session tokens.

Provides:
- Password hashing with bcrypt
- Signed session tokens (JWT) for user and admin cookies
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from jobboard.config import settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ADMIN_ROLE = "admin"
ADMIN_SUBJECT = "admin"

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_session_token(user_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create the signed session token stored in the auth_token cookie."""
    expire = datetime.utcnow() + (expires_delta or timedelta(days=settings.session_ttl_days))
    payload = {"sub": str(user_id), "role": role, "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_session_token(token: str) -> Optional[dict]:
    """Decode and verify a user session token. Returns None when invalid or expired."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if not payload.get("sub") or not payload.get("role"):
        return None
    return payload


def create_admin_token(email: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create the signed token stored in the admin_token cookie."""
    expire = datetime.utcnow() + (expires_delta or timedelta(days=settings.session_ttl_days))
    payload = {"sub": ADMIN_SUBJECT, "email": email, "role": ADMIN_ROLE, "exp": expire}
    return jwt.encode(payload, settings.get_admin_secret(), algorithm=ALGORITHM)


def decode_admin_token(token: str) -> Optional[dict]:
    """Decode an admin token; tokens signed with the user secret are rejected."""
    try:
        payload = jwt.decode(token, settings.get_admin_secret(), algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("role") != ADMIN_ROLE:
        logger.warning("Admin cookie carried a non-admin token")
        return None
    return payload
