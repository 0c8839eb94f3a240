"""
Pytest fixtures for testing.
"""
import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import AsyncGenerator, List, Tuple

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
os.environ.setdefault("ADMIN_PASSWORD", "admin-password")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")
os.environ.setdefault("UPLOAD_DIR", str(Path(tempfile.gettempdir()) / "jobboard_test_uploads"))

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Import database module BEFORE app to allow override
import jobboard.database
from jobboard.database import Base
# Import ALL models so Base.metadata knows about all tables
from jobboard.models import Application, Job, User, UserRole
from jobboard.services.notifications import NotificationEvent, get_notifier
from jobboard.services.security import create_admin_token, create_session_token, hash_password
from jobboard.services.storage import LocalBlobStore, get_blob_store

# Now import app (after we can override database)
from jobboard.main import app as fastapi_app


# Test database URL (use in-memory SQLite for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "secret123"
# bcrypt is slow, hash once per session
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


class RecordingNotifier:
    """Notification port that keeps every published event."""

    def __init__(self):
        self.published: List[Tuple[NotificationEvent, str]] = []

    async def publish(self, event: NotificationEvent, channel_key: str) -> None:
        self.published.append((event, channel_key))

    def kinds(self, channel_key: str) -> List[str]:
        return [event.kind.value for event, key in self.published if key == channel_key]


def authenticate(client: AsyncClient, user: User) -> AsyncClient:
    """Log the client in as user by setting a signed session cookie."""
    client.cookies.clear()
    client.cookies.set("auth_token", create_session_token(user.id, user.role.value))
    return client


def authenticate_admin(client: AsyncClient) -> AsyncClient:
    client.cookies.clear()
    client.cookies.set("admin_token", create_admin_token("admin@example.com"))
    return client


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database for each test.
    Ensures cleanup happens even if test fails.
    """
    # StaticPool keeps a single connection so every session sees the same in-memory database
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Replace the app's engine and sessionmaker so get_db() uses the test database
    original_engine = jobboard.database.engine
    original_sessionmaker = jobboard.database.AsyncSessionLocal

    jobboard.database.engine = test_engine
    jobboard.database.AsyncSessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )

    # Session for direct test use
    session = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)()

    try:
        yield session
    finally:
        try:
            await session.close()
        except Exception as e:
            print(f"Warning: Failed to close session: {e}")

        try:
            await test_engine.dispose()
        except Exception as e:
            print(f"Warning: Failed to dispose engine: {e}")

        jobboard.database.engine = original_engine
        jobboard.database.AsyncSessionLocal = original_sessionmaker


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Recording notification port, also injected into the app."""
    recording = RecordingNotifier()
    fastapi_app.dependency_overrides[get_notifier] = lambda: recording
    yield recording
    fastapi_app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture
def blob_store(tmp_path: Path) -> LocalBlobStore:
    store = LocalBlobStore(tmp_path, "http://test")
    fastapi_app.dependency_overrides[get_blob_store] = lambda: store
    yield store
    fastapi_app.dependency_overrides.pop(get_blob_store, None)


@pytest_asyncio.fixture
async def async_client(db: AsyncSession, notifier: RecordingNotifier) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing endpoints.

    The db fixture already replaced jobboard.database.AsyncSessionLocal,
    so all endpoints will automatically use the test database.
    """
    transport = ASGITransport(app=fastapi_app)

    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        follow_redirects=True  # Follow 307 redirects for trailing slashes
    ) as client:
        yield client


async def _add_user(db: AsyncSession, **fields) -> User:
    user = User(password_hash=TEST_PASSWORD_HASH, phone="9876543210", **fields)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def student(db: AsyncSession) -> User:
    """Student with a resume on file."""
    return await _add_user(
        db,
        name="Asha Rao",
        email="asha@example.com",
        role=UserRole.STUDENT,
        field="Computer Science",
        graduation_year=2024,
        resume_url="http://test/uploads/resumes/asha.pdf",
        resume_key="resumes/asha.pdf",
        resume_uploaded_at=datetime.utcnow(),
    )


@pytest_asyncio.fixture
async def student_without_resume(db: AsyncSession) -> User:
    return await _add_user(
        db,
        name="Vikram Shah",
        email="vikram@example.com",
        role=UserRole.STUDENT,
        field="BCA",
        graduation_year=2025,
    )


@pytest_asyncio.fixture
async def other_student(db: AsyncSession) -> User:
    return await _add_user(
        db,
        name="Meera Iyer",
        email="meera@example.com",
        role=UserRole.STUDENT,
        field="Computer Science",
        graduation_year=2023,
        resume_url="http://test/uploads/resumes/meera.pdf",
        resume_key="resumes/meera.pdf",
    )


@pytest_asyncio.fixture
async def recruiter(db: AsyncSession) -> User:
    return await _add_user(
        db,
        name="Rahul Mehta",
        email="rahul@acme.example.com",
        role=UserRole.RECRUITER,
        company_name="Acme Corp",
        company_description="Industrial software",
    )


@pytest_asyncio.fixture
async def other_recruiter(db: AsyncSession) -> User:
    return await _add_user(
        db,
        name="Neha Kapoor",
        email="neha@globex.example.com",
        role=UserRole.RECRUITER,
        company_name="Globex",
    )


async def make_job(db: AsyncSession, recruiter: User, **overrides) -> Job:
    fields = dict(
        recruiter_id=recruiter.id,
        company_name=recruiter.company_name,
        title="Backend Engineer",
        description="Build and run our APIs",
        requirements="Python, SQL",
        field="Computer Science",
        location="Bengaluru",
        job_type="Full-time",
        experience="Entry Level",
        salary_min=600000,
        salary_max=900000,
        skills=["Python", "FastAPI"],
        benefits=["Health insurance"],
        application_deadline=datetime.utcnow() + timedelta(days=7),
        is_active=True,
    )
    fields.update(overrides)
    job = Job(**fields)
    db.add(job)
    await db.commit()
    await db.refresh(job)
    return job


@pytest_asyncio.fixture
async def job(db: AsyncSession, recruiter: User) -> Job:
    """Active job owned by the recruiter fixture, deadline in a week."""
    return await make_job(db, recruiter)


async def make_application(db: AsyncSession, job: Job, student: User, status: str = "pending") -> Application:
    """Insert an application directly, bypassing the lifecycle engine."""
    application = Application(
        job_id=job.id,
        student_id=student.id,
        recruiter_id=job.recruiter_id,
        status=status,
        resume_url=student.resume_url,
        resume_key=student.resume_key,
    )
    db.add(application)
    await db.commit()
    await db.refresh(application)
    return application
