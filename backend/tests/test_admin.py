"""
Tests for the admin session and moderation endpoints.
"""
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.models.job import Job
from jobboard.models.user import User

from conftest import TEST_PASSWORD, authenticate, authenticate_admin, make_application, make_job


@pytest.mark.asyncio
async def test_admin_login(async_client: AsyncClient):
    response = await async_client.post(
        "/api/admin/login", json={"email": "Admin@Example.com", "password": "admin-password"}
    )

    assert response.status_code == 200
    assert response.json() == {"email": "admin@example.com", "role": "admin"}
    assert "admin_token" in response.cookies

    me = await async_client.get("/api/admin/me")
    assert me.status_code == 200
    assert me.json()["email"] == "admin@example.com"


@pytest.mark.asyncio
async def test_admin_login_bad_credentials(async_client: AsyncClient):
    response = await async_client.post(
        "/api/admin/login", json={"email": "admin@example.com", "password": "wrong"}
    )

    assert response.status_code == 401
    assert "admin_token" not in response.cookies


@pytest.mark.asyncio
async def test_admin_routes_need_admin_cookie(async_client: AsyncClient, student: User):
    assert (await async_client.get("/api/admin/users")).status_code == 401

    # A user session is not an admin session
    authenticate(async_client, student)
    assert (await async_client.get("/api/admin/users")).status_code == 401


@pytest.mark.asyncio
async def test_list_users(async_client: AsyncClient, student: User, other_student: User, recruiter: User):
    authenticate_admin(async_client)

    everyone = await async_client.get("/api/admin/users")
    assert everyone.json()["total"] == 3

    recruiters = await async_client.get("/api/admin/users", params={"role": "recruiter"})
    assert [item["email"] for item in recruiters.json()["items"]] == [recruiter.email]

    search = await async_client.get("/api/admin/users", params={"q": "meera"})
    assert [item["name"] for item in search.json()["items"]] == ["Meera Iyer"]


@pytest.mark.asyncio
async def test_deactivated_user_cannot_log_in(async_client: AsyncClient, student: User):
    authenticate_admin(async_client)

    response = await async_client.patch(f"/api/admin/users/{student.id}/toggle")
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    async_client.cookies.clear()
    login = await async_client.post(
        "/api/auth/login", json={"email": student.email, "password": TEST_PASSWORD, "role": "student"}
    )
    assert login.status_code == 401

    authenticate_admin(async_client)
    response = await async_client.patch(f"/api/admin/users/{student.id}/toggle")
    assert response.json()["is_active"] is True


@pytest.mark.asyncio
async def test_toggle_unknown_user(async_client: AsyncClient):
    authenticate_admin(async_client)

    response = await async_client.patch(f"/api/admin/users/{uuid.uuid4()}/toggle")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_jobs_includes_inactive(async_client: AsyncClient, db: AsyncSession, job: Job, recruiter: User):
    await make_job(db, recruiter, title="Paused role", is_active=False)
    authenticate_admin(async_client)

    everything = await async_client.get("/api/admin/jobs")
    assert everything.json()["total"] == 2

    inactive = await async_client.get("/api/admin/jobs", params={"active": "false"})
    assert [item["title"] for item in inactive.json()["items"]] == ["Paused role"]


@pytest.mark.asyncio
async def test_admin_toggles_any_job(async_client: AsyncClient, job: Job):
    authenticate_admin(async_client)

    response = await async_client.patch(f"/api/admin/jobs/{job.id}/toggle")

    assert response.status_code == 200
    assert response.json()["is_active"] is False


@pytest.mark.asyncio
async def test_list_applications(
    async_client: AsyncClient, db: AsyncSession, job: Job, student: User, other_student: User
):
    await make_application(db, job, student)
    await make_application(db, job, other_student, status="rejected")
    authenticate_admin(async_client)

    response = await async_client.get("/api/admin/applications", params={"status": "rejected"})

    data = response.json()
    assert data["total"] == 1
    assert data["pages"] == 1
    assert data["items"][0]["student"]["name"] == "Meera Iyer"


@pytest.mark.asyncio
async def test_status_override(
    async_client: AsyncClient, db: AsyncSession, job: Job, student: User, recruiter: User, notifier
):
    application = await make_application(db, job, student, status="rejected")
    authenticate_admin(async_client)

    response = await async_client.patch(
        f"/api/admin/applications/{application.id}/status", json={"status": "accepted"}
    )

    assert response.status_code == 200
    assert response.json()["status"] == "accepted"

    await db.refresh(job)
    assert job.accepted_applications == 1
    assert job.rejected_applications == 0
    assert notifier.kinds(f"student-{student.id}") == ["application-updated"]
    assert notifier.kinds(f"recruiter-{recruiter.id}") == ["application-updated"]


@pytest.mark.asyncio
async def test_admin_logout(async_client: AsyncClient):
    authenticate_admin(async_client)

    response = await async_client.post("/api/admin/logout")

    assert response.status_code == 200
    assert "admin_token=" in response.headers.get("set-cookie", "")
