"""
Tests for the application lifecycle engine.

Validates:
- apply preconditions and their order
- Deadline boundary (the deadline instant itself is still open)
- Withdraw only from pending
- Recruiter review and ownership checks
- Bulk updates are all-or-nothing
- Duplicate applies caught by the unique constraint
- Counter recompute and notification failures never undo a committed write
- Admin override
"""
import uuid
from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select

from jobboard.models.application import Application, ApplicationStatus
from jobboard.models.job import Job
from jobboard.services import lifecycle
from jobboard.services.errors import (
    DeadlinePassedError,
    DuplicateApplicationError,
    ForbiddenError,
    InvalidTransitionError,
    JobInactiveError,
    MissingResumeError,
    NotFoundError,
)
from jobboard.services.lifecycle import (
    apply_to_job,
    bulk_update_applications,
    can_transition,
    override_application_status,
    update_application,
    withdraw_application,
)

from conftest import RecordingNotifier, make_application, make_job


class FailingNotifier:
    async def publish(self, event, channel_key):
        raise ConnectionError("socket gone")


async def count_applications(db, job_id) -> int:
    return await db.scalar(select(func.count(Application.id)).where(Application.job_id == job_id))


# =============================================================================
# Transition table
# =============================================================================

def test_pending_is_the_only_state_with_exits():
    for target in (ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN):
        assert can_transition(ApplicationStatus.PENDING, target)

    for terminal in (ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN):
        for target in ApplicationStatus:
            assert not can_transition(terminal, target)


# =============================================================================
# Apply
# =============================================================================

@pytest.mark.asyncio
async def test_apply_creates_pending_application(db, job, student, recruiter, notifier):
    application = await apply_to_job(db, job.id, student, notifier, cover_letter="hello")

    assert application.status == ApplicationStatus.PENDING.value
    assert application.cover_letter == "hello"
    assert application.recruiter_id == recruiter.id
    assert application.resume_url == student.resume_url
    assert application.resume_key == student.resume_key
    assert application.job.title == "Backend Engineer"
    assert application.student.name == "Asha Rao"

    await db.refresh(job)
    assert job.total_applications == 1

    assert notifier.kinds(f"recruiter-{recruiter.id}") == ["new-application"]
    event, _ = notifier.published[0]
    assert event.payload["application"]["id"] == str(application.id)
    assert event.payload["application"]["student"]["name"] == "Asha Rao"
    assert event.payload["application"]["job"]["title"] == "Backend Engineer"


@pytest.mark.asyncio
async def test_resume_snapshot_is_decoupled_from_later_uploads(db, job, student, notifier):
    application = await apply_to_job(db, job.id, student, notifier)

    student.resume_url = "http://test/uploads/resumes/new.pdf"
    student.resume_key = "resumes/new.pdf"
    await db.commit()

    reloaded = await lifecycle.load_application(db, application.id)
    assert reloaded.resume_key == "resumes/asha.pdf"


@pytest.mark.asyncio
async def test_apply_unknown_job(db, student, notifier):
    with pytest.raises(NotFoundError):
        await apply_to_job(db, uuid.uuid4(), student, notifier)


@pytest.mark.asyncio
async def test_apply_inactive_job(db, recruiter, student, notifier):
    job = await make_job(db, recruiter, is_active=False)

    with pytest.raises(JobInactiveError):
        await apply_to_job(db, job.id, student, notifier)


@pytest.mark.asyncio
async def test_inactive_checked_before_deadline(db, recruiter, student, notifier):
    job = await make_job(
        db, recruiter, is_active=False, application_deadline=datetime.utcnow() - timedelta(days=1)
    )

    with pytest.raises(JobInactiveError):
        await apply_to_job(db, job.id, student, notifier)


@pytest.mark.asyncio
async def test_deadline_boundary(db, recruiter, student, notifier):
    deadline = datetime(2030, 1, 1, 12, 0, 0)
    job = await make_job(db, recruiter, application_deadline=deadline)

    with pytest.raises(DeadlinePassedError):
        await apply_to_job(db, job.id, student, notifier, now=deadline + timedelta(microseconds=1))
    assert await count_applications(db, job.id) == 0

    application = await apply_to_job(db, job.id, student, notifier, now=deadline)
    assert application.status == "pending"


@pytest.mark.asyncio
async def test_duplicate_checked_before_resume(db, job, student_without_resume, notifier):
    await make_application(db, job, student_without_resume)

    with pytest.raises(DuplicateApplicationError):
        await apply_to_job(db, job.id, student_without_resume, notifier)


@pytest.mark.asyncio
async def test_missing_resume_creates_nothing(db, job, student_without_resume, recruiter, notifier):
    with pytest.raises(MissingResumeError):
        await apply_to_job(db, job.id, student_without_resume, notifier)

    assert await count_applications(db, job.id) == 0
    assert notifier.published == []


@pytest.mark.asyncio
async def test_unique_constraint_stops_racing_duplicate(db, job, student, notifier, monkeypatch):
    """The pre-check misses the other request's row; the constraint must still hold."""
    await make_application(db, job, student)
    job_id = job.id

    async def no_existing(*args, **kwargs):
        return None

    monkeypatch.setattr(lifecycle, "find_existing_application", no_existing)

    with pytest.raises(DuplicateApplicationError):
        await apply_to_job(db, job_id, student, notifier)

    assert await count_applications(db, job_id) == 1
    assert notifier.published == []


# =============================================================================
# End-to-end scenario
# =============================================================================

@pytest.mark.asyncio
async def test_apply_review_withdraw_scenario(db, job, student, recruiter, notifier):
    application = await apply_to_job(db, job.id, student, notifier, cover_letter="hello")
    await db.refresh(job)
    assert job.total_applications == 1

    with pytest.raises(DuplicateApplicationError):
        await apply_to_job(db, job.id, student, notifier)

    reviewed = await update_application(db, application.id, recruiter, ApplicationStatus.ACCEPTED, notifier)
    assert reviewed.status == "accepted"
    assert reviewed.reviewed_at is not None

    await db.refresh(job)
    assert job.accepted_applications == 1
    assert job.total_applications == 1

    assert notifier.kinds(f"student-{student.id}") == ["application-updated"]

    with pytest.raises(InvalidTransitionError):
        await withdraw_application(db, application.id, student, notifier)


# =============================================================================
# Withdraw
# =============================================================================

@pytest.mark.asyncio
async def test_withdraw_pending(db, job, student, recruiter, notifier):
    application = await apply_to_job(db, job.id, student, notifier)

    withdrawn = await withdraw_application(db, application.id, student, notifier)

    assert withdrawn.status == "withdrawn"
    await db.refresh(job)
    assert job.total_applications == 0

    event, channel = notifier.published[-1]
    assert channel == f"recruiter-{recruiter.id}"
    assert event.kind.value == "application-withdrawn"
    assert event.payload == {"application_id": str(application.id), "student_name": "Asha Rao"}


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["accepted", "rejected", "withdrawn"])
async def test_withdraw_only_from_pending(db, job, student, notifier, status):
    application = await make_application(db, job, student, status=status)

    with pytest.raises(InvalidTransitionError):
        await withdraw_application(db, application.id, student, notifier)


@pytest.mark.asyncio
async def test_withdraw_someone_elses_application(db, job, student, other_student, notifier):
    application = await make_application(db, job, student)

    with pytest.raises(ForbiddenError):
        await withdraw_application(db, application.id, other_student, notifier)


@pytest.mark.asyncio
async def test_withdraw_unknown_application(db, student, notifier):
    with pytest.raises(NotFoundError):
        await withdraw_application(db, uuid.uuid4(), student, notifier)


# =============================================================================
# Recruiter review
# =============================================================================

@pytest.mark.asyncio
async def test_update_sets_notes_and_interview(db, job, student, recruiter, notifier):
    application = await make_application(db, job, student)
    interview_at = datetime(2030, 2, 1, 10, 30)

    updated = await update_application(
        db,
        application.id,
        recruiter,
        ApplicationStatus.ACCEPTED,
        notifier,
        recruiter_notes="Strong portfolio",
        interview={"interview_date": interview_at, "interview_location": "HQ", "interview_type": "In-person"},
    )

    assert updated.recruiter_notes == "Strong portfolio"
    assert updated.interview_date == interview_at
    assert updated.interview_type == "In-person"

    event, channel = notifier.published[-1]
    assert channel == f"student-{student.id}"
    assert event.payload["status"] == "accepted"
    assert event.payload["recruiter_notes"] == "Strong portfolio"
    assert event.payload["interview_location"] == "HQ"


@pytest.mark.asyncio
async def test_update_by_other_recruiter(db, job, student, other_recruiter, notifier):
    application = await make_application(db, job, student)

    with pytest.raises(ForbiddenError):
        await update_application(db, application.id, other_recruiter, ApplicationStatus.ACCEPTED, notifier)


@pytest.mark.asyncio
@pytest.mark.parametrize("target", [ApplicationStatus.WITHDRAWN, ApplicationStatus.PENDING])
async def test_recruiter_cannot_withdraw_or_reset(db, job, student, recruiter, notifier, target):
    application = await make_application(db, job, student)

    with pytest.raises(InvalidTransitionError):
        await update_application(db, application.id, recruiter, target, notifier)


@pytest.mark.asyncio
async def test_reviewed_application_is_final(db, job, student, recruiter, notifier):
    application = await make_application(db, job, student, status="rejected")

    with pytest.raises(InvalidTransitionError):
        await update_application(db, application.id, recruiter, ApplicationStatus.ACCEPTED, notifier)


@pytest.mark.asyncio
async def test_recompute_failure_keeps_status_write(db, job, student, recruiter, notifier, monkeypatch):
    application = await make_application(db, job, student)

    async def broken_recompute(*args, **kwargs):
        raise RuntimeError("aggregation failed")

    monkeypatch.setattr(lifecycle, "recompute_job_counters", broken_recompute)

    updated = await update_application(db, application.id, recruiter, ApplicationStatus.ACCEPTED, notifier)

    assert updated.status == "accepted"
    stored = await db.scalar(select(Application.status).where(Application.id == application.id))
    assert stored == "accepted"
    assert notifier.kinds(f"student-{student.id}") == ["application-updated"]


@pytest.mark.asyncio
async def test_publish_failure_keeps_mutation(db, job, student):
    application = await apply_to_job(db, job.id, student, FailingNotifier())

    assert application.status == "pending"
    assert await count_applications(db, job.id) == 1


# =============================================================================
# Bulk
# =============================================================================

@pytest.mark.asyncio
async def test_bulk_accept(db, job, student, other_student, recruiter, notifier):
    first = await make_application(db, job, student)
    second = await make_application(db, job, other_student)

    updated = await bulk_update_applications(
        db, [first.id, second.id, first.id], recruiter, ApplicationStatus.ACCEPTED, notifier,
        recruiter_notes="Welcome aboard",
    )

    assert updated == 2
    job_row = await db.get(Job, job.id)
    await db.refresh(job_row)
    assert job_row.accepted_applications == 2
    assert job_row.total_applications == 2
    assert notifier.kinds(f"student-{student.id}") == ["application-updated"]
    assert notifier.kinds(f"student-{other_student.id}") == ["application-updated"]


@pytest.mark.asyncio
async def test_bulk_is_all_or_nothing_on_invalid_transition(db, job, student, other_student, recruiter, notifier):
    pending = await make_application(db, job, student)
    accepted = await make_application(db, job, other_student, status="accepted")

    with pytest.raises(InvalidTransitionError):
        await bulk_update_applications(
            db, [pending.id, accepted.id], recruiter, ApplicationStatus.REJECTED, notifier
        )

    stored = await db.scalar(select(Application.status).where(Application.id == pending.id))
    assert stored == "pending"
    assert notifier.published == []


@pytest.mark.asyncio
async def test_bulk_rejects_foreign_applications(db, job, student, other_student, recruiter, other_recruiter, notifier):
    mine = await make_application(db, job, student)
    foreign_job = await make_job(db, other_recruiter, title="Site Engineer", field="Civil Engineering")
    theirs = await make_application(db, foreign_job, other_student)

    with pytest.raises(ForbiddenError):
        await bulk_update_applications(db, [mine.id, theirs.id], recruiter, ApplicationStatus.ACCEPTED, notifier)

    stored = await db.scalar(select(Application.status).where(Application.id == mine.id))
    assert stored == "pending"


@pytest.mark.asyncio
async def test_bulk_rejects_unknown_ids(db, job, student, recruiter, notifier):
    mine = await make_application(db, job, student)

    with pytest.raises(NotFoundError):
        await bulk_update_applications(db, [mine.id, uuid.uuid4()], recruiter, ApplicationStatus.ACCEPTED, notifier)


# =============================================================================
# Admin override
# =============================================================================

@pytest.mark.asyncio
async def test_override_bypasses_transition_table(db, job, student, recruiter, notifier):
    application = await make_application(db, job, student, status="withdrawn")

    overridden = await override_application_status(db, application.id, ApplicationStatus.ACCEPTED, notifier)

    assert overridden.status == "accepted"
    await db.refresh(job)
    assert job.accepted_applications == 1
    assert notifier.kinds(f"student-{student.id}") == ["application-updated"]
    assert notifier.kinds(f"recruiter-{recruiter.id}") == ["application-updated"]


@pytest.mark.asyncio
async def test_override_unknown_application(db):
    with pytest.raises(NotFoundError):
        await override_application_status(db, uuid.uuid4(), ApplicationStatus.REJECTED, RecordingNotifier())
