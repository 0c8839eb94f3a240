"""
Tests for job counter recompute.
"""
import uuid

import pytest

from jobboard.services.lifecycle import JobCounters, compute_job_counters, recompute_job_counters

from conftest import make_application


def test_withdrawn_excluded_from_total():
    counters = compute_job_counters({"pending": 2, "accepted": 1, "rejected": 3, "withdrawn": 4})

    assert counters == JobCounters(total_applications=6, accepted_applications=1, rejected_applications=3)


def test_no_applications():
    assert compute_job_counters({}) == JobCounters(0, 0, 0)


@pytest.mark.asyncio
async def test_recompute_repairs_drift(db, job, student, other_student):
    await make_application(db, job, student, status="accepted")
    await make_application(db, job, other_student, status="withdrawn")

    job.total_applications = 99
    job.rejected_applications = 7
    await db.commit()

    counters = await recompute_job_counters(db, job.id)

    assert counters == JobCounters(total_applications=1, accepted_applications=1, rejected_applications=0)
    await db.refresh(job)
    assert job.total_applications == 1
    assert job.rejected_applications == 0


@pytest.mark.asyncio
async def test_recompute_is_idempotent(db, job, student, other_student):
    await make_application(db, job, student, status="pending")
    await make_application(db, job, other_student, status="rejected")

    first = await recompute_job_counters(db, job.id)
    second = await recompute_job_counters(db, job.id)

    assert first == second == JobCounters(2, 0, 1)


@pytest.mark.asyncio
async def test_recompute_missing_job(db):
    assert await recompute_job_counters(db, uuid.uuid4()) is None
