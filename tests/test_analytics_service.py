"""Per-application analytics and SQL aggregates."""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio

from jobpipeline.core.exceptions import AuthorizationError
from jobpipeline.schemas.application import ApplicationSubmit
from jobpipeline.schemas.document import DocumentCreate
from jobpipeline.schemas.interview import InterviewCreate
from jobpipeline.services.analytics_service import AnalyticsService


@pytest.fixture
def analytics(db):
    return AnalyticsService(db)


@pytest_asyncio.fixture
async def pipeline(app_service, factory, seed):
    """Three applications: one hired, one in screening, one rejected."""
    hired, screening, rejected = [
        await app_service.submit_application(
            (await factory.user(name)).id,
            ApplicationSubmit(job_id=seed.job.id, match_score=score, source=source),
        )
        for name, score, source in (
            ("Hema Hired", 90, "referral"),
            ("Sam Screening", 60, "portal"),
            ("Rex Rejected", 30, "portal"),
        )
    ]
    for step in (
        app_service.move_to_screening,
        app_service.move_to_shortlist,
        app_service.move_to_interview,
        app_service.make_offer,
        app_service.mark_as_hired,
    ):
        await step(hired.id, seed.recruiter.id)
    await app_service.move_to_screening(screening.id, seed.recruiter.id)
    await app_service.reject_application(rejected.id, seed.recruiter.id, "Missing skills")
    return hired, screening, rejected


async def test_conversion_funnel_reads_the_ledger(analytics, pipeline, seed):
    funnel = await analytics.get_conversion_funnel(seed.job.id, seed.recruiter.id)

    counts = {stage.stage: stage.count for stage in funnel.stages}
    assert funnel.total_applications == 3
    assert counts == {
        "applied": 3,
        "screening": 2,
        "shortlisted": 1,
        "interview": 1,
        "offered": 1,
        "hired": 1,
    }
    assert funnel.stages[0].percentage == 100.0
    assert funnel.overall_conversion_rate == 33.33


async def test_average_time_per_stage(analytics, pipeline, seed):
    times = {stats.stage: stats for stats in await analytics.get_average_time_per_stage(seed.company.id, seed.recruiter.id)}

    # Every applied entry has been closed; the open screening entry is not counted
    assert times["applied"].completed_count == 3
    assert times["screening"].completed_count == 1
    assert all(stats.average_hours >= 0 for stats in times.values())
    assert "rejected" not in times


async def test_job_and_company_analytics(analytics, pipeline, seed):
    job = await analytics.get_job_analytics(seed.job.id, seed.recruiter.id)

    assert job.total_applications == 3
    assert job.status_breakdown == {"hired": 1, "screening": 1, "rejected": 1}
    assert job.average_match_score == 60.0
    assert job.conversion_rate == 33.33
    assert job.average_time_to_hire_days is not None
    assert job.funnel.total_applications == 3

    company = await analytics.get_company_analytics(seed.company.id, seed.recruiter.id)
    assert company.total_jobs == 1
    assert company.total_applications == 3
    sources = {source.source: source for source in company.sources}
    assert sources["referral"].hired == 1
    assert sources["referral"].conversion_rate == 100.0
    assert sources["portal"].count == 2
    assert sources["portal"].hired == 0


async def test_period_filter_excludes_applications(analytics, pipeline, seed):
    future = datetime.utcnow() + timedelta(days=1)

    job = await analytics.get_job_analytics(seed.job.id, seed.recruiter.id, start=future)

    assert job.total_applications == 0
    assert job.conversion_rate == 0.0
    assert job.average_time_to_hire_days is None


async def test_application_trends_group_by_day(analytics, pipeline, seed):
    hired, _, _ = pipeline

    [today] = await analytics.get_application_trends(seed.company.id, seed.recruiter.id)

    assert today.day == hired.applied_at.date()
    assert today.total_applications == 3
    assert today.hired_count == 1
    assert today.rejected_count == 1
    assert today.average_match_score == 60.0

    future = datetime.utcnow() + timedelta(days=1)
    assert await analytics.get_application_trends(seed.company.id, seed.recruiter.id, start=future) == []
    with pytest.raises(AuthorizationError):
        await analytics.get_application_trends(seed.company.id, seed.outsider.id)


async def test_aggregates_require_employer_access(analytics, pipeline, seed):
    with pytest.raises(AuthorizationError):
        await analytics.get_conversion_funnel(seed.job.id, seed.outsider.id)
    with pytest.raises(AuthorizationError):
        await analytics.get_company_analytics(seed.company.id, seed.outsider.id)


async def test_timeline_keeps_source_order(analytics, interview_service, submitted, seed):
    # An interview dated before the later stage changes still comes last
    past = datetime.utcnow() - timedelta(days=2)
    interview = await interview_service.schedule_interview(
        seed.recruiter.id, InterviewCreate(application_id=submitted.id, scheduled_at=past)
    )

    result = await analytics.get_application_analytics(submitted.id, seed.candidate.id)

    assert [event.event_type for event in result.timeline] == [
        "submitted",
        "stage_change",
        "stage_change",
        "interview_scheduled",
    ]
    assert result.timeline[-1].reference_id == interview.id
    assert result.timeline[-1].timestamp < result.timeline[-2].timestamp

    applied, current = result.stage_progress
    assert applied.status == "completed"
    assert applied.duration.endswith(" hours")
    assert current.status == "in_progress"
    assert current.duration is None


async def test_document_and_match_stats(analytics, app_service, seed):
    application = await app_service.submit_application(
        seed.candidate.id,
        ApplicationSubmit(
            job_id=seed.job.id,
            match_score=81.5,
            documents=[
                DocumentCreate(file_url="https://files.example.com/cv.pdf"),
                DocumentCreate(document_type="certificate", file_url="https://files.example.com/aws.pdf"),
            ],
        ),
    )

    result = await analytics.get_application_analytics(application.id, seed.recruiter.id)

    assert result.document_stats.total == 2
    assert result.document_stats.unverified == 2
    assert result.document_stats.by_type == {"cv": 1, "certificate": 1}
    assert result.match_analysis.overall_score == 81.5
    assert result.interview_stats.total == 0
    assert result.interview_stats.average_score is None


async def test_candidate_stats(analytics, pipeline):
    hired, _, _ = pipeline

    stats = await analytics.get_candidate_stats(hired.candidate_id)

    assert stats.total_applications == 1
    assert stats.offers_received == 1
    assert stats.success_rate == 100.0
    assert stats.active_applications == 0
