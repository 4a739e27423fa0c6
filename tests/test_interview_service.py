"""Interview scheduling, outcomes and reminders."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from jobpipeline.core.exceptions import (
    AuthorizationError,
    InvalidStateTransitionError,
    StateConflictError,
    ValidationError,
)
from jobpipeline.models.note import ApplicationNote
from jobpipeline.schemas.application import ApplicationSubmit
from jobpipeline.schemas.interview import (
    InterviewComplete,
    InterviewCreate,
    InterviewReschedule,
)
from jobpipeline.services.analytics_service import AnalyticsService
from jobpipeline.services.stage_ledger import StageLedger
from jobpipeline.utils.constants import NotificationKind


def in_hours(hours):
    return datetime.utcnow() + timedelta(hours=hours)


async def schedule(service, application, actor, hours=48, **fields):
    return await service.schedule_interview(
        actor.id,
        InterviewCreate(application_id=application.id, scheduled_at=in_hours(hours), **fields),
    )


async def notes_for(db, application_id):
    result = await db.execute(
        select(ApplicationNote)
        .where(ApplicationNote.application_id == application_id)
        .order_by(ApplicationNote.created_at)
    )
    return result.scalars().all()


@pytest.mark.parametrize("start", [None, "screening", "shortlisted"])
async def test_schedule_advances_to_interview_first(interview_service, app_service, submitted, db, seed, start):
    if start == "screening":
        await app_service.move_to_screening(submitted.id, seed.recruiter.id)
    elif start == "shortlisted":
        await app_service.move_to_shortlist(submitted.id, seed.recruiter.id)

    interview = await schedule(interview_service, submitted, seed.recruiter)

    ledger = StageLedger(db)
    current = await ledger.current_stage(submitted.id)
    assert current.stage_name == "interview"
    assert interview.stage_id == current.id
    assert interview.status == "scheduled"
    assert interview.interviewer_id == seed.recruiter.id

    # The interview stage was opened before the interview row was created
    assert current.started_at <= interview.created_at


async def test_schedule_keeps_interview_or_offered_status(interview_service, app_service, submitted, db, seed):
    await app_service.make_offer(submitted.id, seed.recruiter.id)
    stages_before = len(await StageLedger(db).list_stages(submitted.id))

    await schedule(interview_service, submitted, seed.recruiter)

    stages_after = await StageLedger(db).list_stages(submitted.id)
    assert len(stages_after) == stages_before
    assert stages_after[-1].stage_name == "offered"


async def test_schedule_on_terminal_application_fails(interview_service, app_service, submitted, seed):
    await app_service.mark_as_hired(submitted.id, seed.recruiter.id)

    with pytest.raises(InvalidStateTransitionError):
        await schedule(interview_service, submitted, seed.recruiter)


async def test_schedule_rejects_stage_of_other_application(interview_service, app_service, factory, submitted, db, seed):
    other = await app_service.submit_application(
        (await factory.user("Bina Das")).id,
        ApplicationSubmit(job_id=seed.job.id),
    )
    foreign_stage = await StageLedger(db).current_stage(other.id)

    with pytest.raises(ValidationError):
        await schedule(interview_service, submitted, seed.recruiter, stage_id=foreign_stage.id)


async def test_schedule_requires_employer(interview_service, submitted, seed):
    with pytest.raises(AuthorizationError):
        await schedule(interview_service, submitted, seed.outsider)


async def test_schedule_notifies_status_then_interview(interview_service, submitted, seed, dispatcher, recorder):
    aware = datetime.now(timezone.utc) + timedelta(days=2)
    interview = await interview_service.schedule_interview(
        seed.recruiter.id, InterviewCreate(application_id=submitted.id, scheduled_at=aware)
    )
    await dispatcher.drain()

    assert interview.scheduled_at.tzinfo is None
    kinds = [event.kind for event in recorder.events]
    assert kinds == [
        NotificationKind.APPLICATION_RECEIVED,
        NotificationKind.STATUS_UPDATED,
        NotificationKind.INTERVIEW_SCHEDULED,
    ]
    assert recorder.events[-1].interview_id == interview.id
    assert recorder.events[-1].is_reminder is False


async def test_reschedule_sets_status_and_note(interview_service, submitted, db, seed):
    interview = await schedule(interview_service, submitted, seed.recruiter)
    new_time = in_hours(72)

    interview = await interview_service.reschedule_interview(
        interview.id,
        seed.recruiter.id,
        InterviewReschedule(scheduled_at=new_time, reason="Panel unavailable", meeting_link="https://meet.example.com/x"),
    )

    assert interview.status == "rescheduled"
    assert interview.scheduled_at == new_time
    assert interview.meeting_link == "https://meet.example.com/x"
    [note] = await notes_for(db, submitted.id)
    assert note.note_type == "reminder"
    assert note.visibility == "internal"
    assert note.note_text == "Interview rescheduled: Panel unavailable"


async def test_cancel_adds_note_and_blocks_further_changes(interview_service, submitted, db, seed):
    interview = await schedule(interview_service, submitted, seed.recruiter)

    interview = await interview_service.cancel_interview(interview.id, seed.recruiter.id, "Candidate took another offer")

    assert interview.status == "cancelled"
    [note] = await notes_for(db, submitted.id)
    assert note.note_text == "Interview cancelled: Candidate took another offer"

    with pytest.raises(StateConflictError):
        await interview_service.reschedule_interview(
            interview.id, seed.recruiter.id, InterviewReschedule(scheduled_at=in_hours(10))
        )
    with pytest.raises(StateConflictError):
        await interview_service.complete_interview(interview.id, seed.recruiter.id, InterviewComplete())


async def test_complete_records_scores_and_feedback(interview_service, submitted, db, seed):
    interview = await schedule(interview_service, submitted, seed.recruiter)

    interview = await interview_service.complete_interview(
        interview.id,
        seed.recruiter.id,
        InterviewComplete(overall_score=8.5, technical_score=9, feedback_summary="Solid system design"),
    )

    assert interview.status == "completed"
    assert interview.ended_at is not None
    [note] = await notes_for(db, submitted.id)
    assert note.note_type == "feedback"
    assert note.note_text == "Solid system design"


async def test_single_scored_interview_statistics(interview_service, submitted, db, seed):
    interview = await schedule(interview_service, submitted, seed.recruiter)
    await interview_service.complete_interview(
        interview.id, seed.recruiter.id, InterviewComplete(overall_score=8.5)
    )

    analytics = await AnalyticsService(db).get_application_analytics(submitted.id, seed.recruiter.id)

    assert analytics.interview_stats.total == 1
    assert analytics.interview_stats.completed == 1
    assert analytics.interview_stats.average_score == 8.5
    assert analytics.interview_stats.highest_score == 8.5


async def test_no_show_adds_negative_note(interview_service, submitted, db, seed):
    interview = await schedule(interview_service, submitted, seed.recruiter)

    interview = await interview_service.mark_no_show(interview.id, seed.recruiter.id)

    assert interview.status == "no_show"
    [note] = await notes_for(db, submitted.id)
    assert note.sentiment == "negative"
    assert note.note_text == "Candidate did not attend scheduled interview"


async def test_send_reminder(interview_service, submitted, seed, dispatcher, recorder):
    interview = await schedule(interview_service, submitted, seed.recruiter)

    interview = await interview_service.send_reminder(interview.id, seed.recruiter.id)
    await dispatcher.drain()

    assert interview.reminder_sent_at is not None
    reminder = recorder.events[-1]
    assert reminder.kind == NotificationKind.INTERVIEW_SCHEDULED
    assert reminder.is_reminder is True
    assert reminder.subject.startswith("Reminder")


async def test_send_reminder_for_inactive_interview_fails(interview_service, submitted, seed):
    interview = await schedule(interview_service, submitted, seed.recruiter)
    await interview_service.mark_no_show(interview.id, seed.recruiter.id)

    with pytest.raises(StateConflictError):
        await interview_service.send_reminder(interview.id, seed.recruiter.id)


async def test_send_due_reminders_only_within_window(interview_service, app_service, factory, submitted, seed):
    soon = await schedule(interview_service, submitted, seed.recruiter, hours=3)
    other = await app_service.submit_application(
        (await factory.user("Bina Das")).id,
        ApplicationSubmit(job_id=seed.job.id),
    )
    later = await schedule(interview_service, other, seed.recruiter, hours=72)

    assert await interview_service.send_due_reminders(within_hours=24) == 1
    assert soon.reminder_sent_at is not None
    assert later.reminder_sent_at is None

    # Already reminded interviews are not reminded twice
    assert await interview_service.send_due_reminders(within_hours=24) == 0


async def test_upcoming_and_range_are_scoped_to_employer_companies(interview_service, submitted, seed):
    interview = await schedule(interview_service, submitted, seed.recruiter, hours=30)

    upcoming = await interview_service.get_upcoming_interviews(seed.recruiter.id, days=7)
    assert [item.id for item in upcoming] == [interview.id]
    assert await interview_service.get_upcoming_interviews(seed.outsider.id) == []

    in_range = await interview_service.get_interviews_by_date_range(
        seed.recruiter.id, in_hours(24), in_hours(36)
    )
    assert [item.id for item in in_range] == [interview.id]

    with pytest.raises(ValidationError):
        await interview_service.get_interviews_by_date_range(seed.recruiter.id, in_hours(36), in_hours(24))


async def test_candidate_can_read_own_interviews(interview_service, submitted, seed):
    interview = await schedule(interview_service, submitted, seed.recruiter)

    assert (await interview_service.get_interview(interview.id, seed.candidate.id)).id == interview.id
    listed = await interview_service.list_application_interviews(submitted.id, seed.candidate.id)
    assert [item.id for item in listed] == [interview.id]

    with pytest.raises(AuthorizationError):
        await interview_service.get_interview(interview.id, seed.outsider.id)
