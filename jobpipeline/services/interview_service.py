"""
Interview service
Scheduling and outcome tracking for interviews tied to an application.

Only scheduled and rescheduled interviews can change; completed,
cancelled and no-show are final.
"""

from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobpipeline.core.exceptions import (
    InterviewNotFoundError,
    InvalidStateTransitionError,
    StateConflictError,
    ValidationError,
)
from jobpipeline.models.application import Application
from jobpipeline.models.interview import Interview
from jobpipeline.models.note import ApplicationNote
from jobpipeline.schemas.interview import (
    InterviewComplete,
    InterviewCreate,
    InterviewReschedule,
)
from jobpipeline.services.access_control import AccessControl
from jobpipeline.services.application_service import ApplicationService
from jobpipeline.services.notification_dispatcher import NotificationDispatcher, get_dispatcher
from jobpipeline.services.stage_ledger import StageLedger
from jobpipeline.utils.constants import (
    ACTIVE_INTERVIEW_STATUSES,
    ApplicationStatus,
    InterviewStatus,
    NotificationKind,
)
from jobpipeline.utils.helpers import to_naive_utc, utcnow

logger = structlog.get_logger(__name__)

# Statuses at or past the interview stage; scheduling from anything else
# advances the application to interview first.
INTERVIEW_READY_STATUSES = (ApplicationStatus.INTERVIEW.value, ApplicationStatus.OFFERED.value)

_ACTIVE_VALUES = sorted(ACTIVE_INTERVIEW_STATUSES)


class InterviewService:
    """Interview sub-workflow."""

    def __init__(self, db: AsyncSession, dispatcher: Optional[NotificationDispatcher] = None):
        self.db = db
        self.access = AccessControl(db)
        self.ledger = StageLedger(db)
        self.dispatcher = dispatcher or get_dispatcher()
        self.applications = ApplicationService(db, self.dispatcher)

    async def _load(self, interview_id: UUID) -> Interview:
        result = await self.db.execute(select(Interview).where(Interview.id == interview_id))
        interview = result.scalar_one_or_none()
        if interview is None:
            raise InterviewNotFoundError(f"Interview {interview_id} not found")
        return interview

    async def _load_for_employer(self, interview_id: UUID, actor_id: UUID):
        interview = await self._load(interview_id)
        application = await self.access.check_employer_access(interview.application_id, actor_id)
        return interview, application

    @staticmethod
    def _require_active(interview: Interview, action: str) -> None:
        if not interview.is_active:
            raise StateConflictError(f"Cannot {action} an interview that is {interview.status}")

    def _add_note(
        self,
        interview: Interview,
        author_id: UUID,
        text: str,
        note_type: str = "internal",
        sentiment: str = "neutral",
    ) -> None:
        self.db.add(
            ApplicationNote(
                application_id=interview.application_id,
                stage_id=interview.stage_id,
                author_id=author_id,
                note_type=note_type,
                note_text=text,
                visibility="internal",
                sentiment=sentiment,
            )
        )

    async def _notify(self, application: Application, interview: Interview, is_reminder: bool = False) -> None:
        await self.dispatcher.notify(
            self.db,
            application,
            NotificationKind.INTERVIEW_SCHEDULED,
            interview_id=interview.id,
            scheduled_at=interview.scheduled_at,
            is_reminder=is_reminder,
        )

    # ==================== Scheduling ====================

    async def schedule_interview(self, actor_id: UUID, data: InterviewCreate) -> Interview:
        """
        Schedule an interview, advancing the application to the interview
        stage first when it has not reached it yet.
        """
        application = await self.access.check_employer_access(data.application_id, actor_id)

        if application.status not in INTERVIEW_READY_STATUSES:
            if application.is_terminal:
                raise InvalidStateTransitionError(
                    f"Cannot schedule an interview for an application that is {application.status}"
                )
            application = await self.applications.move_to_interview(application.id, actor_id)

        stage_id = data.stage_id
        if stage_id is not None:
            stage = await self.ledger.get_stage(stage_id)
            if stage.application_id != application.id:
                raise ValidationError("Stage does not belong to this application")
        else:
            current = await self.ledger.current_stage(application.id)
            stage_id = current.id if current else None

        interview = Interview(
            application_id=application.id,
            stage_id=stage_id,
            interviewer_id=data.interviewer_id or actor_id,
            scheduled_at=to_naive_utc(data.scheduled_at),
            interview_type=data.interview_type,
            meeting_link=data.meeting_link,
            location=data.location,
            status=InterviewStatus.SCHEDULED.value,
        )
        self.db.add(interview)
        await self.db.commit()

        logger.info(
            "interview_scheduled",
            interview_id=str(interview.id),
            application_id=str(application.id),
            scheduled_at=interview.scheduled_at.isoformat(),
        )
        await self._notify(application, interview)
        return interview

    async def reschedule_interview(
        self, interview_id: UUID, actor_id: UUID, data: InterviewReschedule
    ) -> Interview:
        interview, application = await self._load_for_employer(interview_id, actor_id)
        self._require_active(interview, "reschedule")

        interview.scheduled_at = to_naive_utc(data.scheduled_at)
        if data.meeting_link is not None:
            interview.meeting_link = data.meeting_link
        if data.location is not None:
            interview.location = data.location
        interview.status = InterviewStatus.RESCHEDULED.value
        # A new time needs a new reminder
        interview.reminder_sent_at = None

        if data.reason:
            self._add_note(interview, actor_id, f"Interview rescheduled: {data.reason}", note_type="reminder")
        await self.db.commit()

        logger.info(
            "interview_rescheduled",
            interview_id=str(interview.id),
            scheduled_at=interview.scheduled_at.isoformat(),
        )
        await self._notify(application, interview)
        return interview

    async def cancel_interview(self, interview_id: UUID, actor_id: UUID, reason: Optional[str] = None) -> Interview:
        interview, _ = await self._load_for_employer(interview_id, actor_id)
        self._require_active(interview, "cancel")

        interview.status = InterviewStatus.CANCELLED.value
        if reason:
            self._add_note(interview, actor_id, f"Interview cancelled: {reason}")
        await self.db.commit()

        logger.info("interview_cancelled", interview_id=str(interview.id))
        return interview

    async def complete_interview(self, interview_id: UUID, actor_id: UUID, data: InterviewComplete) -> Interview:
        interview, _ = await self._load_for_employer(interview_id, actor_id)
        self._require_active(interview, "complete")

        interview.status = InterviewStatus.COMPLETED.value
        interview.ended_at = utcnow()
        interview.overall_score = data.overall_score
        interview.technical_score = data.technical_score
        interview.communication_score = data.communication_score
        interview.personality_score = data.personality_score
        interview.remarks = data.remarks
        interview.feedback_summary = data.feedback_summary

        if data.feedback_summary:
            self._add_note(interview, actor_id, data.feedback_summary, note_type="feedback")
        await self.db.commit()

        logger.info(
            "interview_completed",
            interview_id=str(interview.id),
            overall_score=data.overall_score,
        )
        return interview

    async def mark_no_show(self, interview_id: UUID, actor_id: UUID) -> Interview:
        interview, _ = await self._load_for_employer(interview_id, actor_id)
        self._require_active(interview, "mark as no-show")

        interview.status = InterviewStatus.NO_SHOW.value
        self._add_note(
            interview,
            actor_id,
            "Candidate did not attend scheduled interview",
            sentiment="negative",
        )
        await self.db.commit()

        logger.info("interview_no_show", interview_id=str(interview.id))
        return interview

    # ==================== Reminders ====================

    async def send_reminder(self, interview_id: UUID, actor_id: Optional[UUID] = None) -> Interview:
        """Re-issue the scheduling notification; employer access when an actor is given."""
        if actor_id is not None:
            interview, application = await self._load_for_employer(interview_id, actor_id)
        else:
            interview = await self._load(interview_id)
            application = await self.access.load_application(interview.application_id)
        self._require_active(interview, "send a reminder for")

        interview.reminder_sent_at = utcnow()
        await self.db.commit()

        await self._notify(application, interview, is_reminder=True)
        return interview

    async def send_due_reminders(self, within_hours: int = 24) -> int:
        """Remind every active interview starting within the window that has no reminder yet."""
        now = utcnow()
        result = await self.db.execute(
            select(Interview.id).where(
                Interview.status.in_(_ACTIVE_VALUES),
                Interview.scheduled_at >= now,
                Interview.scheduled_at <= now + timedelta(hours=within_hours),
                Interview.reminder_sent_at.is_(None),
            )
        )
        sent = 0
        for interview_id in result.scalars().all():
            try:
                await self.send_reminder(interview_id)
            except StateConflictError as exc:
                logger.info("interview_reminder_skipped", interview_id=str(interview_id), reason=exc.message)
                continue
            sent += 1

        logger.info("interview_reminders_sent", count=sent, within_hours=within_hours)
        return sent

    # ==================== Reads ====================

    async def get_interview(self, interview_id: UUID, user_id: UUID) -> Interview:
        """Candidate of the application or an employer may read."""
        interview = await self._load(interview_id)
        application = await self.access.load_application(interview.application_id)
        if application.candidate_id != user_id:
            await self.access.check_company_access(application.company_id, user_id)
        return interview

    async def list_application_interviews(self, application_id: UUID, user_id: UUID) -> List[Interview]:
        application = await self.access.load_application(application_id)
        if application.candidate_id != user_id:
            await self.access.check_company_access(application.company_id, user_id)

        result = await self.db.execute(
            select(Interview)
            .where(Interview.application_id == application_id)
            .order_by(Interview.scheduled_at)
        )
        return list(result.scalars().all())

    async def get_upcoming_interviews(self, actor_id: UUID, days: int = 7) -> List[Interview]:
        """Active interviews in the next ``days`` across the actor's companies."""
        company_ids = await self.access.employer_company_ids(actor_id)
        if not company_ids:
            return []

        now = utcnow()
        result = await self.db.execute(
            select(Interview)
            .join(Application, Application.id == Interview.application_id)
            .where(
                Application.company_id.in_(company_ids),
                Interview.status.in_(_ACTIVE_VALUES),
                Interview.scheduled_at >= now,
                Interview.scheduled_at <= now + timedelta(days=days),
            )
            .order_by(Interview.scheduled_at)
        )
        return list(result.scalars().all())

    async def get_interviews_by_date_range(
        self,
        actor_id: UUID,
        start: datetime,
        end: datetime,
        company_id: Optional[UUID] = None,
    ) -> List[Interview]:
        start, end = to_naive_utc(start), to_naive_utc(end)
        if end < start:
            raise ValidationError("end must not be before start")

        if company_id is not None:
            await self.access.check_company_access(company_id, actor_id)
            company_ids = [company_id]
        else:
            company_ids = await self.access.employer_company_ids(actor_id)
        if not company_ids:
            return []

        result = await self.db.execute(
            select(Interview)
            .join(Application, Application.id == Interview.application_id)
            .where(
                Application.company_id.in_(company_ids),
                Interview.scheduled_at >= start,
                Interview.scheduled_at <= end,
            )
            .order_by(Interview.scheduled_at)
        )
        return list(result.scalars().all())
