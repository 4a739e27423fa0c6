"""
Application service
Submission, status transitions and listings for job applications.

Every transition closes the open ledger entry, sets the new status and
opens the next entry inside one transaction. The application's version
column makes a concurrent writer fail instead of forking the ledger.
Notifications are dispatched only after the commit.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from jobpipeline.config import settings
from jobpipeline.core.exceptions import (
    ConcurrentUpdateError,
    DuplicateApplicationError,
    InactiveAccountError,
    InvalidStateTransitionError,
    JobNotFoundError,
    JobNotOpenError,
    NotCandidateError,
    PipelineError,
    UserNotFoundError,
    ValidationError,
)
from jobpipeline.models.application import Application
from jobpipeline.models.company import Company
from jobpipeline.models.document import ApplicationDocument
from jobpipeline.models.interview import Interview
from jobpipeline.models.job import Job
from jobpipeline.models.note import ApplicationNote
from jobpipeline.models.user import User
from jobpipeline.schemas.application import (
    ApplicantProfile,
    ApplicationDetailResponse,
    ApplicationFilter,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationSubmit,
    ApplicationSummary,
    BulkResult,
    JobBrief,
    StageResponse,
)
from jobpipeline.schemas.document import DocumentCreate, DocumentResponse
from jobpipeline.schemas.interview import InterviewResponse
from jobpipeline.schemas.note import NoteResponse
from jobpipeline.services import lookups
from jobpipeline.services.access_control import AccessControl
from jobpipeline.services.notification_dispatcher import NotificationDispatcher, get_dispatcher
from jobpipeline.services.stage_ledger import StageLedger
from jobpipeline.utils.constants import (
    ADVANCEABLE_STATUSES,
    ApplicationStatus,
    NotificationKind,
)
from jobpipeline.utils.helpers import clamp_page, total_pages, utcnow

logger = structlog.get_logger(__name__)

CLOSING_NOTE = "Moved to next stage"
WITHDRAWAL_NOTE = "Withdrawn by applicant"
DEFAULT_BULK_REJECT_REASON = "Rejected in bulk update"


def _parse_status(value, label: str = "status") -> ApplicationStatus:
    try:
        return ApplicationStatus(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown {label}: {value}") from exc


class ApplicationService:
    """Application Core: owns every status transition."""

    def __init__(self, db: AsyncSession, dispatcher: Optional[NotificationDispatcher] = None):
        self.db = db
        self.access = AccessControl(db)
        self.ledger = StageLedger(db)
        self.dispatcher = dispatcher or get_dispatcher()

    # ==================== Submission ====================

    async def check_can_apply(self, job_id: UUID, candidate_id: UUID) -> Tuple[Job, User]:
        """
        Raise the first reason the candidate cannot apply; writes nothing.

        Checks run in a fixed order: job exists, job is open, no live
        application for the pair, candidate exists, is active and is a
        job seeker.
        """
        job = await lookups.get_job(self.db, job_id)
        if job is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        if not job.accepts_applications:
            raise JobNotOpenError(f"Job is not accepting applications (status: {job.status})")

        if await self._find_live_application(job.id, candidate_id) is not None:
            raise DuplicateApplicationError()

        candidate = await lookups.get_user(self.db, candidate_id)
        if candidate is None:
            raise UserNotFoundError(f"User {candidate_id} not found")
        if not candidate.is_active:
            raise InactiveAccountError()
        if not candidate.is_candidate:
            raise NotCandidateError()
        return job, candidate

    async def submit_application(self, candidate_id: UUID, data: ApplicationSubmit) -> Application:
        """Submit an application for a published job. Documents are attached best-effort."""
        job, candidate = await self.check_can_apply(data.job_id, candidate_id)

        application = Application(
            job_id=job.id,
            candidate_id=candidate.id,
            company_id=job.company_id,
            status=ApplicationStatus.APPLIED.value,
            source=data.source or settings.DEFAULT_APPLICATION_SOURCE,
            resume_url=data.resume_url,
            cover_note=data.cover_note,
            match_score=data.match_score,
            applied_at=utcnow(),
        )
        try:
            self.db.add(application)
            await self.db.flush()
            await self.ledger.open_stage(application, ApplicationStatus.APPLIED, handled_by=candidate.id)

            attached = 0
            for document in data.documents:
                if await self._attach_document(application, document):
                    attached += 1

            await self.db.execute(
                update(Job)
                .where(Job.id == job.id)
                .values(application_count=Job.application_count + 1)
            )
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            logger.info(
                "duplicate_application_rejected",
                job_id=str(data.job_id),
                candidate_id=str(candidate_id),
            )
            raise DuplicateApplicationError() from exc

        logger.info(
            "application_submitted",
            application_id=str(application.id),
            job_id=str(job.id),
            candidate_id=str(candidate.id),
            documents=attached,
        )
        await self.dispatcher.notify(self.db, application, NotificationKind.APPLICATION_RECEIVED)
        return application

    async def _find_live_application(self, job_id: UUID, candidate_id: UUID) -> Optional[Application]:
        result = await self.db.execute(
            select(Application).where(
                Application.job_id == job_id,
                Application.candidate_id == candidate_id,
                Application.status != ApplicationStatus.WITHDRAWN.value,
            )
        )
        return result.scalars().first()

    async def _attach_document(self, application: Application, document: DocumentCreate) -> bool:
        """Add one document in a savepoint; a failure is logged and skipped."""
        try:
            async with self.db.begin_nested():
                self.db.add(
                    ApplicationDocument(
                        application_id=application.id,
                        user_id=application.candidate_id,
                        document_type=document.document_type,
                        file_name=document.file_name,
                        file_url=document.file_url,
                        file_type=document.file_type,
                        file_size=document.file_size,
                        notes=document.notes,
                    )
                )
            return True
        except Exception:
            logger.exception(
                "document_attach_failed",
                application_id=str(application.id),
                file_url=document.file_url,
            )
            return False

    # ==================== Transitions ====================

    async def _apply_transition(
        self,
        application: Application,
        target: ApplicationStatus,
        actor_id: UUID,
        *,
        closing_note: Optional[str],
        notes: Optional[str] = None,
        terminal: bool = False,
    ) -> None:
        """Close the open entry, set the status, append the next entry and commit."""
        application_id = application.id
        previous = application.status
        try:
            await self.ledger.close_open_stages(application.id, closing_note)
            application.status = target.value
            await self.ledger.open_stage(
                application, target, handled_by=actor_id, notes=notes, completed=terminal
            )
            await self.db.commit()
        except (StaleDataError, IntegrityError) as exc:
            await self.db.rollback()
            logger.warning(
                "concurrent_transition_rejected",
                application_id=str(application_id),
                target=target.value,
            )
            raise ConcurrentUpdateError() from exc

        logger.info(
            "application_status_changed",
            application_id=str(application.id),
            from_status=previous,
            to_status=target.value,
            actor_id=str(actor_id),
        )

    async def advance_stage(
        self,
        application_id: UUID,
        actor_id: UUID,
        target: ApplicationStatus,
        notes: Optional[str] = None,
    ) -> Application:
        """Move to screening, shortlisted, interview, offered or hired."""
        target = _parse_status(target, "stage")
        if target not in ADVANCEABLE_STATUSES:
            raise ValidationError(f"Cannot advance an application to '{target.value}'")

        application = await self.access.check_employer_access(application_id, actor_id, for_update=True)
        if application.is_terminal:
            raise InvalidStateTransitionError(
                f"Application is already {application.status} and cannot move to {target.value}"
            )

        await self._apply_transition(application, target, actor_id, closing_note=CLOSING_NOTE, notes=notes)
        await self.dispatcher.notify(
            self.db, application, NotificationKind.STATUS_UPDATED, new_status=application.status
        )
        return application

    async def move_to_screening(self, application_id: UUID, actor_id: UUID, notes: Optional[str] = None) -> Application:
        return await self.advance_stage(application_id, actor_id, ApplicationStatus.SCREENING, notes)

    async def move_to_shortlist(self, application_id: UUID, actor_id: UUID, notes: Optional[str] = None) -> Application:
        return await self.advance_stage(application_id, actor_id, ApplicationStatus.SHORTLISTED, notes)

    async def move_to_interview(self, application_id: UUID, actor_id: UUID, notes: Optional[str] = None) -> Application:
        return await self.advance_stage(application_id, actor_id, ApplicationStatus.INTERVIEW, notes)

    async def make_offer(self, application_id: UUID, actor_id: UUID, notes: Optional[str] = None) -> Application:
        return await self.advance_stage(application_id, actor_id, ApplicationStatus.OFFERED, notes)

    async def mark_as_hired(self, application_id: UUID, actor_id: UUID, notes: Optional[str] = None) -> Application:
        return await self.advance_stage(application_id, actor_id, ApplicationStatus.HIRED, notes)

    async def reject_application(self, application_id: UUID, actor_id: UUID, reason: str) -> Application:
        if not reason:
            raise ValidationError("A rejection reason is required")

        application = await self.access.check_employer_access(application_id, actor_id, for_update=True)
        if application.is_terminal:
            raise InvalidStateTransitionError(
                f"Application is already {application.status} and cannot be rejected"
            )

        await self._apply_transition(
            application,
            ApplicationStatus.REJECTED,
            actor_id,
            closing_note=reason,
            notes=reason,
            terminal=True,
        )
        await self.dispatcher.notify(
            self.db, application, NotificationKind.STATUS_UPDATED, new_status=application.status
        )
        return application

    async def withdraw_application(self, application_id: UUID, candidate_id: UUID) -> Application:
        """Candidate-initiated; no notification is sent."""
        application = await self.access.check_application_ownership(
            application_id, candidate_id, for_update=True
        )
        if not application.can_withdraw:
            raise InvalidStateTransitionError("Application cannot be withdrawn in current status")

        await self._apply_transition(
            application,
            ApplicationStatus.WITHDRAWN,
            candidate_id,
            closing_note=WITHDRAWAL_NOTE,
            notes=WITHDRAWAL_NOTE,
            terminal=True,
        )
        return application

    # ==================== Bulk ====================

    async def bulk_update_status(
        self,
        application_ids: Iterable[UUID],
        target: ApplicationStatus,
        actor_id: UUID,
        reason: Optional[str] = None,
    ) -> BulkResult:
        """
        Apply one transition to each application independently.

        Items that fail (not found, no access, terminal, conflicting write)
        are skipped and reported in ``skipped``; the batch itself never raises
        for an individual item.
        """
        target = _parse_status(target)
        if target in (ApplicationStatus.APPLIED, ApplicationStatus.WITHDRAWN):
            raise ValidationError(f"Bulk updates cannot move applications to '{target.value}'")

        result = BulkResult()
        for application_id in application_ids:
            try:
                if target == ApplicationStatus.REJECTED:
                    await self.reject_application(
                        application_id, actor_id, reason or DEFAULT_BULK_REJECT_REASON
                    )
                else:
                    await self.advance_stage(application_id, actor_id, target, reason)
            except PipelineError as exc:
                logger.info(
                    "bulk_item_skipped",
                    application_id=str(application_id),
                    code=exc.code,
                    reason=exc.message,
                )
                result.skipped.append(application_id)
                continue
            except Exception:
                await self.db.rollback()
                logger.exception("bulk_item_failed", application_id=str(application_id))
                result.skipped.append(application_id)
                continue
            result.succeeded.append(application_id)

        logger.info(
            "bulk_update_finished",
            target=target.value,
            succeeded=len(result.succeeded),
            skipped=len(result.skipped),
        )
        return result

    async def bulk_reject(self, application_ids: Iterable[UUID], actor_id: UUID, reason: str) -> BulkResult:
        return await self.bulk_update_status(application_ids, ApplicationStatus.REJECTED, actor_id, reason)

    async def bulk_move_to_stage(
        self,
        application_ids: Iterable[UUID],
        stage: ApplicationStatus,
        actor_id: UUID,
        notes: Optional[str] = None,
    ) -> BulkResult:
        stage = _parse_status(stage, "stage")
        if stage not in ADVANCEABLE_STATUSES:
            raise ValidationError(f"Cannot move applications to '{stage.value}'")
        return await self.bulk_update_status(application_ids, stage, actor_id, notes)

    # ==================== Employer flags ====================

    async def mark_as_viewed(self, application_id: UUID, actor_id: UUID) -> Application:
        application = await self.access.check_employer_access(application_id, actor_id)
        if not application.viewed_by_employer:
            application.viewed_by_employer = True
            await self._commit_flags(application)
        return application

    async def toggle_bookmark(self, application_id: UUID, actor_id: UUID) -> Application:
        application = await self.access.check_employer_access(application_id, actor_id)
        application.is_bookmarked = not application.is_bookmarked
        await self._commit_flags(application)
        return application

    async def _commit_flags(self, application: Application) -> None:
        try:
            await self.db.commit()
        except StaleDataError as exc:
            await self.db.rollback()
            raise ConcurrentUpdateError() from exc

    # ==================== Reads ====================

    async def get_stage_history(self, application_id: UUID, user_id: UUID):
        """Ledger entries in sequence order; candidate or employer may read."""
        await self._check_read_access(application_id, user_id)
        return await self.ledger.list_stages(application_id)

    async def _check_read_access(self, application_id: UUID, user_id: UUID) -> Application:
        application = await self.access.load_application(application_id)
        if application.candidate_id == user_id:
            return application
        return await self.access.check_employer_access(application_id, user_id)

    async def get_application_for_review(self, application_id: UUID, actor_id: UUID) -> ApplicationDetailResponse:
        """Employer view; the first open marks the application as viewed."""
        application = await self.mark_as_viewed(application_id, actor_id)
        return await self._build_detail(application, include_internal=True)

    async def get_application_detail(self, application_id: UUID, candidate_id: UUID) -> ApplicationDetailResponse:
        """Candidate view; internal notes are left out."""
        application = await self.access.check_application_ownership(application_id, candidate_id)
        return await self._build_detail(application, include_internal=False)

    async def _build_detail(self, application: Application, include_internal: bool) -> ApplicationDetailResponse:
        job = await lookups.get_job(self.db, application.job_id)
        company = await lookups.get_company(self.db, application.company_id)
        candidate = await lookups.get_user(self.db, application.candidate_id)
        stages = await self.ledger.list_stages(application.id)

        documents = await self.db.execute(
            select(ApplicationDocument)
            .where(ApplicationDocument.application_id == application.id)
            .order_by(ApplicationDocument.uploaded_at)
        )
        notes_query = select(ApplicationNote).where(ApplicationNote.application_id == application.id)
        if not include_internal:
            notes_query = notes_query.where(ApplicationNote.visibility == "public")
        notes = await self.db.execute(
            notes_query.order_by(ApplicationNote.is_pinned.desc(), ApplicationNote.created_at.desc())
        )
        interviews = await self.db.execute(
            select(Interview)
            .where(Interview.application_id == application.id)
            .order_by(Interview.scheduled_at)
        )

        return ApplicationDetailResponse(
            application=ApplicationResponse.model_validate(application),
            job=JobBrief(
                id=job.id,
                title=job.title,
                company_id=job.company_id,
                company_name=company.name if company else "",
                location=job.location,
                status=job.status,
            ) if job else None,
            applicant=ApplicantProfile(
                user_id=candidate.id,
                full_name=candidate.full_name,
                email=candidate.email,
                phone=candidate.phone,
                resume_url=application.resume_url,
            ) if candidate else None,
            stages=[StageResponse.model_validate(stage) for stage in stages],
            documents=[DocumentResponse.model_validate(doc) for doc in documents.scalars().all()],
            notes=[NoteResponse.model_validate(note) for note in notes.scalars().all()],
            interviews=[InterviewResponse.model_validate(i) for i in interviews.scalars().all()],
        )

    # ==================== Listings ====================

    def _summary_query(self):
        return (
            select(Application, Job.title, Company.name, User.full_name)
            .join(Job, Job.id == Application.job_id)
            .join(User, User.id == Application.candidate_id)
            .outerjoin(Company, Company.id == Application.company_id)
        )

    @staticmethod
    def _apply_filter(query, filters: Optional[ApplicationFilter]):
        if filters is None:
            return query.order_by(Application.applied_at.desc())

        if filters.status is not None:
            query = query.where(Application.status == filters.status.value)
        if filters.source:
            query = query.where(Application.source == filters.source)
        if filters.min_score is not None:
            query = query.where(Application.match_score >= filters.min_score)
        if filters.max_score is not None:
            query = query.where(Application.match_score <= filters.max_score)
        if filters.viewed_only:
            query = query.where(Application.viewed_by_employer.is_(True))
        if filters.bookmarked_only:
            query = query.where(Application.is_bookmarked.is_(True))
        if filters.applied_after is not None:
            query = query.where(Application.applied_at >= filters.applied_after)
        if filters.applied_before is not None:
            query = query.where(Application.applied_at <= filters.applied_before)

        if filters.sort_by == "score_desc":
            return query.order_by(Application.match_score.desc(), Application.applied_at.desc())
        if filters.sort_by == "score_asc":
            return query.order_by(Application.match_score.asc(), Application.applied_at.desc())
        return query.order_by(Application.applied_at.desc())

    @staticmethod
    def _to_summary(row: Tuple) -> ApplicationSummary:
        application, job_title, company_name, candidate_name = row
        return ApplicationSummary(
            id=application.id,
            job_id=application.job_id,
            job_title=job_title or "",
            company_name=company_name or "",
            candidate_id=application.candidate_id,
            candidate_name=candidate_name or "",
            status=application.status,
            current_stage=application.status,
            match_score=float(application.match_score or 0),
            applied_at=application.applied_at,
            viewed_by_employer=application.viewed_by_employer,
            is_bookmarked=application.is_bookmarked,
            days_since_applied=(utcnow() - application.applied_at).days,
        )

    async def _paginate(self, query, filters, page: int, limit: Optional[int]) -> ApplicationListResponse:
        paging = clamp_page(page, limit)
        query = self._apply_filter(query, filters)

        total = await self.db.scalar(select(func.count()).select_from(query.order_by(None).subquery()))
        rows = await self.db.execute(query.offset(paging["offset"]).limit(paging["limit"]))
        return ApplicationListResponse(
            applications=[self._to_summary(row) for row in rows.all()],
            total=total or 0,
            page=paging["page"],
            limit=paging["limit"],
            total_pages=total_pages(total or 0, paging["limit"]),
        )

    async def list_candidate_applications(
        self,
        candidate_id: UUID,
        filters: Optional[ApplicationFilter] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> ApplicationListResponse:
        query = self._summary_query().where(Application.candidate_id == candidate_id)
        return await self._paginate(query, filters, page, limit)

    async def list_job_applications(
        self,
        job_id: UUID,
        actor_id: UUID,
        filters: Optional[ApplicationFilter] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> ApplicationListResponse:
        await self.access.check_job_access(job_id, actor_id)
        query = self._summary_query().where(Application.job_id == job_id)
        return await self._paginate(query, filters, page, limit)

    async def list_company_applications(
        self,
        company_id: UUID,
        actor_id: UUID,
        filters: Optional[ApplicationFilter] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> ApplicationListResponse:
        await self.access.check_company_access(company_id, actor_id)
        query = self._summary_query().where(Application.company_id == company_id)
        return await self._paginate(query, filters, page, limit)

    async def get_top_applicants(self, job_id: UUID, actor_id: UUID, limit: int = 10) -> List[ApplicationSummary]:
        """Highest match scores among applications still in play."""
        await self.access.check_job_access(job_id, actor_id)
        rows = await self.db.execute(
            self._summary_query()
            .where(
                Application.job_id == job_id,
                Application.status.notin_(
                    [ApplicationStatus.REJECTED.value, ApplicationStatus.WITHDRAWN.value]
                ),
            )
            .order_by(Application.match_score.desc(), Application.applied_at)
            .limit(limit)
        )
        return [self._to_summary(row) for row in rows.all()]

    async def get_recent_applications(
        self,
        company_id: UUID,
        actor_id: UUID,
        hours: int = 24,
        limit: int = 10,
    ) -> List[ApplicationSummary]:
        await self.access.check_company_access(company_id, actor_id)
        since: datetime = utcnow() - timedelta(hours=hours)
        rows = await self.db.execute(
            self._summary_query()
            .where(Application.company_id == company_id, Application.applied_at >= since)
            .order_by(Application.applied_at.desc())
            .limit(limit)
        )
        return [self._to_summary(row) for row in rows.all()]
