"""
Analytics service
Read-only views over applications, the stage ledger, documents and interviews.

Per-application views load that application's rows. Job and company level
numbers (status breakdown, funnel, stage durations, time to hire) are
aggregated in SQL.
"""

from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

import structlog
from sqlalchemy import case, distinct, extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobpipeline.models.application import Application, ApplicationStage
from jobpipeline.models.document import ApplicationDocument
from jobpipeline.models.interview import Interview
from jobpipeline.models.job import Job
from jobpipeline.schemas.analytics import (
    ApplicationAnalytics,
    ApplicationTrend,
    CandidateStats,
    CompanyAnalytics,
    ConversionFunnel,
    DocumentStats,
    FunnelStage,
    InterviewStats,
    JobAnalytics,
    MatchAnalysis,
    SourceStats,
    StageProgress,
    StageTimeStats,
    TimelineEvent,
)
from jobpipeline.services.access_control import AccessControl
from jobpipeline.services.stage_ledger import StageLedger
from jobpipeline.utils.constants import (
    FUNNEL_STAGES,
    IN_PROGRESS_STATUSES,
    ApplicationStatus,
    InterviewStatus,
)
from jobpipeline.utils.helpers import format_hours, percentage, to_naive_utc, utcnow

logger = structlog.get_logger(__name__)

HIRED = ApplicationStatus.HIRED.value


def _hours_between(dialect: str, start, end):
    """SQL expression for (end - start) in hours on the given dialect."""
    if dialect == "sqlite":
        return (func.julianday(end) - func.julianday(start)) * 24.0
    return extract("epoch", end - start) / 3600.0


class AnalyticsService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.access = AccessControl(db)
        self.ledger = StageLedger(db)

    @property
    def dialect(self) -> str:
        return self.db.bind.dialect.name

    # ==================== Per-application ====================

    async def get_application_analytics(self, application_id: UUID, user_id: UUID) -> ApplicationAnalytics:
        """
        Timeline, stage progress and document/interview statistics.

        The timeline keeps source order (submission, then ledger entries,
        then interviews) and is not re-sorted by timestamp.
        """
        application = await self.access.load_application(application_id)
        if application.candidate_id != user_id:
            await self.access.check_company_access(application.company_id, user_id)

        stages = await self.ledger.list_stages(application_id)
        documents = (
            await self.db.execute(
                select(ApplicationDocument).where(ApplicationDocument.application_id == application_id)
            )
        ).scalars().all()
        interviews = (
            await self.db.execute(
                select(Interview)
                .where(Interview.application_id == application_id)
                .order_by(Interview.scheduled_at)
            )
        ).scalars().all()

        timeline = [
            TimelineEvent(
                event_type="submitted",
                title="Application submitted",
                timestamp=application.applied_at,
                reference_id=application.id,
            )
        ]
        timeline.extend(
            TimelineEvent(
                event_type="stage_change",
                title=stage.stage_name,
                description=stage.description,
                timestamp=stage.started_at,
                reference_id=stage.id,
            )
            for stage in stages
        )
        timeline.extend(
            TimelineEvent(
                event_type="interview_scheduled",
                title=f"{interview.interview_type} interview",
                description=interview.status,
                timestamp=interview.scheduled_at,
                reference_id=interview.id,
            )
            for interview in interviews
        )

        progress = [
            StageProgress(
                stage_id=stage.id,
                sequence=stage.sequence,
                stage_name=stage.stage_name,
                started_at=stage.started_at,
                completed_at=stage.completed_at,
                duration=format_hours(stage.duration) if stage.is_completed else None,
                status="completed" if stage.is_completed else "in_progress",
            )
            for stage in stages
        ]

        return ApplicationAnalytics(
            application_id=application.id,
            status=application.status,
            days_in_pipeline=(utcnow() - application.applied_at).days,
            timeline=timeline,
            stage_progress=progress,
            document_stats=self._document_stats(documents),
            interview_stats=self._interview_stats(interviews),
            match_analysis=MatchAnalysis(overall_score=float(application.match_score or 0)),
        )

    @staticmethod
    def _document_stats(documents) -> DocumentStats:
        verified = sum(1 for doc in documents if doc.is_verified)
        return DocumentStats(
            total=len(documents),
            verified=verified,
            unverified=len(documents) - verified,
            by_type=dict(Counter(doc.document_type for doc in documents)),
        )

    @staticmethod
    def _interview_stats(interviews) -> InterviewStats:
        by_status = Counter(interview.status for interview in interviews)
        scores = [float(i.overall_score) for i in interviews if i.overall_score is not None]
        return InterviewStats(
            total=len(interviews),
            completed=by_status[InterviewStatus.COMPLETED.value],
            scheduled=by_status[InterviewStatus.SCHEDULED.value] + by_status[InterviewStatus.RESCHEDULED.value],
            cancelled=by_status[InterviewStatus.CANCELLED.value],
            no_show=by_status[InterviewStatus.NO_SHOW.value],
            average_score=round(sum(scores) / len(scores), 2) if scores else None,
            highest_score=max(scores) if scores else None,
        )

    # ==================== SQL aggregates ====================

    @staticmethod
    def _scope(query, job_id: Optional[UUID], company_id: Optional[UUID], start=None, end=None):
        if job_id is not None:
            query = query.where(Application.job_id == job_id)
        if company_id is not None:
            query = query.where(Application.company_id == company_id)
        if start is not None:
            query = query.where(Application.applied_at >= start)
        if end is not None:
            query = query.where(Application.applied_at <= end)
        return query

    async def _status_breakdown(self, job_id=None, company_id=None, start=None, end=None) -> Dict[str, int]:
        query = self._scope(
            select(Application.status, func.count(Application.id)).group_by(Application.status),
            job_id, company_id, start, end,
        )
        rows = await self.db.execute(query)
        return {status: count for status, count in rows.all()}

    async def _average_match_score(self, job_id=None, company_id=None, start=None, end=None) -> float:
        value = await self.db.scalar(
            self._scope(select(func.avg(Application.match_score)), job_id, company_id, start, end)
        )
        return round(float(value), 2) if value is not None else 0.0

    async def _funnel(self, job_id=None, company_id=None, start=None, end=None) -> ConversionFunnel:
        """Applications that ever reached each stage, read from the ledger."""
        query = self._scope(
            select(ApplicationStage.stage_name, func.count(distinct(ApplicationStage.application_id)))
            .join(Application, Application.id == ApplicationStage.application_id)
            .group_by(ApplicationStage.stage_name),
            job_id, company_id, start, end,
        )
        reached = {stage: count for stage, count in (await self.db.execute(query)).all()}
        total = await self.db.scalar(
            self._scope(select(func.count(Application.id)), job_id, company_id, start, end)
        ) or 0

        stages = [
            FunnelStage(
                stage=stage.value,
                count=reached.get(stage.value, 0),
                percentage=percentage(reached.get(stage.value, 0), total),
            )
            for stage in FUNNEL_STAGES
        ]
        return ConversionFunnel(
            job_id=job_id,
            company_id=company_id,
            total_applications=total,
            stages=stages,
            overall_conversion_rate=percentage(reached.get(HIRED, 0), total),
        )

    async def _stage_times(self, job_id=None, company_id=None, start=None, end=None) -> List[StageTimeStats]:
        hours = _hours_between(self.dialect, ApplicationStage.started_at, ApplicationStage.completed_at)
        query = self._scope(
            select(ApplicationStage.stage_name, func.avg(hours), func.count(ApplicationStage.id))
            .join(Application, Application.id == ApplicationStage.application_id)
            .where(ApplicationStage.completed_at.is_not(None))
            .group_by(ApplicationStage.stage_name),
            job_id, company_id, start, end,
        )
        rows = {stage: (avg, count) for stage, avg, count in (await self.db.execute(query)).all()}
        return [
            StageTimeStats(
                stage=stage.value,
                average_hours=round(float(rows[stage.value][0] or 0), 1),
                completed_count=rows[stage.value][1],
            )
            for stage in FUNNEL_STAGES
            if stage.value in rows
        ]

    async def _average_time_to_hire(self, job_id=None, company_id=None, start=None, end=None) -> Optional[float]:
        """Days from submission to the hired ledger entry."""
        days = _hours_between(self.dialect, Application.applied_at, ApplicationStage.started_at) / 24.0
        value = await self.db.scalar(
            self._scope(
                select(func.avg(days))
                .select_from(ApplicationStage)
                .join(Application, Application.id == ApplicationStage.application_id)
                .where(ApplicationStage.stage_name == HIRED),
                job_id, company_id, start, end,
            )
        )
        return round(float(value), 1) if value is not None else None

    # ==================== Public aggregates ====================

    async def get_conversion_funnel(self, job_id: UUID, actor_id: UUID) -> ConversionFunnel:
        await self.access.check_job_access(job_id, actor_id)
        return await self._funnel(job_id=job_id)

    async def get_average_time_per_stage(self, company_id: UUID, actor_id: UUID) -> List[StageTimeStats]:
        await self.access.check_company_access(company_id, actor_id)
        return await self._stage_times(company_id=company_id)

    async def get_job_analytics(
        self,
        job_id: UUID,
        actor_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> JobAnalytics:
        job = await self.access.check_job_access(job_id, actor_id)
        start, end = to_naive_utc(start), to_naive_utc(end)
        logger.debug("job_analytics_requested", job_id=str(job_id), start=start, end=end)

        breakdown = await self._status_breakdown(job_id=job_id, start=start, end=end)
        total = sum(breakdown.values())
        return JobAnalytics(
            job_id=job.id,
            job_title=job.title,
            period_start=start,
            period_end=end,
            total_applications=total,
            status_breakdown=breakdown,
            average_match_score=await self._average_match_score(job_id=job_id, start=start, end=end),
            conversion_rate=percentage(breakdown.get(HIRED, 0), total),
            average_time_to_hire_days=await self._average_time_to_hire(job_id=job_id, start=start, end=end),
            funnel=await self._funnel(job_id=job_id, start=start, end=end),
            stage_times=await self._stage_times(job_id=job_id, start=start, end=end),
        )

    async def get_company_analytics(
        self,
        company_id: UUID,
        actor_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> CompanyAnalytics:
        await self.access.check_company_access(company_id, actor_id)
        start, end = to_naive_utc(start), to_naive_utc(end)
        logger.debug("company_analytics_requested", company_id=str(company_id), start=start, end=end)

        breakdown = await self._status_breakdown(company_id=company_id, start=start, end=end)
        total = sum(breakdown.values())
        total_jobs = await self.db.scalar(
            select(func.count(Job.id)).where(Job.company_id == company_id)
        )
        return CompanyAnalytics(
            company_id=company_id,
            period_start=start,
            period_end=end,
            total_jobs=total_jobs or 0,
            total_applications=total,
            status_breakdown=breakdown,
            average_match_score=await self._average_match_score(company_id=company_id, start=start, end=end),
            conversion_rate=percentage(breakdown.get(HIRED, 0), total),
            average_time_to_hire_days=await self._average_time_to_hire(
                company_id=company_id, start=start, end=end
            ),
            stage_times=await self._stage_times(company_id=company_id, start=start, end=end),
            sources=await self._sources(company_id),
        )

    async def _sources(self, company_id: UUID) -> List[SourceStats]:
        hired = func.sum(case((Application.status == HIRED, 1), else_=0))
        rows = await self.db.execute(
            select(Application.source, func.count(Application.id), hired)
            .where(Application.company_id == company_id)
            .group_by(Application.source)
            .order_by(func.count(Application.id).desc())
        )
        return [
            SourceStats(
                source=source,
                count=count,
                hired=int(hired_count or 0),
                conversion_rate=percentage(int(hired_count or 0), count),
            )
            for source, count, hired_count in rows.all()
        ]

    async def get_source_analytics(self, company_id: UUID, actor_id: UUID) -> List[SourceStats]:
        await self.access.check_company_access(company_id, actor_id)
        return await self._sources(company_id)

    async def get_application_trends(
        self,
        company_id: UUID,
        actor_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[ApplicationTrend]:
        """Per-day submission counts for a company, newest day first."""
        await self.access.check_company_access(company_id, actor_id)
        start, end = to_naive_utc(start), to_naive_utc(end)

        day = func.date(Application.applied_at)
        rows = await self.db.execute(
            self._scope(
                select(
                    day,
                    func.count(Application.id),
                    func.sum(case((Application.status == HIRED, 1), else_=0)),
                    func.sum(case((Application.status == ApplicationStatus.REJECTED.value, 1), else_=0)),
                    func.avg(Application.match_score),
                )
                .group_by(day)
                .order_by(day.desc()),
                None, company_id, start, end,
            )
        )
        return [
            ApplicationTrend(
                day=applied_on,
                total_applications=count,
                hired_count=int(hired or 0),
                rejected_count=int(rejected or 0),
                average_match_score=round(float(score), 2) if score is not None else 0.0,
            )
            for applied_on, count, hired, rejected, score in rows.all()
        ]

    async def get_candidate_stats(self, candidate_id: UUID) -> CandidateStats:
        breakdown = await self._status_breakdown_for_candidate(candidate_id)
        total = sum(breakdown.values())

        interviews = await self.db.scalar(
            select(func.count(Interview.id))
            .join(Application, Application.id == Interview.application_id)
            .where(Application.candidate_id == candidate_id)
        )
        offers = await self.db.scalar(
            select(func.count(distinct(ApplicationStage.application_id)))
            .join(Application, Application.id == ApplicationStage.application_id)
            .where(
                Application.candidate_id == candidate_id,
                ApplicationStage.stage_name == ApplicationStatus.OFFERED.value,
            )
        )
        return CandidateStats(
            candidate_id=candidate_id,
            total_applications=total,
            active_applications=sum(
                count
                for status, count in breakdown.items()
                if status in IN_PROGRESS_STATUSES or status == ApplicationStatus.APPLIED.value
            ),
            status_breakdown=breakdown,
            interviews_scheduled=interviews or 0,
            offers_received=offers or 0,
            success_rate=percentage(breakdown.get(HIRED, 0), total),
        )

    async def _status_breakdown_for_candidate(self, candidate_id: UUID) -> Dict[str, int]:
        rows = await self.db.execute(
            select(Application.status, func.count(Application.id))
            .where(Application.candidate_id == candidate_id)
            .group_by(Application.status)
        )
        return {status: count for status, count in rows.all()}
