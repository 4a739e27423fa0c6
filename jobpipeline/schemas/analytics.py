"""
Pydantic schemas for pipeline analytics
Read-only views derived from the stage ledger, documents and interviews
"""

from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


# ==================== Per-application ====================

class TimelineEvent(BaseModel):
    """One entry in an application's timeline (kept in source order)."""
    event_type: str  # submitted, stage_change, interview_scheduled
    title: str
    description: Optional[str] = None
    timestamp: datetime
    reference_id: Optional[UUID] = None


class StageProgress(BaseModel):
    stage_id: UUID
    sequence: int
    stage_name: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration: Optional[str] = None  # "12.5 hours"
    status: str  # completed, in_progress


class DocumentStats(BaseModel):
    total: int = 0
    verified: int = 0
    unverified: int = 0
    by_type: Dict[str, int] = Field(default_factory=dict)


class InterviewStats(BaseModel):
    total: int = 0
    completed: int = 0
    scheduled: int = 0
    cancelled: int = 0
    no_show: int = 0
    average_score: Optional[float] = None
    highest_score: Optional[float] = None


class MatchAnalysis(BaseModel):
    overall_score: float


class ApplicationAnalytics(BaseModel):
    application_id: UUID
    status: str
    days_in_pipeline: int
    timeline: List[TimelineEvent]
    stage_progress: List[StageProgress]
    document_stats: DocumentStats
    interview_stats: InterviewStats
    match_analysis: MatchAnalysis


# ==================== Aggregates ====================

class FunnelStage(BaseModel):
    stage: str
    count: int
    percentage: float  # share of applications that reached this stage


class ConversionFunnel(BaseModel):
    job_id: Optional[UUID] = None
    company_id: Optional[UUID] = None
    total_applications: int
    stages: List[FunnelStage]
    overall_conversion_rate: float


class StageTimeStats(BaseModel):
    stage: str
    average_hours: float
    completed_count: int


class SourceStats(BaseModel):
    source: str
    count: int
    hired: int
    conversion_rate: float


class ApplicationTrend(BaseModel):
    """Applications submitted on one day."""
    day: date
    total_applications: int
    hired_count: int
    rejected_count: int
    average_match_score: float


class JobAnalytics(BaseModel):
    job_id: UUID
    job_title: str
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    total_applications: int
    status_breakdown: Dict[str, int]
    average_match_score: float
    conversion_rate: float
    average_time_to_hire_days: Optional[float] = None
    funnel: ConversionFunnel
    stage_times: List[StageTimeStats]


class CompanyAnalytics(BaseModel):
    company_id: UUID
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    total_jobs: int
    total_applications: int
    status_breakdown: Dict[str, int]
    average_match_score: float
    conversion_rate: float
    average_time_to_hire_days: Optional[float] = None
    stage_times: List[StageTimeStats]
    sources: List[SourceStats]


class CandidateStats(BaseModel):
    candidate_id: UUID
    total_applications: int
    active_applications: int
    status_breakdown: Dict[str, int]
    interviews_scheduled: int
    offers_received: int
    success_rate: float
