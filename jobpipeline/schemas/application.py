"""
Pydantic schemas for application pipeline APIs
Request/Response models
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from jobpipeline.schemas.document import DocumentCreate, DocumentResponse
from jobpipeline.schemas.interview import InterviewResponse
from jobpipeline.schemas.note import NoteResponse
from jobpipeline.utils.constants import APPLICATION_SORTS, ApplicationStatus


# ==================== Requests ====================

class ApplicationSubmit(BaseModel):
    """Candidate submission to a job posting."""
    job_id: UUID
    source: Optional[str] = Field(None, max_length=50, description="Channel the application came from")
    resume_url: Optional[str] = None
    cover_note: Optional[str] = Field(None, max_length=5000)
    match_score: float = Field(0.0, ge=0, le=100, description="Precomputed match score (opaque)")
    documents: List[DocumentCreate] = Field(default_factory=list)


class StageAdvance(BaseModel):
    """Move an application to a named stage."""
    stage: ApplicationStatus
    notes: Optional[str] = None


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class BulkStatusUpdate(BaseModel):
    """Apply one status change to many applications."""
    application_ids: List[UUID] = Field(..., min_length=1)
    status: ApplicationStatus
    reason: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v in (ApplicationStatus.APPLIED, ApplicationStatus.WITHDRAWN):
            raise ValueError("Bulk updates cannot move applications to applied or withdrawn")
        return v


class ApplicationFilter(BaseModel):
    """List filters shared by candidate, job and company listings."""
    status: Optional[ApplicationStatus] = None
    source: Optional[str] = None
    min_score: Optional[float] = Field(None, ge=0, le=100)
    max_score: Optional[float] = Field(None, ge=0, le=100)
    viewed_only: Optional[bool] = None
    bookmarked_only: Optional[bool] = None
    applied_after: Optional[datetime] = None
    applied_before: Optional[datetime] = None
    sort_by: str = "latest"

    @field_validator("sort_by")
    @classmethod
    def validate_sort(cls, v):
        if v not in APPLICATION_SORTS:
            raise ValueError(f'sort_by must be one of: {", ".join(APPLICATION_SORTS)}')
        return v


# ==================== Responses ====================

class StageResponse(BaseModel):
    """Stage ledger entry."""
    id: UUID
    application_id: UUID
    sequence: int
    stage_name: str
    description: Optional[str] = None
    handled_by: Optional[UUID] = None
    started_at: datetime
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class ApplicationResponse(BaseModel):
    id: UUID
    job_id: UUID
    candidate_id: UUID
    company_id: Optional[UUID] = None
    status: str
    source: str
    resume_url: Optional[str] = None
    cover_note: Optional[str] = None
    match_score: float
    viewed_by_employer: bool
    is_bookmarked: bool
    applied_at: datetime

    class Config:
        from_attributes = True


class ApplicationSummary(BaseModel):
    """Row in an application listing."""
    id: UUID
    job_id: UUID
    job_title: str = ""
    company_name: str = ""
    candidate_id: UUID
    candidate_name: str = ""
    status: str
    current_stage: str
    match_score: float
    applied_at: datetime
    viewed_by_employer: bool
    is_bookmarked: bool
    days_since_applied: int


class ApplicationListResponse(BaseModel):
    applications: List[ApplicationSummary]
    total: int
    page: int
    limit: int
    total_pages: int


class JobBrief(BaseModel):
    id: UUID
    title: str
    company_id: UUID
    company_name: str = ""
    location: Optional[str] = None
    status: str


class ApplicantProfile(BaseModel):
    user_id: UUID
    full_name: str
    email: str
    phone: Optional[str] = None
    resume_url: Optional[str] = None


class ApplicationDetailResponse(BaseModel):
    """Everything known about one application."""
    application: ApplicationResponse
    job: Optional[JobBrief] = None
    applicant: Optional[ApplicantProfile] = None
    stages: List[StageResponse] = Field(default_factory=list)
    documents: List[DocumentResponse] = Field(default_factory=list)
    notes: List[NoteResponse] = Field(default_factory=list)
    interviews: List[InterviewResponse] = Field(default_factory=list)


class BulkResult(BaseModel):
    """Outcome of a bulk operation; skipped items are not errors."""
    succeeded: List[UUID] = Field(default_factory=list)
    skipped: List[UUID] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)


class ApplyEligibility(BaseModel):
    job_id: UUID
    can_apply: bool
    code: Optional[str] = None
    reason: Optional[str] = None
