"""Pydantic schemas for interview scheduling."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from jobpipeline.utils.constants import INTERVIEW_TYPES


class InterviewCreate(BaseModel):
    """Schedule an interview for an application."""
    application_id: UUID
    stage_id: Optional[UUID] = None
    interviewer_id: Optional[UUID] = None
    scheduled_at: datetime
    interview_type: str = "online"
    meeting_link: Optional[str] = None
    location: Optional[str] = None

    @field_validator("interview_type")
    @classmethod
    def validate_interview_type(cls, v):
        if v not in INTERVIEW_TYPES:
            raise ValueError(f'interview_type must be one of: {", ".join(INTERVIEW_TYPES)}')
        return v


class InterviewReschedule(BaseModel):
    scheduled_at: datetime
    reason: Optional[str] = None
    meeting_link: Optional[str] = None
    location: Optional[str] = None


class InterviewCancel(BaseModel):
    reason: Optional[str] = None


class InterviewComplete(BaseModel):
    """Evaluation recorded when an interview is completed."""
    overall_score: Optional[float] = Field(None, ge=0, le=100)
    technical_score: Optional[float] = Field(None, ge=0, le=100)
    communication_score: Optional[float] = Field(None, ge=0, le=100)
    personality_score: Optional[float] = Field(None, ge=0, le=100)
    remarks: Optional[str] = None
    feedback_summary: Optional[str] = None


class InterviewResponse(BaseModel):
    id: UUID
    application_id: UUID
    stage_id: Optional[UUID] = None
    interviewer_id: Optional[UUID] = None
    scheduled_at: datetime
    ended_at: Optional[datetime] = None
    interview_type: str
    meeting_link: Optional[str] = None
    location: Optional[str] = None
    status: str
    overall_score: Optional[float] = None
    technical_score: Optional[float] = None
    communication_score: Optional[float] = None
    personality_score: Optional[float] = None
    remarks: Optional[str] = None
    feedback_summary: Optional[str] = None
    reminder_sent_at: Optional[datetime] = None

    class Config:
        from_attributes = True
