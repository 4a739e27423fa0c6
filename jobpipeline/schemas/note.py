"""Pydantic schemas for reviewer notes."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from jobpipeline.utils.constants import NOTE_SENTIMENTS, NOTE_TYPES, NOTE_VISIBILITIES


def _check_choice(value: Optional[str], allowed, field: str) -> Optional[str]:
    if value is not None and value not in allowed:
        raise ValueError(f'{field} must be one of: {", ".join(allowed)}')
    return value


class NoteCreate(BaseModel):
    """Omitted optional fields get defaults in the service."""
    stage_id: Optional[UUID] = None
    note_type: Optional[str] = None
    note_text: str = Field(..., min_length=1)
    visibility: Optional[str] = None
    sentiment: Optional[str] = None
    is_pinned: bool = False

    @field_validator("note_type")
    @classmethod
    def validate_note_type(cls, v):
        return _check_choice(v, NOTE_TYPES, "note_type")

    @field_validator("visibility")
    @classmethod
    def validate_visibility(cls, v):
        return _check_choice(v, NOTE_VISIBILITIES, "visibility")

    @field_validator("sentiment")
    @classmethod
    def validate_sentiment(cls, v):
        return _check_choice(v, NOTE_SENTIMENTS, "sentiment")


class NoteUpdate(BaseModel):
    note_text: Optional[str] = Field(None, min_length=1)
    visibility: Optional[str] = None
    sentiment: Optional[str] = None
    is_pinned: Optional[bool] = None

    @field_validator("visibility")
    @classmethod
    def validate_visibility(cls, v):
        return _check_choice(v, NOTE_VISIBILITIES, "visibility")

    @field_validator("sentiment")
    @classmethod
    def validate_sentiment(cls, v):
        return _check_choice(v, NOTE_SENTIMENTS, "sentiment")


class NoteResponse(BaseModel):
    id: UUID
    application_id: UUID
    stage_id: Optional[UUID] = None
    author_id: UUID
    note_type: str
    note_text: str
    visibility: str
    sentiment: str
    is_pinned: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
