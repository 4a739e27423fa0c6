"""Pydantic schemas for application documents."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from jobpipeline.utils.constants import DOCUMENT_TYPES


class DocumentCreate(BaseModel):
    """Document reference supplied by the candidate."""
    document_type: str = Field("cv", description="cv, cover_letter, portfolio, certificate, transcript, other")
    file_url: str = Field(..., min_length=1)
    file_name: Optional[str] = Field(None, max_length=255)
    file_type: Optional[str] = Field(None, max_length=50)
    file_size: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator("document_type")
    @classmethod
    def validate_document_type(cls, v):
        if v not in DOCUMENT_TYPES:
            raise ValueError(f'document_type must be one of: {", ".join(DOCUMENT_TYPES)}')
        return v


class DocumentUpdate(BaseModel):
    file_name: Optional[str] = Field(None, max_length=255)
    file_url: Optional[str] = None
    notes: Optional[str] = None


class DocumentVerify(BaseModel):
    notes: Optional[str] = None


class DocumentResponse(BaseModel):
    id: UUID
    application_id: UUID
    user_id: UUID
    document_type: str
    file_name: Optional[str] = None
    file_url: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_at: datetime
    is_verified: bool
    verified_by: Optional[UUID] = None
    verified_at: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class DocumentListResponse(BaseModel):
    documents: List[DocumentResponse]
    total: int
