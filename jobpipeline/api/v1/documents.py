"""
Documents API
Candidate documents and employer verification
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from jobpipeline.api.deps import get_current_user_id, get_document_service
from jobpipeline.core.exceptions import AuthorizationError
from jobpipeline.schemas.document import (
    DocumentCreate,
    DocumentListResponse,
    DocumentResponse,
    DocumentUpdate,
    DocumentVerify,
)
from jobpipeline.services.document_service import DocumentService

router = APIRouter()


@router.post(
    "/applications/{application_id}",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    application_id: UUID,
    document_in: DocumentCreate,
    current_user_id: UUID = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    """
    Attach a document reference to your application

    The file itself is stored elsewhere; only its URL is recorded.
    """
    return await service.upload_document(application_id, current_user_id, document_in)


@router.get("/applications/{application_id}", response_model=List[DocumentResponse])
async def list_documents(
    application_id: UUID,
    document_type: Optional[str] = Query(None),
    current_user_id: UUID = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    return await service.list_documents(application_id, current_user_id, document_type)


@router.get("/unverified", response_model=DocumentListResponse)
async def unverified_documents(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    current_user_id: UUID = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    """Unverified documents on applications to the caller's companies."""
    company_ids = await service.access.employer_company_ids(current_user_id)
    if not company_ids:
        raise AuthorizationError("Employer access required")
    documents, total = await service.get_unverified_documents(page, limit, company_ids)
    return DocumentListResponse(
        documents=[DocumentResponse.model_validate(document) for document in documents],
        total=total,
    )


@router.patch("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: UUID,
    document_in: DocumentUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    return await service.update_document(document_id, current_user_id, document_in)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    await service.delete_document(document_id, current_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{document_id}/verify", response_model=DocumentResponse)
async def verify_document(
    document_id: UUID,
    verify_in: DocumentVerify,
    current_user_id: UUID = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    return await service.verify_document(document_id, current_user_id, verify_in.notes)
