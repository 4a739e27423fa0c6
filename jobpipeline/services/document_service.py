"""
Document service
Candidate-owned file references attached to an application.
"""

from typing import List, Optional, Tuple
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobpipeline.core.exceptions import AuthorizationError, DocumentNotFoundError
from jobpipeline.models.application import Application
from jobpipeline.models.document import ApplicationDocument
from jobpipeline.schemas.document import DocumentCreate, DocumentUpdate
from jobpipeline.services.access_control import AccessControl
from jobpipeline.utils.helpers import clamp_page

logger = structlog.get_logger(__name__)


class DocumentService:
    """Upload, edit, delete (candidate) and verify (employer) documents."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.access = AccessControl(db)

    async def _load(self, document_id: UUID) -> ApplicationDocument:
        result = await self.db.execute(
            select(ApplicationDocument).where(ApplicationDocument.id == document_id)
        )
        document = result.scalar_one_or_none()
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return document

    async def _load_owned(self, document_id: UUID, user_id: UUID) -> ApplicationDocument:
        document = await self._load(document_id)
        await self.access.check_application_ownership(document.application_id, user_id)
        if document.user_id != user_id:
            raise AuthorizationError("Only the uploader can change this document")
        return document

    async def upload_document(self, application_id: UUID, user_id: UUID, data: DocumentCreate) -> ApplicationDocument:
        await self.access.check_application_ownership(application_id, user_id)

        document = ApplicationDocument(
            application_id=application_id,
            user_id=user_id,
            document_type=data.document_type,
            file_name=data.file_name,
            file_url=data.file_url,
            file_type=data.file_type,
            file_size=data.file_size,
            notes=data.notes,
        )
        self.db.add(document)
        await self.db.commit()

        logger.info(
            "document_uploaded",
            document_id=str(document.id),
            application_id=str(application_id),
            document_type=document.document_type,
        )
        return document

    async def update_document(self, document_id: UUID, user_id: UUID, data: DocumentUpdate) -> ApplicationDocument:
        document = await self._load_owned(document_id, user_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(document, field, value)
        await self.db.commit()
        return document

    async def delete_document(self, document_id: UUID, user_id: UUID) -> None:
        document = await self._load_owned(document_id, user_id)
        await self.db.delete(document)
        await self.db.commit()
        logger.info("document_deleted", document_id=str(document_id), user_id=str(user_id))

    async def verify_document(
        self, document_id: UUID, verifier_id: UUID, notes: Optional[str] = None
    ) -> ApplicationDocument:
        """Mark a document verified; the application's status is untouched."""
        document = await self._load(document_id)
        await self.access.check_employer_access(document.application_id, verifier_id)

        document.verify(verifier_id)
        if notes:
            document.notes = notes
        await self.db.commit()

        logger.info("document_verified", document_id=str(document_id), verifier_id=str(verifier_id))
        return document

    async def list_documents(
        self,
        application_id: UUID,
        user_id: UUID,
        document_type: Optional[str] = None,
    ) -> List[ApplicationDocument]:
        application = await self.access.load_application(application_id)
        if application.candidate_id != user_id:
            await self.access.check_company_access(application.company_id, user_id)

        query = select(ApplicationDocument).where(ApplicationDocument.application_id == application_id)
        if document_type:
            query = query.where(ApplicationDocument.document_type == document_type)
        result = await self.db.execute(query.order_by(ApplicationDocument.uploaded_at))
        return list(result.scalars().all())

    async def get_unverified_documents(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        company_ids: Optional[List[UUID]] = None,
    ) -> Tuple[List[ApplicationDocument], int]:
        """
        Unverified documents across applications, oldest first.

        ``company_ids`` narrows the query to applications of those companies.
        """
        paging = clamp_page(page, limit)
        conditions = [ApplicationDocument.is_verified.is_(False)]
        if company_ids is not None:
            conditions.append(
                ApplicationDocument.application_id.in_(
                    select(Application.id).where(Application.company_id.in_(company_ids))
                )
            )

        total = await self.db.scalar(
            select(func.count()).select_from(ApplicationDocument).where(*conditions)
        )
        result = await self.db.execute(
            select(ApplicationDocument)
            .where(*conditions)
            .order_by(ApplicationDocument.uploaded_at)
            .offset(paging["offset"])
            .limit(paging["limit"])
        )
        return list(result.scalars().all()), total or 0
