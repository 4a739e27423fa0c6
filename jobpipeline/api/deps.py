"""
API Dependencies
Database session, caller identity and service factories for the endpoints.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jobpipeline.core.security import get_current_user_id
from jobpipeline.db.session import get_db
from jobpipeline.services.analytics_service import AnalyticsService
from jobpipeline.services.application_service import ApplicationService
from jobpipeline.services.document_service import DocumentService
from jobpipeline.services.interview_service import InterviewService
from jobpipeline.services.note_service import NoteService
from jobpipeline.services.notification_dispatcher import NotificationDispatcher, get_dispatcher

__all__ = [
    "get_db",
    "get_current_user_id",
    "get_notification_dispatcher",
    "get_application_service",
    "get_interview_service",
    "get_document_service",
    "get_note_service",
    "get_analytics_service",
]


def get_notification_dispatcher() -> NotificationDispatcher:
    return get_dispatcher()


def get_application_service(
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> ApplicationService:
    return ApplicationService(db, dispatcher)


def get_interview_service(
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> InterviewService:
    return InterviewService(db, dispatcher)


def get_document_service(db: AsyncSession = Depends(get_db)) -> DocumentService:
    return DocumentService(db)


def get_note_service(db: AsyncSession = Depends(get_db)) -> NoteService:
    return NoteService(db)


def get_analytics_service(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)
