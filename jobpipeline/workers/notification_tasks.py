"""Notification delivery tasks (NOTIFICATION_BACKEND=celery)."""

import asyncio
from typing import Dict

import structlog

from jobpipeline.config import settings
from jobpipeline.db.session import build_engine, build_session_factory
from jobpipeline.schemas.notification import NotificationEvent
from jobpipeline.services.notification_dispatcher import NotificationDispatcher
from jobpipeline.services.senders import InAppNotificationSender, SMTPEmailSender
from jobpipeline.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)


async def _deliver(event: NotificationEvent) -> None:
    # Fresh engine per task: the worker runs each task in its own event loop
    engine = build_engine(settings.DATABASE_URL, pooled=False)
    try:
        dispatcher = NotificationDispatcher(
            in_app_sender=InAppNotificationSender(build_session_factory(engine)),
            email_sender=SMTPEmailSender(),
        )
        await dispatcher.deliver(event)
    finally:
        await engine.dispose()


@celery_app.task(name="jobpipeline.workers.notification_tasks.deliver_notification")
def deliver_notification(event_data: Dict) -> Dict:
    """
    Deliver one notification event through the in-app and email channels.

    Args:
        event_data: NotificationEvent serialized with ``model_dump(mode="json")``

    Returns:
        Dict with status and the event kind
    """
    event = NotificationEvent.model_validate(event_data)
    logger.info(
        "notification_task_started",
        kind=event.kind.value,
        application_id=str(event.application_id),
    )
    asyncio.run(_deliver(event))
    return {"status": "processed", "kind": event.kind.value}
