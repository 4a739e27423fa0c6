"""
Notification dispatch
Fire-and-forget delivery of pipeline events to the candidate.

Events are dispatched after the triggering write has committed. Delivery
runs outside the caller's request; every failure is logged and dropped
(at-most-once, no retry).
"""

import asyncio
from typing import Optional, Set

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from jobpipeline.config import settings
from jobpipeline.models.application import Application
from jobpipeline.schemas.notification import NotificationEvent
from jobpipeline.services import lookups
from jobpipeline.services.senders import (
    InAppNotificationSender,
    NotificationSender,
    SMTPEmailSender,
    send_event,
)
from jobpipeline.utils.constants import NotificationKind

logger = structlog.get_logger(__name__)


async def build_event(
    db: AsyncSession,
    application: Application,
    kind: NotificationKind,
    **fields,
) -> Optional[NotificationEvent]:
    """Assemble the payload for ``application``; None when the candidate is gone."""
    candidate = await lookups.get_user(db, application.candidate_id)
    if candidate is None:
        logger.warning(
            "notification_recipient_missing",
            application_id=str(application.id),
            candidate_id=str(application.candidate_id),
        )
        return None

    job = await lookups.get_job(db, application.job_id)
    company = await lookups.get_company(db, application.company_id)
    return NotificationEvent(
        kind=kind,
        recipient_id=candidate.id,
        recipient_email=candidate.email,
        recipient_name=candidate.full_name or "",
        application_id=application.id,
        job_id=application.job_id,
        job_title=job.title if job else "",
        company_name=company.name if company else "",
        **fields,
    )


class NotificationDispatcher:
    """Hands events to the in-app and email senders without blocking the caller."""

    def __init__(
        self,
        in_app_sender: Optional[NotificationSender] = None,
        email_sender: Optional[NotificationSender] = None,
        backend: str = "inline",
    ):
        self.in_app_sender = in_app_sender
        self.email_sender = email_sender
        self.backend = backend
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def notify(
        self,
        db: AsyncSession,
        application: Application,
        kind: NotificationKind,
        **fields,
    ) -> None:
        """Build the event for ``application`` and dispatch it."""
        try:
            event = await build_event(db, application, kind, **fields)
        except Exception:
            logger.exception(
                "notification_build_failed",
                application_id=str(application.id),
                kind=kind.value,
            )
            return
        if event is not None:
            self.dispatch(event)

    def dispatch(self, event: NotificationEvent) -> None:
        if self.backend == "celery":
            self._enqueue(event)
            return

        task = asyncio.create_task(self.deliver(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _enqueue(self, event: NotificationEvent) -> None:
        from jobpipeline.workers.notification_tasks import deliver_notification

        try:
            deliver_notification.delay(event.model_dump(mode="json"))
        except Exception:
            logger.exception(
                "notification_enqueue_failed",
                kind=event.kind.value,
                application_id=str(event.application_id),
            )

    async def deliver(self, event: NotificationEvent) -> None:
        """Run both channels; one failing never stops the other."""
        for channel, sender in (("in_app", self.in_app_sender), ("email", self.email_sender)):
            if sender is None:
                continue
            try:
                await send_event(sender, event)
            except Exception:
                logger.exception(
                    "notification_channel_failed",
                    channel=channel,
                    kind=event.kind.value,
                    application_id=str(event.application_id),
                    recipient_id=str(event.recipient_id),
                )

    async def drain(self) -> None:
        """Wait for in-flight deliveries (shutdown and tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


_dispatcher: Optional[NotificationDispatcher] = None


def get_dispatcher() -> NotificationDispatcher:
    """Process-wide dispatcher wired to the configured senders."""
    global _dispatcher
    if _dispatcher is None:
        from jobpipeline.db.session import AsyncSessionLocal

        _dispatcher = NotificationDispatcher(
            in_app_sender=InAppNotificationSender(AsyncSessionLocal),
            email_sender=SMTPEmailSender(),
            backend=settings.NOTIFICATION_BACKEND,
        )
    return _dispatcher
