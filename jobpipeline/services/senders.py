"""
Notification senders
Email (SMTP) and in-app notification channels.

Each sender exposes one coroutine per event kind. All of them return True
on delivery and False when the channel is disabled; delivery errors are
raised and handled by the dispatcher.
"""

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Optional, Protocol

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jobpipeline.config import settings
from jobpipeline.models.notification import Notification
from jobpipeline.schemas.notification import NotificationEvent
from jobpipeline.utils.constants import NotificationKind

logger = structlog.get_logger(__name__)


class NotificationSender(Protocol):
    async def application_received(self, event: NotificationEvent) -> bool: ...

    async def status_updated(self, event: NotificationEvent) -> bool: ...

    async def interview_scheduled(self, event: NotificationEvent) -> bool: ...


class BaseSender:
    """Routes the three event calls to a single ``deliver``."""

    channel = "base"

    async def application_received(self, event: NotificationEvent) -> bool:
        return await self.deliver(event)

    async def status_updated(self, event: NotificationEvent) -> bool:
        return await self.deliver(event)

    async def interview_scheduled(self, event: NotificationEvent) -> bool:
        return await self.deliver(event)

    async def deliver(self, event: NotificationEvent) -> bool:
        raise NotImplementedError


async def send_event(sender: NotificationSender, event: NotificationEvent) -> bool:
    """Call the sender method matching the event kind."""
    if event.kind == NotificationKind.APPLICATION_RECEIVED:
        return await sender.application_received(event)
    if event.kind == NotificationKind.STATUS_UPDATED:
        return await sender.status_updated(event)
    return await sender.interview_scheduled(event)


class SMTPEmailSender(BaseSender):
    """Plain-text email over SMTP, sent from a worker thread."""

    channel = "email"

    def __init__(
        self,
        host: str = None,
        port: int = None,
        username: str = None,
        password: str = None,
        use_tls: bool = None,
        from_address: str = None,
        timeout: int = None,
        enabled: bool = None,
    ):
        self.host = settings.SMTP_HOST if host is None else host
        self.port = port or settings.SMTP_PORT
        self.username = settings.SMTP_USER if username is None else username
        self.password = settings.SMTP_PASSWORD if password is None else password
        self.use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls
        self.from_address = from_address or settings.EMAIL_FROM
        self.timeout = timeout or settings.SMTP_TIMEOUT
        self.enabled = (settings.EMAIL_ENABLED if enabled is None else enabled) and bool(self.host)

    def build_message(self, event: NotificationEvent) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.from_address
        message["To"] = event.recipient_email
        message["Subject"] = event.subject
        message.set_content(event.body)
        return message

    def _send_sync(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(message)

    async def deliver(self, event: NotificationEvent) -> bool:
        if not self.enabled:
            logger.debug("email_disabled", kind=event.kind.value, recipient=event.recipient_email)
            return False

        await asyncio.to_thread(self._send_sync, self.build_message(event))
        logger.info(
            "email_sent",
            kind=event.kind.value,
            recipient=event.recipient_email,
            application_id=str(event.application_id),
        )
        return True


class InAppNotificationSender(BaseSender):
    """Writes a ``notifications`` row in a session of its own."""

    channel = "in_app"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], enabled: Optional[bool] = None):
        self.session_factory = session_factory
        self.enabled = settings.IN_APP_NOTIFICATIONS_ENABLED if enabled is None else enabled

    async def deliver(self, event: NotificationEvent) -> bool:
        if not self.enabled:
            return False

        async with self.session_factory() as session:
            session.add(
                Notification(
                    user_id=event.recipient_id,
                    type=event.kind.value,
                    title=event.subject[:200],
                    message=event.body,
                    data=event.model_dump(mode="json", exclude={"recipient_email"}),
                )
            )
            await session.commit()
        logger.info(
            "in_app_notification_created",
            kind=event.kind.value,
            user_id=str(event.recipient_id),
        )
        return True
