"""Notification payloads handed to the email and in-app senders."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from jobpipeline.utils.constants import NotificationKind


class NotificationEvent(BaseModel):
    """
    Everything a sender needs to tell a candidate about one event.

    Built after the triggering write has committed, from rows already
    loaded in that request, so senders never read the pipeline tables.
    The model is JSON-serializable for the Celery backend.
    """
    kind: NotificationKind
    recipient_id: UUID
    recipient_email: str
    recipient_name: str = ""
    application_id: UUID
    job_id: Optional[UUID] = None
    job_title: str = ""
    company_name: str = ""
    new_status: Optional[str] = None
    interview_id: Optional[UUID] = None
    scheduled_at: Optional[datetime] = None
    is_reminder: bool = False

    @property
    def subject(self) -> str:
        if self.kind == NotificationKind.APPLICATION_RECEIVED:
            return f"Application received: {self.job_title}"
        if self.kind == NotificationKind.STATUS_UPDATED:
            return f"Your application for {self.job_title} is now {self.new_status}"
        prefix = "Reminder: interview" if self.is_reminder else "Interview scheduled"
        return f"{prefix} for {self.job_title}"

    @property
    def body(self) -> str:
        greeting = f"Hi {self.recipient_name}," if self.recipient_name else "Hi,"
        company = f" at {self.company_name}" if self.company_name else ""
        if self.kind == NotificationKind.APPLICATION_RECEIVED:
            text = f"We received your application for {self.job_title}{company}."
        elif self.kind == NotificationKind.STATUS_UPDATED:
            text = f"Your application for {self.job_title}{company} moved to '{self.new_status}'."
        else:
            when = self.scheduled_at.strftime("%Y-%m-%d %H:%M UTC") if self.scheduled_at else "soon"
            text = f"Your interview for {self.job_title}{company} is scheduled for {when}."
        return f"{greeting}\n\n{text}\n"
