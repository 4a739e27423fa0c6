"""Interview model."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Numeric, String, Text, Uuid

from jobpipeline.db.base import Base
from jobpipeline.utils.constants import ACTIVE_INTERVIEW_STATUSES, InterviewStatus


class Interview(Base):
    """Scheduled evaluation event tied to an application (and optionally a stage)."""

    __tablename__ = "interviews"
    __table_args__ = (
        Index("idx_interviews_status_scheduled", "status", "scheduled_at"),
    )

    application_id = Column(
        Uuid(as_uuid=True), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    stage_id = Column(
        Uuid(as_uuid=True), ForeignKey("application_stages.id", ondelete="SET NULL"), nullable=True, index=True
    )
    interviewer_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)

    scheduled_at = Column(DateTime, nullable=False, index=True)
    ended_at = Column(DateTime, nullable=True)

    interview_type = Column(String(20), default="online", nullable=False)  # online, onsite, hybrid
    meeting_link = Column(Text)
    location = Column(Text)

    status = Column(String(20), default=InterviewStatus.SCHEDULED.value, nullable=False)

    # Evaluation (0-100)
    overall_score = Column(Numeric(5, 2))
    technical_score = Column(Numeric(5, 2))
    communication_score = Column(Numeric(5, 2))
    personality_score = Column(Numeric(5, 2))
    remarks = Column(Text)
    feedback_summary = Column(Text)

    reminder_sent_at = Column(DateTime, nullable=True)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_INTERVIEW_STATUSES

    def __repr__(self):
        return f"<Interview {self.application_id} at {self.scheduled_at} ({self.status})>"
