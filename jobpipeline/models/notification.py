"""
In-app notification model
Rows written by the in-app notification sender
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, JSON, String, Text, Uuid

from jobpipeline.db.base import Base


class Notification(Base):
    """Notification shown to a user inside the portal."""

    __tablename__ = "notifications"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Notification type
    type = Column(String(50), nullable=False)  # 'application_received', 'status_updated', 'interview_scheduled'

    # Content
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)

    # Metadata
    data = Column(JSON, nullable=True)

    # Status
    read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_notifications_user_unread", "user_id", "read"),
        Index("idx_notifications_type", "type"),
    )

    def __repr__(self):
        return f"<Notification(user_id={self.user_id}, type={self.type}, read={self.read})>"
