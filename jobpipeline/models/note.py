"""Application note model."""

from sqlalchemy import Boolean, Column, ForeignKey, String, Text, Uuid

from jobpipeline.db.base import Base


class ApplicationNote(Base):
    """Reviewer annotation on an application, optionally scoped to a stage."""

    __tablename__ = "application_notes"

    application_id = Column(
        Uuid(as_uuid=True), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    stage_id = Column(
        Uuid(as_uuid=True), ForeignKey("application_stages.id", ondelete="SET NULL"), nullable=True, index=True
    )
    author_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    note_type = Column(String(30), default="internal", nullable=False)  # evaluation, feedback, reminder, internal
    note_text = Column(Text, nullable=False)
    visibility = Column(String(20), default="internal", nullable=False)  # internal, public
    sentiment = Column(String(20), default="neutral", nullable=False)  # positive, neutral, negative
    is_pinned = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<ApplicationNote {self.note_type} by {self.author_id}>"
