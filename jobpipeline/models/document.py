"""Application document model."""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, String, Text, Uuid

from jobpipeline.db.base import Base


class ApplicationDocument(Base):
    """File reference supplied in support of an application."""

    __tablename__ = "application_documents"

    application_id = Column(
        Uuid(as_uuid=True), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    document_type = Column(String(50), default="cv", nullable=False)  # cv, cover_letter, portfolio, certificate, transcript, other
    file_name = Column(String(255))
    file_url = Column(Text, nullable=False)
    file_type = Column(String(50))
    file_size = Column(BigInteger)
    uploaded_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Verification
    is_verified = Column(Boolean, default=False, nullable=False, index=True)
    verified_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    verified_at = Column(DateTime, nullable=True)

    notes = Column(Text)

    def verify(self, verifier_id) -> None:
        self.is_verified = True
        self.verified_by = verifier_id
        self.verified_at = datetime.utcnow()

    def __repr__(self):
        return f"<ApplicationDocument {self.document_type} for {self.application_id}>"
