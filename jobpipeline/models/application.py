"""Application and stage ledger models."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)

from jobpipeline.db.base import Base
from jobpipeline.utils.constants import (
    TERMINAL_STATUSES,
    ApplicationStatus,
)


class Application(Base):
    """Job application model."""

    __tablename__ = "applications"
    __table_args__ = (
        Index("idx_applications_job_candidate", "job_id", "candidate_id"),
        Index("idx_applications_company_status", "company_id", "status"),
        # One live application per (job, candidate); withdrawn rows do not count
        Index(
            "uq_applications_active_pair",
            "job_id",
            "candidate_id",
            unique=True,
            postgresql_where=text("status <> 'withdrawn'"),
            sqlite_where=text("status <> 'withdrawn'"),
        ),
    )

    job_id = Column(Uuid(as_uuid=True), ForeignKey("jobs.id"), nullable=False, index=True)
    candidate_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    # Copied from the job at submission, never changed afterwards
    company_id = Column(Uuid(as_uuid=True), ForeignKey("companies.id"), nullable=True, index=True)

    # Status tracking
    status = Column(String(20), default=ApplicationStatus.APPLIED.value, nullable=False)
    source = Column(String(50), default="portal", nullable=False)

    # Submission content
    resume_url = Column(Text)
    cover_note = Column(Text)

    # Matching (computed elsewhere)
    match_score = Column(Numeric(5, 2), default=0, nullable=False)  # 0.00 - 100.00

    # Employer-side flags
    viewed_by_employer = Column(Boolean, default=False, nullable=False)
    is_bookmarked = Column(Boolean, default=False, nullable=False)

    applied_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Optimistic lock: concurrent writers on the same application cannot both commit
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def can_withdraw(self) -> bool:
        return not self.is_terminal

    def __repr__(self):
        return f"<Application {self.candidate_id} -> {self.job_id} ({self.status})>"


class ApplicationStage(Base):
    """
    Stage ledger entry.

    One row per transition, append-only. ``sequence`` orders entries within
    an application and is unique per application, so two writers opening a
    stage for the same application at once collide in the database.
    """

    __tablename__ = "application_stages"
    __table_args__ = (
        UniqueConstraint("application_id", "sequence", name="unique_application_stage_sequence"),
        Index("idx_application_stages_open", "application_id", "completed_at"),
    )

    application_id = Column(
        Uuid(as_uuid=True), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sequence = Column(Integer, nullable=False)
    stage_name = Column(String(20), nullable=False, index=True)
    description = Column(Text)
    handled_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    notes = Column(Text)

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def duration(self):
        """Time spent in the stage, or None while it is still open."""
        if self.completed_at is None:
            return None
        return self.completed_at - self.started_at

    def __repr__(self):
        return f"<ApplicationStage {self.application_id} #{self.sequence} {self.stage_name}>"
