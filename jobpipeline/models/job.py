"""Job model."""

from sqlalchemy import Column, ForeignKey, Integer, String, Uuid

from jobpipeline.db.base import Base
from jobpipeline.utils.constants import JOB_OPEN_STATUS


class Job(Base):
    """Job posting (only the fields the pipeline reads or updates)."""

    __tablename__ = "jobs"

    title = Column(String(500), nullable=False, index=True)
    company_id = Column(Uuid(as_uuid=True), ForeignKey("companies.id"), nullable=False, index=True)
    location = Column(String(255))

    # Status
    status = Column(String(20), default="draft", nullable=False)  # draft, published, closed, expired, suspended

    # Stats
    application_count = Column(Integer, default=0, nullable=False)

    @property
    def accepts_applications(self) -> bool:
        return self.status == JOB_OPEN_STATUS

    def __repr__(self):
        return f"<Job {self.title} at {self.company_id}>"
