"""User model."""

from sqlalchemy import Boolean, Column, String

from jobpipeline.db.base import Base
from jobpipeline.utils.constants import CANDIDATE_USER_TYPE


class User(Base):
    """User account as seen by the pipeline (profile lookup)."""

    __tablename__ = "users"

    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(20))
    user_type = Column(String(20), nullable=False, default=CANDIDATE_USER_TYPE)  # jobseeker, employer, admin
    is_active = Column(Boolean, default=True, nullable=False)

    @property
    def is_candidate(self) -> bool:
        return self.user_type == CANDIDATE_USER_TYPE

    def __repr__(self):
        return f"<User {self.email} ({self.user_type})>"
