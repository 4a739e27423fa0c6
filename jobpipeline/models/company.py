"""Company and employer membership models."""

from sqlalchemy import Column, ForeignKey, String, UniqueConstraint, Uuid

from jobpipeline.db.base import Base


class Company(Base):
    """Company model."""

    __tablename__ = "companies"

    name = Column(String(255), nullable=False, index=True)

    def __repr__(self):
        return f"<Company {self.name}>"


class CompanyMember(Base):
    """Employer user's membership (and role) within a company."""

    __tablename__ = "company_members"
    __table_args__ = (
        UniqueConstraint("company_id", "user_id", name="unique_company_member"),
    )

    company_id = Column(Uuid(as_uuid=True), ForeignKey("companies.id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default="viewer")  # viewer, recruiter, admin, owner

    def __repr__(self):
        return f"<CompanyMember {self.user_id} @ {self.company_id} ({self.role})>"
