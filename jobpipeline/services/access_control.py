"""
Access control for application operations.

Two checks cover every operation: candidate ownership and employer access.
Employer access means a membership row in the application's company whose
role is in EMPLOYER_ROLES. The same role set gates reads and writes.
"""

from typing import List
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobpipeline.core.exceptions import (
    ApplicationNotFoundError,
    AuthorizationError,
    JobNotFoundError,
)
from jobpipeline.models.application import Application
from jobpipeline.models.company import CompanyMember
from jobpipeline.models.job import Job
from jobpipeline.services import lookups
from jobpipeline.utils.constants import EMPLOYER_ROLES

logger = structlog.get_logger(__name__)


class AccessControl:
    """Resolves whether a caller may act on an application."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load_application(self, application_id: UUID, *, for_update: bool = False) -> Application:
        stmt = select(Application).where(Application.id == application_id)
        if for_update:
            # Row lock on backends that support it (no-op on SQLite)
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        application = result.scalar_one_or_none()
        if application is None:
            raise ApplicationNotFoundError(f"Application {application_id} not found")
        return application

    async def check_application_ownership(
        self, application_id: UUID, user_id: UUID, *, for_update: bool = False
    ) -> Application:
        """Return the application if ``user_id`` is its candidate."""
        application = await self.load_application(application_id, for_update=for_update)
        if application.candidate_id != user_id:
            logger.info(
                "ownership_denied",
                application_id=str(application_id),
                user_id=str(user_id),
            )
            raise AuthorizationError("You do not have access to this application")
        return application

    async def check_employer_access(
        self, application_id: UUID, user_id: UUID, *, for_update: bool = False
    ) -> Application:
        """Return the application if ``user_id`` has an employer role in its company."""
        application = await self.load_application(application_id, for_update=for_update)
        await self.check_company_access(application.company_id, user_id)
        return application

    async def check_company_access(self, company_id: UUID, user_id: UUID) -> CompanyMember:
        if company_id is None:
            raise AuthorizationError("Application has no owning company")

        membership = await lookups.get_membership(self.db, user_id, company_id)
        if membership is None or membership.role not in EMPLOYER_ROLES:
            logger.info(
                "employer_access_denied",
                company_id=str(company_id),
                user_id=str(user_id),
                role=membership.role if membership else None,
            )
            raise AuthorizationError("You do not have access to this company's applications")
        return membership

    async def check_job_access(self, job_id: UUID, user_id: UUID) -> Job:
        job = await lookups.get_job(self.db, job_id)
        if job is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        await self.check_company_access(job.company_id, user_id)
        return job

    async def employer_company_ids(self, user_id: UUID) -> List[UUID]:
        """Companies in which ``user_id`` holds an employer role."""
        result = await self.db.execute(
            select(CompanyMember.company_id).where(
                CompanyMember.user_id == user_id,
                CompanyMember.role.in_(sorted(EMPLOYER_ROLES)),
            )
        )
        return list(result.scalars().all())
