"""
Collaborator lookups
Jobs, users and company memberships live outside the pipeline; these
helpers are the only place the services read those tables.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobpipeline.models.company import Company, CompanyMember
from jobpipeline.models.job import Job
from jobpipeline.models.user import User


async def get_job(db: AsyncSession, job_id: UUID) -> Optional[Job]:
    result = await db.execute(select(Job).where(Job.id == job_id))
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: UUID) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_company(db: AsyncSession, company_id: UUID) -> Optional[Company]:
    if company_id is None:
        return None
    result = await db.execute(select(Company).where(Company.id == company_id))
    return result.scalar_one_or_none()


async def get_membership(
    db: AsyncSession, user_id: UUID, company_id: UUID
) -> Optional[CompanyMember]:
    """Membership row for (user, company), or None when the user is not a member."""
    result = await db.execute(
        select(CompanyMember).where(
            CompanyMember.user_id == user_id,
            CompanyMember.company_id == company_id,
        )
    )
    return result.scalar_one_or_none()
