"""Candidate ownership and employer access checks."""

from uuid import uuid4

import pytest

from jobpipeline.core.exceptions import ApplicationNotFoundError, AuthorizationError
from jobpipeline.models.application import Application
from jobpipeline.services.access_control import AccessControl


@pytest.mark.parametrize("role", ["viewer", "recruiter", "admin", "owner"])
async def test_employer_roles_pass(db, factory, seed, submitted, role):
    user = await factory.employer(seed.company, role=role, full_name=f"Member {role}")

    application = await AccessControl(db).check_employer_access(submitted.id, user.id)

    assert application.id == submitted.id


@pytest.mark.parametrize("role", ["intern", "billing", ""])
async def test_other_roles_fail(db, factory, seed, submitted, role):
    user = await factory.employer(seed.company, role=role, full_name="Someone Else")

    with pytest.raises(AuthorizationError):
        await AccessControl(db).check_employer_access(submitted.id, user.id)


async def test_no_membership_fails(db, seed, submitted):
    with pytest.raises(AuthorizationError):
        await AccessControl(db).check_employer_access(submitted.id, seed.outsider.id)


async def test_candidate_is_not_an_employer(db, seed, submitted):
    with pytest.raises(AuthorizationError):
        await AccessControl(db).check_employer_access(submitted.id, seed.candidate.id)


async def test_application_without_company_fails_employer_access(db, seed):
    orphan = Application(job_id=seed.job.id, candidate_id=seed.candidate.id, company_id=None)
    db.add(orphan)
    await db.commit()

    with pytest.raises(AuthorizationError):
        await AccessControl(db).check_employer_access(orphan.id, seed.recruiter.id)


async def test_ownership(db, seed, submitted):
    access = AccessControl(db)

    assert (await access.check_application_ownership(submitted.id, seed.candidate.id)).id == submitted.id
    with pytest.raises(AuthorizationError):
        await access.check_application_ownership(submitted.id, seed.recruiter.id)


async def test_missing_application_is_not_found(db, seed):
    access = AccessControl(db)

    with pytest.raises(ApplicationNotFoundError):
        await access.check_application_ownership(uuid4(), seed.candidate.id)
    with pytest.raises(ApplicationNotFoundError):
        await access.check_employer_access(uuid4(), seed.recruiter.id)


async def test_employer_company_ids(db, factory, seed):
    second = await factory.company("Second Co")
    await factory.member(second, seed.recruiter, role="owner")
    third = await factory.company("Third Co")
    await factory.member(third, seed.recruiter, role="intern")

    company_ids = await AccessControl(db).employer_company_ids(seed.recruiter.id)

    assert set(company_ids) == {seed.company.id, second.id}
