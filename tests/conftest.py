"""Shared fixtures: a file-backed SQLite database per test and seeded collaborators."""

from types import SimpleNamespace
from uuid import uuid4

import pytest
import pytest_asyncio

from jobpipeline import models  # noqa: F401
from jobpipeline.db.base import Base
from jobpipeline.db.session import build_engine, build_session_factory
from jobpipeline.models.company import Company, CompanyMember
from jobpipeline.models.job import Job
from jobpipeline.models.user import User
from jobpipeline.schemas.application import ApplicationSubmit
from jobpipeline.services.application_service import ApplicationService
from jobpipeline.services.interview_service import InterviewService
from jobpipeline.services.notification_dispatcher import NotificationDispatcher
from jobpipeline.services.senders import BaseSender


class RecordingSender(BaseSender):
    """Keeps every delivered event; ``fail=True`` makes every delivery raise."""

    channel = "recording"

    def __init__(self, fail: bool = False):
        self.events = []
        self.fail = fail

    async def deliver(self, event) -> bool:
        if self.fail:
            raise RuntimeError("channel unavailable")
        self.events.append(event)
        return True


class Factory:
    """Creates collaborator rows and commits them."""

    def __init__(self, db):
        self.db = db

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        return obj

    async def user(self, full_name="Asha Rao", user_type="jobseeker", is_active=True) -> User:
        email = f"{full_name.lower().replace(' ', '.')}.{uuid4().hex[:8]}@example.com"
        return await self._save(
            User(email=email, full_name=full_name, user_type=user_type, is_active=is_active)
        )

    async def company(self, name="Acme Corp") -> Company:
        return await self._save(Company(name=name))

    async def member(self, company: Company, user: User, role="recruiter") -> CompanyMember:
        return await self._save(CompanyMember(company_id=company.id, user_id=user.id, role=role))

    async def employer(self, company: Company, role="recruiter", full_name="Rita Recruiter") -> User:
        user = await self.user(full_name, user_type="employer")
        await self.member(company, user, role)
        return user

    async def job(self, company: Company, title="Backend Engineer", status="published") -> Job:
        return await self._save(
            Job(title=title, company_id=company.id, location="Bengaluru", status=status)
        )


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'pipeline.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def recorder():
    return RecordingSender()


@pytest_asyncio.fixture
async def dispatcher(recorder):
    dispatcher = NotificationDispatcher(in_app_sender=recorder)
    yield dispatcher
    await dispatcher.drain()


@pytest_asyncio.fixture
async def seed(factory):
    company = await factory.company()
    other_company = await factory.company("Globex Ltd")
    return SimpleNamespace(
        company=company,
        job=await factory.job(company),
        candidate=await factory.user("Asha Rao"),
        recruiter=await factory.employer(company),
        outsider=await factory.employer(other_company, full_name="Oscar Outsider"),
    )


@pytest.fixture
def app_service(db, dispatcher):
    return ApplicationService(db, dispatcher)


@pytest.fixture
def interview_service(db, dispatcher):
    return InterviewService(db, dispatcher)


@pytest_asyncio.fixture
async def submitted(app_service, seed):
    """A fresh application in ``applied``."""
    return await app_service.submit_application(
        seed.candidate.id, ApplicationSubmit(job_id=seed.job.id, match_score=72.5)
    )
