"""HTTP layer: routing, auth and error mapping."""

from uuid import uuid4

import httpx
import pytest_asyncio

from jobpipeline.api.deps import get_db, get_notification_dispatcher
from jobpipeline.core.security import create_access_token
from jobpipeline.main import app


def auth(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest_asyncio.fixture
async def client(session_factory, dispatcher):
    async def override_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def apply(client, seed):
    return await client.post(
        "/api/v1/applications",
        json={"job_id": str(seed.job.id), "cover_note": "Keen to join"},
        headers=auth(seed.candidate),
    )


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_submit_and_duplicate(client, seed):
    response = await apply(client, seed)
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "applied"
    assert body["cover_note"] == "Keen to join"

    duplicate = await apply(client, seed)
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "duplicate_application"


async def test_missing_token_is_401(client, seed):
    response = await client.post("/api/v1/applications", json={"job_id": str(seed.job.id)})

    assert response.status_code == 401


async def test_unknown_application_is_404(client, seed):
    response = await client.get(f"/api/v1/applications/{uuid4()}", headers=auth(seed.candidate))

    assert response.status_code == 404
    assert response.json()["code"] == "application_not_found"


async def test_advance_and_forbidden(client, seed):
    application_id = (await apply(client, seed)).json()["id"]

    forbidden = await client.post(
        f"/api/v1/applications/{application_id}/advance",
        json={"stage": "screening"},
        headers=auth(seed.outsider),
    )
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "forbidden"

    advanced = await client.post(
        f"/api/v1/applications/{application_id}/advance",
        json={"stage": "screening", "notes": "Looks promising"},
        headers=auth(seed.recruiter),
    )
    assert advanced.status_code == 200
    assert advanced.json()["status"] == "screening"

    stages = await client.get(f"/api/v1/applications/{application_id}/stages", headers=auth(seed.candidate))
    assert [stage["stage_name"] for stage in stages.json()] == ["applied", "screening"]


async def test_withdraw_after_rejection_is_409(client, seed):
    application_id = (await apply(client, seed)).json()["id"]

    rejected = await client.post(
        f"/api/v1/applications/{application_id}/reject",
        json={"reason": "Role filled"},
        headers=auth(seed.recruiter),
    )
    assert rejected.status_code == 200

    withdraw = await client.post(f"/api/v1/applications/{application_id}/withdraw", headers=auth(seed.candidate))
    assert withdraw.status_code == 409
    assert withdraw.json()["code"] == "invalid_transition"


async def test_request_validation_is_422(client, seed):
    application_id = (await apply(client, seed)).json()["id"]

    bad_stage = await client.post(
        f"/api/v1/applications/{application_id}/advance",
        json={"stage": "archived"},
        headers=auth(seed.recruiter),
    )
    assert bad_stage.status_code == 422

    for path, user in (
        ("/api/v1/applications/me", seed.candidate),
        (f"/api/v1/applications/jobs/{seed.job.id}", seed.recruiter),
        (f"/api/v1/applications/companies/{seed.company.id}", seed.recruiter),
    ):
        bad_sort = await client.get(f"{path}?sort_by=oldest", headers=auth(user))
        assert bad_sort.status_code == 422
        [error] = bad_sort.json()["detail"]
        assert error["loc"] == ["sort_by"]


async def test_eligibility_route(client, seed):
    before = await client.get(f"/api/v1/applications/jobs/{seed.job.id}/eligibility", headers=auth(seed.candidate))
    assert before.status_code == 200
    assert before.json()["can_apply"] is True

    await apply(client, seed)

    after = await client.get(f"/api/v1/applications/jobs/{seed.job.id}/eligibility", headers=auth(seed.candidate))
    assert after.status_code == 200
    assert after.json()["can_apply"] is False
    assert after.json()["code"] == "duplicate_application"


async def test_bulk_endpoint_reports_skipped(client, seed):
    application_id = (await apply(client, seed)).json()["id"]
    missing = str(uuid4())

    response = await client.post(
        "/api/v1/applications/bulk",
        json={"application_ids": [application_id, missing], "status": "shortlisted"},
        headers=auth(seed.recruiter),
    )

    assert response.status_code == 200
    assert response.json() == {"succeeded": [application_id], "skipped": [missing]}


async def test_interview_and_analytics_routes(client, seed):
    application_id = (await apply(client, seed)).json()["id"]

    scheduled = await client.post(
        "/api/v1/interviews",
        json={"application_id": application_id, "scheduled_at": "2030-01-15T10:00:00Z"},
        headers=auth(seed.recruiter),
    )
    assert scheduled.status_code == 201
    assert scheduled.json()["status"] == "scheduled"

    funnel = await client.get(f"/api/v1/analytics/jobs/{seed.job.id}/funnel", headers=auth(seed.recruiter))
    assert funnel.status_code == 200
    counts = {stage["stage"]: stage["count"] for stage in funnel.json()["stages"]}
    assert counts["interview"] == 1

    mine = await client.get("/api/v1/analytics/candidates/me", headers=auth(seed.candidate))
    assert mine.json()["interviews_scheduled"] == 1

    trends = await client.get(f"/api/v1/analytics/companies/{seed.company.id}/trends", headers=auth(seed.recruiter))
    assert trends.status_code == 200
    assert [day["total_applications"] for day in trends.json()] == [1]
