"""
Applications API
Submission, stage transitions and listings
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError as SchemaValidationError

from jobpipeline.api.deps import get_application_service, get_current_user_id
from jobpipeline.core.exceptions import PipelineError
from jobpipeline.schemas.application import (
    ApplicationDetailResponse,
    ApplicationFilter,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationSubmit,
    ApplicationSummary,
    ApplyEligibility,
    BulkResult,
    BulkStatusUpdate,
    RejectRequest,
    StageAdvance,
    StageResponse,
)
from jobpipeline.services.application_service import ApplicationService
from jobpipeline.utils.constants import ApplicationStatus

router = APIRouter()


def application_filter(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    source: Optional[str] = Query(None),
    min_score: Optional[float] = Query(None, ge=0, le=100),
    max_score: Optional[float] = Query(None, ge=0, le=100),
    viewed_only: Optional[bool] = Query(None),
    bookmarked_only: Optional[bool] = Query(None),
    applied_after: Optional[datetime] = Query(None),
    applied_before: Optional[datetime] = Query(None),
    sort_by: str = Query("latest"),
) -> ApplicationFilter:
    try:
        return ApplicationFilter(
            status=status_filter,
            source=source,
            min_score=min_score,
            max_score=max_score,
            viewed_only=viewed_only,
            bookmarked_only=bookmarked_only,
            applied_after=applied_after,
            applied_before=applied_before,
            sort_by=sort_by,
        )
    except SchemaValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False),
        )


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def submit_application(
    application_in: ApplicationSubmit,
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    """
    Apply for a published job

    **Auth**: Job seeker (JWT required)
    """
    return await service.submit_application(current_user_id, application_in)


@router.get("/jobs/{job_id}/eligibility", response_model=ApplyEligibility)
async def check_eligibility(
    job_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    """Whether the caller could apply to the job right now"""
    try:
        await service.check_can_apply(job_id, current_user_id)
    except PipelineError as exc:
        return ApplyEligibility(job_id=job_id, can_apply=False, code=exc.code, reason=exc.message)
    return ApplyEligibility(job_id=job_id, can_apply=True)


@router.get("/me", response_model=ApplicationListResponse)
async def list_my_applications(
    filters: ApplicationFilter = Depends(application_filter),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    return await service.list_candidate_applications(current_user_id, filters, page, limit)


@router.get("/jobs/{job_id}", response_model=ApplicationListResponse)
async def list_job_applications(
    job_id: UUID,
    filters: ApplicationFilter = Depends(application_filter),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    return await service.list_job_applications(job_id, current_user_id, filters, page, limit)


@router.get("/jobs/{job_id}/top", response_model=List[ApplicationSummary])
async def top_applicants(
    job_id: UUID,
    limit: int = Query(10, ge=1, le=100),
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    return await service.get_top_applicants(job_id, current_user_id, limit)


@router.get("/companies/{company_id}", response_model=ApplicationListResponse)
async def list_company_applications(
    company_id: UUID,
    filters: ApplicationFilter = Depends(application_filter),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    return await service.list_company_applications(company_id, current_user_id, filters, page, limit)


@router.get("/companies/{company_id}/recent", response_model=List[ApplicationSummary])
async def recent_applications(
    company_id: UUID,
    hours: int = Query(24, ge=1, le=24 * 30),
    limit: int = Query(10, ge=1, le=100),
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    return await service.get_recent_applications(company_id, current_user_id, hours, limit)


@router.post("/bulk", response_model=BulkResult)
async def bulk_update_status(
    bulk_in: BulkStatusUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    """
    Apply one status change to many applications

    Items the caller cannot change are reported in `skipped`.
    """
    return await service.bulk_update_status(
        bulk_in.application_ids, bulk_in.status, current_user_id, bulk_in.reason
    )


@router.get("/{application_id}", response_model=ApplicationDetailResponse)
async def get_my_application(
    application_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    return await service.get_application_detail(application_id, current_user_id)


@router.get("/{application_id}/review", response_model=ApplicationDetailResponse)
async def review_application(
    application_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    """Employer view of an application; marks it as viewed."""
    return await service.get_application_for_review(application_id, current_user_id)


@router.get("/{application_id}/stages", response_model=List[StageResponse])
async def stage_history(
    application_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    return await service.get_stage_history(application_id, current_user_id)


@router.post("/{application_id}/advance", response_model=ApplicationResponse)
async def advance_stage(
    application_id: UUID,
    advance_in: StageAdvance,
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    return await service.advance_stage(application_id, current_user_id, advance_in.stage, advance_in.notes)


@router.post("/{application_id}/reject", response_model=ApplicationResponse)
async def reject_application(
    application_id: UUID,
    reject_in: RejectRequest,
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    return await service.reject_application(application_id, current_user_id, reject_in.reason)


@router.post("/{application_id}/withdraw", response_model=ApplicationResponse)
async def withdraw_application(
    application_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    return await service.withdraw_application(application_id, current_user_id)


@router.post("/{application_id}/view", response_model=ApplicationResponse)
async def mark_viewed(
    application_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    return await service.mark_as_viewed(application_id, current_user_id)


@router.post("/{application_id}/bookmark", response_model=ApplicationResponse)
async def toggle_bookmark(
    application_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: ApplicationService = Depends(get_application_service),
):
    return await service.toggle_bookmark(application_id, current_user_id)
