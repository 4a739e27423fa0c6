"""
Analytics API
Read-only pipeline statistics
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from jobpipeline.api.deps import get_analytics_service, get_current_user_id
from jobpipeline.schemas.analytics import (
    ApplicationAnalytics,
    ApplicationTrend,
    CandidateStats,
    CompanyAnalytics,
    ConversionFunnel,
    JobAnalytics,
    SourceStats,
    StageTimeStats,
)
from jobpipeline.services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("/applications/{application_id}", response_model=ApplicationAnalytics)
async def application_analytics(
    application_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.get_application_analytics(application_id, current_user_id)


@router.get("/jobs/{job_id}", response_model=JobAnalytics)
async def job_analytics(
    job_id: UUID,
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    current_user_id: UUID = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.get_job_analytics(job_id, current_user_id, start, end)


@router.get("/jobs/{job_id}/funnel", response_model=ConversionFunnel)
async def conversion_funnel(
    job_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.get_conversion_funnel(job_id, current_user_id)


@router.get("/companies/{company_id}", response_model=CompanyAnalytics)
async def company_analytics(
    company_id: UUID,
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    current_user_id: UUID = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.get_company_analytics(company_id, current_user_id, start, end)


@router.get("/companies/{company_id}/stage-times", response_model=List[StageTimeStats])
async def average_time_per_stage(
    company_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.get_average_time_per_stage(company_id, current_user_id)


@router.get("/companies/{company_id}/sources", response_model=List[SourceStats])
async def source_analytics(
    company_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.get_source_analytics(company_id, current_user_id)


@router.get("/companies/{company_id}/trends", response_model=List[ApplicationTrend])
async def application_trends(
    company_id: UUID,
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    current_user_id: UUID = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.get_application_trends(company_id, current_user_id, start, end)


@router.get("/candidates/me", response_model=CandidateStats)
async def my_stats(
    current_user_id: UUID = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.get_candidate_stats(current_user_id)
