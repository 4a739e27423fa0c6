"""
Interviews API
Scheduling, outcomes and reminders
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from jobpipeline.api.deps import get_current_user_id, get_interview_service
from jobpipeline.schemas.interview import (
    InterviewCancel,
    InterviewComplete,
    InterviewCreate,
    InterviewReschedule,
    InterviewResponse,
)
from jobpipeline.services.interview_service import InterviewService

router = APIRouter()


@router.post("", response_model=InterviewResponse, status_code=status.HTTP_201_CREATED)
async def schedule_interview(
    interview_in: InterviewCreate,
    current_user_id: UUID = Depends(get_current_user_id),
    service: InterviewService = Depends(get_interview_service),
):
    """
    Schedule an interview

    **Auth**: Employer member of the application's company

    Applications not yet at the interview stage are moved there first.
    """
    return await service.schedule_interview(current_user_id, interview_in)


@router.get("/upcoming", response_model=List[InterviewResponse])
async def upcoming_interviews(
    days: int = Query(7, ge=1, le=90),
    current_user_id: UUID = Depends(get_current_user_id),
    service: InterviewService = Depends(get_interview_service),
):
    return await service.get_upcoming_interviews(current_user_id, days)


@router.get("/range", response_model=List[InterviewResponse])
async def interviews_in_range(
    start: datetime,
    end: datetime,
    company_id: Optional[UUID] = Query(None),
    current_user_id: UUID = Depends(get_current_user_id),
    service: InterviewService = Depends(get_interview_service),
):
    return await service.get_interviews_by_date_range(current_user_id, start, end, company_id)


@router.get("/applications/{application_id}", response_model=List[InterviewResponse])
async def application_interviews(
    application_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: InterviewService = Depends(get_interview_service),
):
    return await service.list_application_interviews(application_id, current_user_id)


@router.get("/{interview_id}", response_model=InterviewResponse)
async def get_interview(
    interview_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: InterviewService = Depends(get_interview_service),
):
    return await service.get_interview(interview_id, current_user_id)


@router.post("/{interview_id}/reschedule", response_model=InterviewResponse)
async def reschedule_interview(
    interview_id: UUID,
    reschedule_in: InterviewReschedule,
    current_user_id: UUID = Depends(get_current_user_id),
    service: InterviewService = Depends(get_interview_service),
):
    return await service.reschedule_interview(interview_id, current_user_id, reschedule_in)


@router.post("/{interview_id}/cancel", response_model=InterviewResponse)
async def cancel_interview(
    interview_id: UUID,
    cancel_in: InterviewCancel,
    current_user_id: UUID = Depends(get_current_user_id),
    service: InterviewService = Depends(get_interview_service),
):
    return await service.cancel_interview(interview_id, current_user_id, cancel_in.reason)


@router.post("/{interview_id}/complete", response_model=InterviewResponse)
async def complete_interview(
    interview_id: UUID,
    complete_in: InterviewComplete,
    current_user_id: UUID = Depends(get_current_user_id),
    service: InterviewService = Depends(get_interview_service),
):
    return await service.complete_interview(interview_id, current_user_id, complete_in)


@router.post("/{interview_id}/no-show", response_model=InterviewResponse)
async def mark_no_show(
    interview_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: InterviewService = Depends(get_interview_service),
):
    return await service.mark_no_show(interview_id, current_user_id)


@router.post("/{interview_id}/remind", response_model=InterviewResponse)
async def send_reminder(
    interview_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: InterviewService = Depends(get_interview_service),
):
    return await service.send_reminder(interview_id, current_user_id)
