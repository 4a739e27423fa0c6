"""
Notes API
Reviewer notes on applications
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from jobpipeline.api.deps import get_current_user_id, get_note_service
from jobpipeline.schemas.note import NoteCreate, NoteResponse, NoteUpdate
from jobpipeline.services.note_service import NoteService

router = APIRouter()


@router.post(
    "/applications/{application_id}",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_note(
    application_id: UUID,
    note_in: NoteCreate,
    current_user_id: UUID = Depends(get_current_user_id),
    service: NoteService = Depends(get_note_service),
):
    return await service.add_note(application_id, current_user_id, note_in)


@router.get("/applications/{application_id}", response_model=List[NoteResponse])
async def list_notes(
    application_id: UUID,
    visibility: Optional[str] = Query(None),
    current_user_id: UUID = Depends(get_current_user_id),
    service: NoteService = Depends(get_note_service),
):
    return await service.list_notes(application_id, current_user_id, visibility)


@router.get("/applications/{application_id}/pinned", response_model=List[NoteResponse])
async def list_pinned_notes(
    application_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: NoteService = Depends(get_note_service),
):
    return await service.list_pinned_notes(application_id, current_user_id)


@router.get("/stages/{stage_id}", response_model=List[NoteResponse])
async def list_stage_notes(
    stage_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: NoteService = Depends(get_note_service),
):
    return await service.list_stage_notes(stage_id, current_user_id)


@router.patch("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: UUID,
    note_in: NoteUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    service: NoteService = Depends(get_note_service),
):
    return await service.update_note(note_id, current_user_id, note_in)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: NoteService = Depends(get_note_service),
):
    """Only the note's author can delete it."""
    await service.delete_note(note_id, current_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{note_id}/pin", response_model=NoteResponse)
async def pin_note(
    note_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: NoteService = Depends(get_note_service),
):
    return await service.pin_note(note_id, current_user_id)


@router.post("/{note_id}/unpin", response_model=NoteResponse)
async def unpin_note(
    note_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    service: NoteService = Depends(get_note_service),
):
    return await service.unpin_note(note_id, current_user_id)
