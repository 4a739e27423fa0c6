"""API v1 routes."""

from fastapi import APIRouter

from jobpipeline.api.v1 import analytics, applications, documents, interviews, notes

api_router = APIRouter()

api_router.include_router(applications.router, prefix="/applications", tags=["Applications"])
api_router.include_router(interviews.router, prefix="/interviews", tags=["Interviews"])
api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])
api_router.include_router(notes.router, prefix="/notes", tags=["Notes"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
