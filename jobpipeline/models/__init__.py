"""Database models."""

# Import all models in dependency order so foreign keys resolve

# Collaborator tables
from jobpipeline.models.user import User
from jobpipeline.models.company import Company, CompanyMember
from jobpipeline.models.job import Job

# Pipeline tables
from jobpipeline.models.application import Application, ApplicationStage
from jobpipeline.models.interview import Interview
from jobpipeline.models.document import ApplicationDocument
from jobpipeline.models.note import ApplicationNote
from jobpipeline.models.notification import Notification

# Export all models
__all__ = [
    "User",
    "Company",
    "CompanyMember",
    "Job",
    "Application",
    "ApplicationStage",
    "Interview",
    "ApplicationDocument",
    "ApplicationNote",
    "Notification",
]
