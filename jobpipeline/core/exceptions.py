"""Domain errors raised by the pipeline services.

Every error carries a machine-readable ``code`` and a ``status_code`` the
HTTP layer uses when turning it into a response.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for all pipeline failures."""

    code = "pipeline_error"
    status_code = 400

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


# ---- not found ---------------------------------------------------------

class NotFoundError(PipelineError):
    """Resource not found."""
    code = "not_found"
    status_code = 404


class ApplicationNotFoundError(NotFoundError):
    """Application not found."""
    code = "application_not_found"


class JobNotFoundError(NotFoundError):
    """Job not found."""
    code = "job_not_found"


class UserNotFoundError(NotFoundError):
    """User not found."""
    code = "user_not_found"


class CompanyNotFoundError(NotFoundError):
    """Company not found."""
    code = "company_not_found"


class StageNotFoundError(NotFoundError):
    """Stage not found."""
    code = "stage_not_found"


class InterviewNotFoundError(NotFoundError):
    """Interview not found."""
    code = "interview_not_found"


class DocumentNotFoundError(NotFoundError):
    """Document not found."""
    code = "document_not_found"


class NoteNotFoundError(NotFoundError):
    """Note not found."""
    code = "note_not_found"


# ---- authorization -----------------------------------------------------

class AuthorizationError(PipelineError):
    """You do not have access to this resource."""
    code = "forbidden"
    status_code = 403


class InactiveAccountError(AuthorizationError):
    """Your account is not active."""
    code = "account_inactive"


class NotCandidateError(AuthorizationError):
    """Only job seekers can apply for jobs."""
    code = "not_a_candidate"


# ---- state conflict ----------------------------------------------------

class StateConflictError(PipelineError):
    """Operation is not valid for the current state."""
    code = "state_conflict"
    status_code = 409


class InvalidStateTransitionError(StateConflictError):
    """Application cannot move from its current status."""
    code = "invalid_transition"


class JobNotOpenError(StateConflictError):
    """This job is not accepting applications."""
    code = "job_not_open"


class ConcurrentUpdateError(StateConflictError):
    """Application was modified by another request, retry."""
    code = "concurrent_update"


# ---- validation / duplicate --------------------------------------------

class ValidationError(PipelineError):
    """Invalid input."""
    code = "validation_error"
    status_code = 422


class DuplicateApplicationError(PipelineError):
    """You have already applied for this job."""
    code = "duplicate_application"
    status_code = 409
