"""Common constants."""

import enum


class ApplicationStatus(str, enum.Enum):
    """Pipeline status of an application (mirrors ledger stage names)."""
    APPLIED = "applied"
    SCREENING = "screening"
    SHORTLISTED = "shortlisted"
    INTERVIEW = "interview"
    OFFERED = "offered"
    HIRED = "hired"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class InterviewStatus(str, enum.Enum):
    """Interview status enum."""
    SCHEDULED = "scheduled"
    RESCHEDULED = "rescheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class NotificationKind(str, enum.Enum):
    """Events the candidate is told about."""
    APPLICATION_RECEIVED = "application_received"
    STATUS_UPDATED = "status_updated"
    INTERVIEW_SCHEDULED = "interview_scheduled"


# Plain string values: model columns hold str, not enum members
TERMINAL_STATUSES = frozenset(
    status.value
    for status in (ApplicationStatus.HIRED, ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN)
)

IN_PROGRESS_STATUSES = frozenset(
    status.value
    for status in (
        ApplicationStatus.SCREENING,
        ApplicationStatus.SHORTLISTED,
        ApplicationStatus.INTERVIEW,
        ApplicationStatus.OFFERED,
    )
)

# Targets accepted by advance_stage; rejected/withdrawn have their own operations
ADVANCEABLE_STATUSES = (
    ApplicationStatus.SCREENING,
    ApplicationStatus.SHORTLISTED,
    ApplicationStatus.INTERVIEW,
    ApplicationStatus.OFFERED,
    ApplicationStatus.HIRED,
)

# Ledger description written when a stage is opened
STAGE_DESCRIPTIONS = {
    ApplicationStatus.APPLIED: "Application submitted",
    ApplicationStatus.SCREENING: "Moved to screening",
    ApplicationStatus.SHORTLISTED: "Shortlisted for interview",
    ApplicationStatus.INTERVIEW: "Interview scheduled",
    ApplicationStatus.OFFERED: "Job offer extended",
    ApplicationStatus.HIRED: "Applicant hired",
    ApplicationStatus.REJECTED: "Application rejected",
    ApplicationStatus.WITHDRAWN: "Application withdrawn by applicant",
}

# Funnel order used by analytics
FUNNEL_STAGES = (
    ApplicationStatus.APPLIED,
    ApplicationStatus.SCREENING,
    ApplicationStatus.SHORTLISTED,
    ApplicationStatus.INTERVIEW,
    ApplicationStatus.OFFERED,
    ApplicationStatus.HIRED,
)

ACTIVE_INTERVIEW_STATUSES = frozenset(
    status.value for status in (InterviewStatus.SCHEDULED, InterviewStatus.RESCHEDULED)
)

INTERVIEW_TYPES = ["online", "onsite", "hybrid"]

DOCUMENT_TYPES = ["cv", "cover_letter", "portfolio", "certificate", "transcript", "other"]

NOTE_TYPES = ["evaluation", "feedback", "reminder", "internal"]
NOTE_VISIBILITIES = ["internal", "public"]
NOTE_SENTIMENTS = ["positive", "neutral", "negative"]

# Company membership roles allowed to work on applications.
# The same set gates read and write access.
EMPLOYER_ROLES = frozenset({"viewer", "recruiter", "admin", "owner"})

# Account type that may submit applications
CANDIDATE_USER_TYPE = "jobseeker"

# Only published jobs accept applications
JOB_OPEN_STATUS = "published"

APPLICATION_SORTS = ["latest", "score_desc", "score_asc"]
