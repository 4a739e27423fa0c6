"""
Application Scheduler - APScheduler Integration

Runs the interview reminder sweep inside the API process.
"""

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
import structlog

from jobpipeline.config import settings

logger = structlog.get_logger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler(
    timezone="UTC",
    job_defaults={
        "coalesce": True,  # Combine missed runs into one
        "max_instances": 1,
        "misfire_grace_time": 600,
    },
)


def scheduler_listener(event):
    """Log executed and failed jobs."""
    if event.exception:
        logger.error("scheduled_job_failed", job_id=event.job_id, error=str(event.exception))
    else:
        logger.info("scheduled_job_executed", job_id=event.job_id)


scheduler.add_listener(scheduler_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)


async def send_interview_reminders() -> int:
    """
    Scheduled task: remind candidates of interviews starting within
    INTERVIEW_REMINDER_HOURS that have not been reminded yet.
    """
    from jobpipeline.db.session import AsyncSessionLocal
    from jobpipeline.services.interview_service import InterviewService

    async with AsyncSessionLocal() as session:
        service = InterviewService(session)
        return await service.send_due_reminders(within_hours=settings.INTERVIEW_REMINDER_HOURS)


def setup_jobs():
    """Register periodic jobs."""
    scheduler.add_job(
        send_interview_reminders,
        IntervalTrigger(minutes=settings.REMINDER_SWEEP_INTERVAL_MINUTES),
        id="interview_reminders",
        name="Interview reminder sweep",
        replace_existing=True,
    )
    logger.info(
        "scheduled_job_added",
        job_id="interview_reminders",
        interval_minutes=settings.REMINDER_SWEEP_INTERVAL_MINUTES,
    )


def start_scheduler():
    """Start the scheduler (called from the app lifespan)."""
    if not settings.SCHEDULER_ENABLED:
        logger.info("scheduler_disabled")
        return
    if scheduler.running:
        logger.warning("scheduler_already_running")
        return

    setup_jobs()
    scheduler.start()
    for job in scheduler.get_jobs():
        logger.info("scheduled_job", job_id=job.id, next_run=str(job.next_run_time))


def stop_scheduler():
    """Stop the scheduler (called from the app lifespan)."""
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("scheduler_stopped")
