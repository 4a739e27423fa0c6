"""
Stage ledger
Append-only history of pipeline stages for an application.

Entries are opened on every transition and closed when superseded. Each
write is flushed immediately so the next sequence number and the open
entry are always read back from the database.
"""

from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobpipeline.core.exceptions import StageNotFoundError
from jobpipeline.models.application import Application, ApplicationStage
from jobpipeline.utils.constants import STAGE_DESCRIPTIONS, ApplicationStatus
from jobpipeline.utils.helpers import utcnow

logger = structlog.get_logger(__name__)


class StageLedger:
    """Reads and appends ledger entries within the caller's session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_stages(self, application_id: UUID) -> List[ApplicationStage]:
        result = await self.db.execute(
            select(ApplicationStage)
            .where(ApplicationStage.application_id == application_id)
            .order_by(ApplicationStage.sequence)
        )
        return list(result.scalars().all())

    async def get_stage(self, stage_id: UUID) -> ApplicationStage:
        result = await self.db.execute(select(ApplicationStage).where(ApplicationStage.id == stage_id))
        stage = result.scalar_one_or_none()
        if stage is None:
            raise StageNotFoundError(f"Stage {stage_id} not found")
        return stage

    async def current_stage(self, application_id: UUID) -> Optional[ApplicationStage]:
        """The open entry with the highest sequence, if any."""
        result = await self.db.execute(
            select(ApplicationStage)
            .where(
                ApplicationStage.application_id == application_id,
                ApplicationStage.completed_at.is_(None),
            )
            .order_by(ApplicationStage.sequence.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def latest_stage(self, application_id: UUID) -> Optional[ApplicationStage]:
        result = await self.db.execute(
            select(ApplicationStage)
            .where(ApplicationStage.application_id == application_id)
            .order_by(ApplicationStage.sequence.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def next_sequence(self, application_id: UUID) -> int:
        result = await self.db.execute(
            select(func.max(ApplicationStage.sequence)).where(
                ApplicationStage.application_id == application_id
            )
        )
        return (result.scalar() or 0) + 1

    async def close_open_stages(self, application_id: UUID, note: Optional[str] = None) -> List[ApplicationStage]:
        """
        Close every open entry of the application.

        Normally there is exactly one; closing all of them repairs a ledger
        left with more than one open entry.
        """
        result = await self.db.execute(
            select(ApplicationStage).where(
                ApplicationStage.application_id == application_id,
                ApplicationStage.completed_at.is_(None),
            )
        )
        stages = list(result.scalars().all())
        now = utcnow()
        for stage in stages:
            stage.completed_at = now
            if note:
                stage.notes = f"{stage.notes}\n{note}" if stage.notes else note
        if len(stages) > 1:
            logger.warning(
                "multiple_open_stages_closed",
                application_id=str(application_id),
                count=len(stages),
            )
        await self.db.flush()
        return stages

    async def open_stage(
        self,
        application: Application,
        stage_name: ApplicationStatus,
        *,
        handled_by: Optional[UUID] = None,
        notes: Optional[str] = None,
        description: Optional[str] = None,
        completed: bool = False,
    ) -> ApplicationStage:
        """Append a new entry; ``completed`` appends an already-closed terminal entry."""
        stage_name = ApplicationStatus(stage_name)
        now = utcnow()
        stage = ApplicationStage(
            application_id=application.id,
            sequence=await self.next_sequence(application.id),
            stage_name=stage_name.value,
            description=description or STAGE_DESCRIPTIONS[stage_name],
            handled_by=handled_by,
            started_at=now,
            completed_at=now if completed else None,
            notes=notes,
        )
        self.db.add(stage)
        await self.db.flush()
        logger.debug(
            "stage_opened",
            application_id=str(application.id),
            stage=stage.stage_name,
            sequence=stage.sequence,
        )
        return stage
