"""
Note service
Reviewer notes on an application, optionally scoped to a ledger entry.
"""

from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobpipeline.core.exceptions import AuthorizationError, NoteNotFoundError, ValidationError
from jobpipeline.models.note import ApplicationNote
from jobpipeline.schemas.note import NoteCreate, NoteUpdate
from jobpipeline.services.access_control import AccessControl
from jobpipeline.services.stage_ledger import StageLedger

logger = structlog.get_logger(__name__)

DEFAULT_NOTE_TYPE = "internal"
DEFAULT_VISIBILITY = "internal"
DEFAULT_SENTIMENT = "neutral"


class NoteService:
    """Notes are written by employers; only the author may delete one."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.access = AccessControl(db)
        self.ledger = StageLedger(db)

    async def _load_for_employer(self, note_id: UUID, actor_id: UUID) -> ApplicationNote:
        result = await self.db.execute(select(ApplicationNote).where(ApplicationNote.id == note_id))
        note = result.scalar_one_or_none()
        if note is None:
            raise NoteNotFoundError(f"Note {note_id} not found")
        await self.access.check_employer_access(note.application_id, actor_id)
        return note

    async def add_note(self, application_id: UUID, author_id: UUID, data: NoteCreate) -> ApplicationNote:
        await self.access.check_employer_access(application_id, author_id)

        if data.stage_id is not None:
            stage = await self.ledger.get_stage(data.stage_id)
            if stage.application_id != application_id:
                raise ValidationError("Stage does not belong to this application")

        note = ApplicationNote(
            application_id=application_id,
            stage_id=data.stage_id,
            author_id=author_id,
            note_type=data.note_type or DEFAULT_NOTE_TYPE,
            note_text=data.note_text,
            visibility=data.visibility or DEFAULT_VISIBILITY,
            sentiment=data.sentiment or DEFAULT_SENTIMENT,
            is_pinned=data.is_pinned,
        )
        self.db.add(note)
        await self.db.commit()

        logger.info(
            "note_added",
            note_id=str(note.id),
            application_id=str(application_id),
            author_id=str(author_id),
        )
        return note

    async def update_note(self, note_id: UUID, actor_id: UUID, data: NoteUpdate) -> ApplicationNote:
        note = await self._load_for_employer(note_id, actor_id)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(note, field, value)
        await self.db.commit()
        return note

    async def delete_note(self, note_id: UUID, actor_id: UUID) -> None:
        """Author only, whatever the caller's role in the company."""
        note = await self._load_for_employer(note_id, actor_id)
        if note.author_id != actor_id:
            raise AuthorizationError("Only the author can delete this note")

        await self.db.delete(note)
        await self.db.commit()
        logger.info("note_deleted", note_id=str(note_id), author_id=str(actor_id))

    async def _set_pinned(self, note_id: UUID, actor_id: UUID, pinned: bool) -> ApplicationNote:
        note = await self._load_for_employer(note_id, actor_id)
        note.is_pinned = pinned
        await self.db.commit()
        return note

    async def pin_note(self, note_id: UUID, actor_id: UUID) -> ApplicationNote:
        return await self._set_pinned(note_id, actor_id, True)

    async def unpin_note(self, note_id: UUID, actor_id: UUID) -> ApplicationNote:
        return await self._set_pinned(note_id, actor_id, False)

    async def list_notes(
        self, application_id: UUID, actor_id: UUID, visibility: Optional[str] = None
    ) -> List[ApplicationNote]:
        await self.access.check_employer_access(application_id, actor_id)

        query = select(ApplicationNote).where(ApplicationNote.application_id == application_id)
        if visibility:
            query = query.where(ApplicationNote.visibility == visibility)
        result = await self.db.execute(
            query.order_by(ApplicationNote.is_pinned.desc(), ApplicationNote.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_stage_notes(self, stage_id: UUID, actor_id: UUID) -> List[ApplicationNote]:
        stage = await self.ledger.get_stage(stage_id)
        await self.access.check_employer_access(stage.application_id, actor_id)

        result = await self.db.execute(
            select(ApplicationNote)
            .where(ApplicationNote.stage_id == stage_id)
            .order_by(ApplicationNote.created_at)
        )
        return list(result.scalars().all())

    async def list_pinned_notes(self, application_id: UUID, actor_id: UUID) -> List[ApplicationNote]:
        await self.access.check_employer_access(application_id, actor_id)

        result = await self.db.execute(
            select(ApplicationNote)
            .where(
                ApplicationNote.application_id == application_id,
                ApplicationNote.is_pinned.is_(True),
            )
            .order_by(ApplicationNote.created_at.desc())
        )
        return list(result.scalars().all())
