"""Stage ledger reads and appends."""

from uuid import uuid4

import pytest

from jobpipeline.core.exceptions import StageNotFoundError
from jobpipeline.services.stage_ledger import StageLedger
from jobpipeline.utils.constants import ApplicationStatus


async def test_open_stage_appends_with_next_sequence(db, submitted, seed):
    ledger = StageLedger(db)

    stage = await ledger.open_stage(submitted, ApplicationStatus.SCREENING, handled_by=seed.recruiter.id)
    await db.commit()

    assert stage.sequence == 2
    assert stage.description == "Moved to screening"
    assert (await ledger.current_stage(submitted.id)).id == stage.id
    assert await ledger.next_sequence(submitted.id) == 3


async def test_completed_entry_is_not_current(db, submitted):
    ledger = StageLedger(db)
    await ledger.close_open_stages(submitted.id, "Closing")
    terminal = await ledger.open_stage(submitted, ApplicationStatus.REJECTED, notes="Closing", completed=True)
    await db.commit()

    assert terminal.completed_at is not None
    assert terminal.completed_at == terminal.started_at
    assert await ledger.current_stage(submitted.id) is None
    assert (await ledger.latest_stage(submitted.id)).stage_name == "rejected"


async def test_close_open_stages_repairs_multiple_open_entries(db, submitted):
    ledger = StageLedger(db)
    # Leave two entries open, as an unguarded writer would
    await ledger.open_stage(submitted, ApplicationStatus.SCREENING)
    await db.commit()

    closed = await ledger.close_open_stages(submitted.id, "Moved to next stage")
    await db.commit()

    assert len(closed) == 2
    assert all(stage.completed_at is not None for stage in closed)
    assert await ledger.current_stage(submitted.id) is None


async def test_close_appends_note_to_existing_notes(db, submitted):
    ledger = StageLedger(db)
    current = await ledger.current_stage(submitted.id)
    current.notes = "Strong profile"
    await db.flush()

    await ledger.close_open_stages(submitted.id, "Moved to next stage")

    assert current.notes == "Strong profile\nMoved to next stage"


async def test_duration_of_completed_stage(db, submitted):
    ledger = StageLedger(db)
    [stage] = await ledger.close_open_stages(submitted.id)

    assert stage.duration is not None
    assert stage.duration.total_seconds() >= 0


async def test_get_stage_missing(db):
    with pytest.raises(StageNotFoundError):
        await StageLedger(db).get_stage(uuid4())
