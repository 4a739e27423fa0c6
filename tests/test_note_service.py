"""Reviewer notes."""

import pytest

from jobpipeline.core.exceptions import AuthorizationError, ValidationError
from jobpipeline.schemas.application import ApplicationSubmit
from jobpipeline.schemas.note import NoteCreate, NoteUpdate
from jobpipeline.services.note_service import NoteService
from jobpipeline.services.stage_ledger import StageLedger


@pytest.fixture
def notes(db):
    return NoteService(db)


async def test_add_note_defaults(notes, submitted, seed):
    note = await notes.add_note(submitted.id, seed.recruiter.id, NoteCreate(note_text="Good communicator"))

    assert note.note_type == "internal"
    assert note.visibility == "internal"
    assert note.sentiment == "neutral"
    assert note.is_pinned is False
    assert note.author_id == seed.recruiter.id


async def test_add_note_requires_employer_access(notes, submitted, seed):
    with pytest.raises(AuthorizationError):
        await notes.add_note(submitted.id, seed.candidate.id, NoteCreate(note_text="Hi"))
    with pytest.raises(AuthorizationError):
        await notes.add_note(submitted.id, seed.outsider.id, NoteCreate(note_text="Hi"))


async def test_add_note_to_stage(notes, db, submitted, seed):
    stage = await StageLedger(db).current_stage(submitted.id)
    note = await notes.add_note(
        submitted.id, seed.recruiter.id, NoteCreate(stage_id=stage.id, note_text="Screen call booked")
    )
    assert [n.id for n in await notes.list_stage_notes(stage.id, seed.recruiter.id)] == [note.id]

    with pytest.raises(AuthorizationError):
        await notes.list_stage_notes(stage.id, seed.outsider.id)


async def test_add_note_with_foreign_stage_fails(notes, db, factory, app_service, submitted, seed):
    other = await app_service.submit_application(
        (await factory.user("Bina Das")).id, ApplicationSubmit(job_id=seed.job.id)
    )
    foreign = await StageLedger(db).current_stage(other.id)

    with pytest.raises(ValidationError):
        await notes.add_note(submitted.id, seed.recruiter.id, NoteCreate(stage_id=foreign.id, note_text="x"))


async def test_only_author_deletes_even_with_employer_access(notes, factory, submitted, seed):
    colleague = await factory.employer(seed.company, role="owner", full_name="Olga Owner")
    note = await notes.add_note(submitted.id, seed.recruiter.id, NoteCreate(note_text="Follow up"))

    with pytest.raises(AuthorizationError):
        await notes.delete_note(note.id, colleague.id)

    await notes.delete_note(note.id, seed.recruiter.id)
    assert await notes.list_notes(submitted.id, seed.recruiter.id) == []


async def test_pin_by_any_employer_and_listing_order(notes, factory, submitted, seed):
    colleague = await factory.employer(seed.company, role="viewer", full_name="Vik Viewer")
    first = await notes.add_note(submitted.id, seed.recruiter.id, NoteCreate(note_text="First"))
    second = await notes.add_note(
        submitted.id, seed.recruiter.id, NoteCreate(note_text="Second", visibility="public")
    )

    pinned = await notes.pin_note(first.id, colleague.id)
    assert pinned.is_pinned is True

    listed = await notes.list_notes(submitted.id, seed.recruiter.id)
    assert [n.id for n in listed] == [first.id, second.id]
    assert [n.id for n in await notes.list_pinned_notes(submitted.id, seed.recruiter.id)] == [first.id]
    assert [n.id for n in await notes.list_notes(submitted.id, seed.recruiter.id, visibility="public")] == [second.id]

    await notes.unpin_note(first.id, colleague.id)
    assert await notes.list_pinned_notes(submitted.id, seed.recruiter.id) == []


async def test_update_note_ignores_unset_fields(notes, submitted, seed):
    note = await notes.add_note(
        submitted.id, seed.recruiter.id, NoteCreate(note_text="Draft", sentiment="positive")
    )

    note = await notes.update_note(note.id, seed.recruiter.id, NoteUpdate(note_text="Final"))

    assert note.note_text == "Final"
    assert note.sentiment == "positive"


def test_note_schema_rejects_unknown_choice():
    with pytest.raises(ValueError):
        NoteCreate(note_text="x", sentiment="ecstatic")
