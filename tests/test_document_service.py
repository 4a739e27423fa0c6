"""Candidate documents and employer verification."""

from uuid import uuid4

import pytest

from jobpipeline.core.exceptions import AuthorizationError, DocumentNotFoundError
from jobpipeline.schemas.document import DocumentCreate, DocumentUpdate
from jobpipeline.services.document_service import DocumentService


@pytest.fixture
def documents(db):
    return DocumentService(db)


async def upload(documents, application, user, **fields):
    data = {"file_url": "https://files.example.com/cv.pdf", "file_name": "cv.pdf", **fields}
    return await documents.upload_document(application.id, user.id, DocumentCreate(**data))


async def test_owner_uploads_updates_and_deletes(documents, submitted, seed):
    document = await upload(documents, submitted, seed.candidate)
    assert document.document_type == "cv"
    assert document.is_verified is False

    document = await documents.update_document(
        document.id, seed.candidate.id, DocumentUpdate(file_name="cv-v2.pdf", notes="Updated")
    )
    assert document.file_name == "cv-v2.pdf"
    assert document.file_url == "https://files.example.com/cv.pdf"

    await documents.delete_document(document.id, seed.candidate.id)
    with pytest.raises(DocumentNotFoundError):
        await documents.delete_document(document.id, seed.candidate.id)


async def test_only_owner_can_change(documents, submitted, seed):
    document = await upload(documents, submitted, seed.candidate)

    with pytest.raises(AuthorizationError):
        await upload(documents, submitted, seed.recruiter)
    with pytest.raises(AuthorizationError):
        await documents.update_document(document.id, seed.recruiter.id, DocumentUpdate(notes="x"))
    with pytest.raises(AuthorizationError):
        await documents.delete_document(document.id, seed.recruiter.id)


async def test_verify_leaves_application_status(documents, app_service, submitted, seed):
    document = await upload(documents, submitted, seed.candidate)

    document = await documents.verify_document(document.id, seed.recruiter.id, notes="Checked")

    assert document.is_verified is True
    assert document.verified_by == seed.recruiter.id
    assert document.verified_at is not None
    assert document.notes == "Checked"
    assert submitted.status == "applied"

    with pytest.raises(AuthorizationError):
        await documents.verify_document(document.id, seed.outsider.id)


async def test_list_documents_by_type(documents, submitted, seed):
    await upload(documents, submitted, seed.candidate)
    await upload(documents, submitted, seed.candidate, document_type="certificate", file_url="https://x/c.pdf")

    assert len(await documents.list_documents(submitted.id, seed.candidate.id)) == 2
    certificates = await documents.list_documents(submitted.id, seed.recruiter.id, document_type="certificate")
    assert [doc.document_type for doc in certificates] == ["certificate"]

    with pytest.raises(AuthorizationError):
        await documents.list_documents(submitted.id, seed.outsider.id)


async def test_unverified_documents_paginated(documents, submitted, seed):
    uploaded = [
        await upload(documents, submitted, seed.candidate, file_url=f"https://files.example.com/{index}.pdf")
        for index in range(3)
    ]
    await documents.verify_document(uploaded[0].id, seed.recruiter.id)

    items, total = await documents.get_unverified_documents(page=1, limit=1)
    assert total == 2
    assert len(items) == 1

    items, total = await documents.get_unverified_documents(company_ids=[seed.company.id])
    assert total == 2
    assert {doc.id for doc in items} == {uploaded[1].id, uploaded[2].id}

    assert await documents.get_unverified_documents(company_ids=[uuid4()]) == ([], 0)
