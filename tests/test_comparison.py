import uuid

import pytest

from prompt_history.core.exceptions import InvalidOperationError, NotFoundError
from prompt_history.domains.documents.entities import DocumentChangeSet
from prompt_history.domains.documents.schemas import DocumentCreate
from prompt_history.domains.documents.services import DocumentService
from prompt_history.domains.versioning.comparison import ComparisonService
from prompt_history.domains.versioning.services import VersioningService


async def test_returns_both_full_versions(session, document, owner_id):
    versioning = VersioningService(session)
    edited = await versioning.record_edit(document.uuid, owner_id, DocumentChangeSet(content="Hi {{name}}!"))
    initial = (await versioning.list_versions(document.uuid, owner_id)).versions[-1]

    comparison = await ComparisonService(session).compare(document.uuid, owner_id, initial.id, edited.id)

    assert comparison.first.content == "Hello {{name}}"
    assert comparison.second.content == "Hi {{name}}!"
    assert comparison.first.structured_fields == comparison.second.structured_fields


async def test_same_version_twice_is_allowed(session, document, owner_id):
    initial = (await VersioningService(session).list_versions(document.uuid, owner_id)).versions[0]

    comparison = await ComparisonService(session).compare(document.uuid, owner_id, initial.id, initial.id)

    assert comparison.first == comparison.second


async def test_versions_of_another_document_are_rejected(session, document, owner_id):
    other = await DocumentService(session).create_document(
        DocumentCreate(title="Other", content="Something else"), owner_id
    )
    versioning = VersioningService(session)
    mine = (await versioning.list_versions(document.uuid, owner_id)).versions[0]
    theirs = (await versioning.list_versions(other.uuid, owner_id)).versions[0]

    with pytest.raises(InvalidOperationError):
        await ComparisonService(session).compare(document.uuid, owner_id, mine.id, theirs.id)


async def test_missing_version_is_not_found(session, document, owner_id):
    initial = (await VersioningService(session).list_versions(document.uuid, owner_id)).versions[0]

    with pytest.raises(NotFoundError, match="One or both"):
        await ComparisonService(session).compare(document.uuid, owner_id, initial.id, uuid.uuid4())


async def test_foreign_document_is_not_found(session, document, owner_id, other_user_id):
    initial = (await VersioningService(session).list_versions(document.uuid, owner_id)).versions[0]

    with pytest.raises(NotFoundError, match="Document not found"):
        await ComparisonService(session).compare(document.uuid, other_user_id, initial.id, initial.id)
