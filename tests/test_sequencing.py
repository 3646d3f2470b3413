import asyncio
import uuid
from contextlib import asynccontextmanager

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from prompt_history.core.exceptions import TransientStorageError
from prompt_history.db.repositories.document_repository import DocumentRepository
from prompt_history.db.repositories.version_repository import DocumentVersionRepository
from prompt_history.domains.documents.entities import DocumentChangeSet
from prompt_history.domains.versioning.sequencing import (
    DocumentLockRegistry, SequencingService, is_transient, is_version_collision
)
from prompt_history.domains.versioning.services import VersioningService

COLLISION_MESSAGE = (
    "UNIQUE constraint failed: document_versions.document_id, document_versions.version_number"
)


def collision_error():
    return IntegrityError("INSERT INTO document_versions", {}, Exception(COLLISION_MESSAGE))


class NoLocks(DocumentLockRegistry):
    """Реестр без блокировок: остается только уникальное ограничение в БД"""

    @asynccontextmanager
    async def hold(self, document_id):
        yield


class TestErrorClassification:

    def test_version_collision_detected_for_sqlite_message(self):
        assert is_version_collision(collision_error())

    def test_version_collision_detected_by_constraint_name(self):
        error = IntegrityError(
            "INSERT", {}, Exception('duplicate key value violates unique constraint "uq_document_versions_number"')
        )
        assert is_version_collision(error)

    def test_other_integrity_errors_are_not_collisions(self):
        error = IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))
        assert not is_version_collision(error)
        assert not is_transient(error)

    def test_operational_error_is_transient(self):
        assert is_transient(OperationalError("SELECT", {}, Exception("database is locked")))

    def test_permanent_operational_error_is_not_transient(self):
        assert not is_transient(OperationalError("SELECT", {}, Exception("no such table: document_versions")))
        assert not is_transient(OperationalError("INSERT", {}, Exception("disk I/O error")))

    def test_sqlite_error_code_decides_contention(self):
        busy = Exception("database is busy")
        busy.sqlite_errorcode = 5
        io_error = Exception("table is locked by disk I/O error")
        io_error.sqlite_errorcode = 10

        assert is_transient(OperationalError("COMMIT", {}, busy))
        assert not is_transient(OperationalError("COMMIT", {}, io_error))

    def test_postgres_serialization_failure_is_transient(self):
        orig = Exception("could not serialize access")
        orig.sqlstate = "40001"

        assert is_transient(OperationalError("UPDATE", {}, orig))


class TestNextVersionNumber:

    async def test_count_plus_one_without_deletions(self, session, document):
        sequencer = SequencingService(session)

        assert await sequencer.next_version_number(document) == 2

    async def test_high_water_mark_prevents_reuse(self, session, document):
        sequencer = SequencingService(session)
        document.current_version_number = 7

        assert await sequencer.next_version_number(document) == 8


class TestRun:
    """Повтор всей операции при коллизии номера или временном сбое"""

    async def test_retries_collision_then_succeeds(self, session):
        sequencer = SequencingService(session, max_attempts=3, backoff_seconds=0)
        calls = []

        async def operation():
            calls.append(1)
            if len(calls) == 1:
                raise collision_error()
            return "done"

        assert await sequencer.run(uuid.uuid4(), operation) == "done"
        assert len(calls) == 2

    async def test_retries_operational_error(self, session):
        sequencer = SequencingService(session, max_attempts=3, backoff_seconds=0)
        calls = []

        async def operation():
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError("UPDATE documents", {}, Exception("database is locked"))
            return len(calls)

        assert await sequencer.run(uuid.uuid4(), operation) == 3

    async def test_permanent_operational_error_is_not_retried(self, session):
        sequencer = SequencingService(session, max_attempts=5, backoff_seconds=0)
        calls = []

        async def operation():
            calls.append(1)
            raise OperationalError("INSERT INTO document_versions", {}, Exception("no such table: document_versions"))

        with pytest.raises(OperationalError):
            await sequencer.run(uuid.uuid4(), operation)
        assert len(calls) == 1

    async def test_unrelated_integrity_error_is_not_retried(self, session):
        sequencer = SequencingService(session, max_attempts=3, backoff_seconds=0)
        calls = []

        async def operation():
            calls.append(1)
            raise IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))

        with pytest.raises(IntegrityError):
            await sequencer.run(uuid.uuid4(), operation)
        assert len(calls) == 1

    async def test_exhausted_retries_raise_transient_error(self, session):
        sequencer = SequencingService(session, max_attempts=3, backoff_seconds=0)
        calls = []

        async def operation():
            calls.append(1)
            raise collision_error()

        with pytest.raises(TransientStorageError) as exc_info:
            await sequencer.run(uuid.uuid4(), operation)
        assert exc_info.value.attempts == 3
        assert len(calls) == 3

    async def test_backoff_grows_with_attempts(self, session):
        sequencer = SequencingService(session, backoff_seconds=0.1)

        assert 0.05 <= sequencer._backoff_delay(1) <= 0.15
        assert 0.2 <= sequencer._backoff_delay(3) <= 0.6
        assert SequencingService(session, backoff_seconds=0)._backoff_delay(4) == 0


class TestStaleNumberCollision:
    """Коллизия на настоящем уникальном ограничении"""

    async def test_stale_number_is_retried_with_fresh_one(self, session, document, owner_id):
        sequencer = SequencingService(session, max_attempts=3, backoff_seconds=0)
        fresh_number = sequencer.next_version_number
        calls = []

        async def stale_then_fresh(doc):
            calls.append(1)
            if len(calls) == 1:
                return 1
            return await fresh_number(doc)

        sequencer.next_version_number = stale_then_fresh
        service = VersioningService(session, sequencer=sequencer)

        version = await service.record_edit(document.uuid, owner_id, DocumentChangeSet(content="Hi {{name}}!"))

        assert version.version_number == 2
        assert len(calls) == 2
        assert await DocumentVersionRepository(session).count_by_document(document.uuid) == 2

    async def test_exhaustion_leaves_history_and_document_untouched(self, session, document, owner_id):
        sequencer = SequencingService(session, max_attempts=3, backoff_seconds=0)

        async def always_stale(doc):
            return 1

        sequencer.next_version_number = always_stale
        service = VersioningService(session, sequencer=sequencer)

        with pytest.raises(TransientStorageError):
            await service.record_edit(document.uuid, owner_id, DocumentChangeSet(content="Lost edit"))

        stored = await DocumentRepository(session).get_by_uuid(document.uuid)
        assert stored.content == "Hello {{name}}"
        assert stored.current_version_number == 1
        assert await DocumentVersionRepository(session).count_by_document(document.uuid) == 1


class TestConcurrentWriters:

    async def test_concurrent_edits_get_contiguous_numbers(self, session_factory, document, owner_id):
        async def edit(i):
            async with session_factory() as session:
                return await VersioningService(session).record_edit(
                    document.uuid, owner_id, DocumentChangeSet(content=f"Edit {i}")
                )

        versions = await asyncio.gather(*(edit(i) for i in range(20)))

        assert sorted(v.version_number for v in versions) == list(range(2, 22))

        async with session_factory() as session:
            stored = await DocumentRepository(session).get_by_uuid(document.uuid)
            history = await DocumentVersionRepository(session).get_by_document(document.uuid, limit=100)

        assert [v.version_number for v in history] == list(range(21, 0, -1))
        assert stored.current_version_number == 21
        # Документ совпадает с последней зафиксированной версией
        assert stored.content == history[0].content

    async def test_unique_constraint_alone_keeps_numbers_distinct(self, session_factory, document, owner_id):
        async def edit(i):
            async with session_factory() as session:
                sequencer = SequencingService(session, max_attempts=10, backoff_seconds=0, locks=NoLocks())
                return await VersioningService(session, sequencer=sequencer).record_edit(
                    document.uuid, owner_id, DocumentChangeSet(content=f"Writer {i}")
                )

        versions = await asyncio.gather(*(edit(i) for i in range(5)))

        assert sorted(v.version_number for v in versions) == [2, 3, 4, 5, 6]

    async def test_different_documents_do_not_wait_for_each_other(self):
        registry = DocumentLockRegistry()
        first, second = uuid.uuid4(), uuid.uuid4()

        assert registry.get(first) is not registry.get(second)

        async def enter_second():
            async with registry.hold(second):
                return True

        async with registry.hold(first):
            assert await asyncio.wait_for(enter_second(), timeout=1)
