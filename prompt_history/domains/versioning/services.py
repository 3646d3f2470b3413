import logging
import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from prompt_history.core.exceptions import (
    DomainValidationError, ForbiddenError, InvalidOperationError, NotFoundError
)
from prompt_history.db.repositories.document_repository import DocumentRepository
from prompt_history.db.repositories.version_repository import DocumentVersionRepository
from prompt_history.domains.activity.services import ActivityAction, ActivityLogService
from prompt_history.domains.documents.entities import Document, DocumentChangeSet
from prompt_history.domains.versioning.entities import (
    ANNOTATION_MAX_LENGTH, CONTENT_UPDATED_SUMMARY, INITIAL_VERSION_SUMMARY,
    MANUAL_SNAPSHOT_SUMMARY, RestoreResult, VersionPage, VersionRecord, restored_summary
)
from prompt_history.domains.versioning.sequencing import SequencingService

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def validate_annotation(annotation: Optional[str], required: bool = False) -> Optional[str]:
    """Проверка длины аннотации: 1-500 для обязательной, не более 500 для прочих"""
    if annotation is None:
        if required:
            raise DomainValidationError("Annotation is required", {"field": "annotation"})
        return None
    if required and len(annotation) < 1:
        raise DomainValidationError("Annotation is required", {"field": "annotation"})
    if len(annotation) > ANNOTATION_MAX_LENGTH:
        raise DomainValidationError(
            f"Annotation must be at most {ANNOTATION_MAX_LENGTH} characters",
            {"field": "annotation", "length": len(annotation)}
        )
    return annotation


class VersioningService:
    """
    Сервис истории версий документа.

    Каждая изменяющая операция - одна транзакция: номер версии, вставка
    версии и (для record_edit/restore) обновление полей документа
    фиксируются вместе через SequencingService. Проверки входных данных
    и прав выполняются до любой записи.
    """

    def __init__(self, session: AsyncSession, sequencer: Optional[SequencingService] = None):
        self.session = session
        self.document_repository = DocumentRepository(session)
        self.version_repository = DocumentVersionRepository(session)
        self.sequencer = sequencer or SequencingService(session)
        self.activity = ActivityLogService(session)

    async def create_initial(self, document: Document, user_id: uuid.UUID) -> VersionRecord:
        """
        Создание версии 1 для только что созданного документа.

        Документ может быть еще не зафиксирован: вставка версии
        фиксируется вместе с ним.
        """
        if not document.content or not document.content.strip():
            await self.session.rollback()
            raise DomainValidationError("Content cannot be empty", {"field": "content"})

        try:
            if await self.version_repository.count_by_document(document.uuid) > 0:
                raise InvalidOperationError(
                    "Document already has version history",
                    {"document_id": str(document.uuid)}
                )

            version = VersionRecord.capture(
                document,
                version_number=1,
                change_summary=INITIAL_VERSION_SUMMARY,
                is_snapshot=True,
                created_by=user_id
            )
            created = await self.version_repository.create(version)
            document.advance_version(created.version_number)
            await self.document_repository.update_fields(document)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise InvalidOperationError(
                "Document already has version history",
                {"document_id": str(document.uuid)}
            )
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Created initial version for document {document.uuid}")
        await self.activity.record(user_id, ActivityAction.CREATED, document.uuid, created.version_number)
        return created

    async def record_edit(
        self,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        changes: DocumentChangeSet
    ) -> Optional[VersionRecord]:
        """
        Сохранение редактируемых полей документа.

        Новая версия появляется только при изменении содержимого
        (точное сравнение строк); правки заголовка, описания и полей
        шаблона без изменения содержимого версию не создают.
        """
        async def operation() -> Optional[VersionRecord]:
            document = await self._get_owned_document(document_id, user_id, for_update=True)
            content_changed = document.apply_changes(changes)

            created = None
            if content_changed:
                number = await self.sequencer.next_version_number(document)
                created = await self.version_repository.create(VersionRecord.capture(
                    document,
                    version_number=number,
                    change_summary=CONTENT_UPDATED_SUMMARY,
                    is_snapshot=False,
                    created_by=user_id
                ))
                document.advance_version(number)

            if changes.changed_fields():
                await self.document_repository.update_fields(document)
            return created

        created = await self.sequencer.run(document_id, operation)

        if created is None:
            logger.info(f"Document {document_id} saved without content change, no version created")
            return None

        logger.info(f"Recorded version {created.version_number} for document {document_id}")
        await self.activity.record(user_id, ActivityAction.VERSION_CREATED, document_id, created.version_number)
        return created

    async def create_snapshot(
        self,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        annotation: str
    ) -> VersionRecord:
        """Ручной снимок текущего состояния документа"""
        validate_annotation(annotation, required=True)

        async def operation() -> VersionRecord:
            document = await self._get_owned_document(document_id, user_id, for_update=True)
            number = await self.sequencer.next_version_number(document)
            created = await self.version_repository.create(VersionRecord.capture(
                document,
                version_number=number,
                change_summary=MANUAL_SNAPSHOT_SUMMARY,
                is_snapshot=True,
                created_by=user_id,
                annotation=annotation
            ))
            document.advance_version(number)
            await self.document_repository.update_fields(document)
            return created

        created = await self.sequencer.run(document_id, operation)

        logger.info(f"Created snapshot version {created.version_number} for document {document_id}")
        await self.activity.record(
            user_id, ActivityAction.SNAPSHOT_CREATED, document_id, created.version_number,
            {"annotation": annotation}
        )
        return created

    async def restore(
        self,
        version_id: uuid.UUID,
        user_id: uuid.UUID,
        annotation: Optional[str] = None
    ) -> RestoreResult:
        """
        Восстановление документа из версии.

        История только дополняется: промежуточные версии не удаляются
        и не меняются, результат восстановления - новая версия-снимок.
        """
        validate_annotation(annotation)
        target = await self._get_accessible_version(version_id, user_id)
        document_id = target.document_id

        async def operation() -> RestoreResult:
            document = await self.document_repository.get_for_owner(document_id, user_id, for_update=True)
            if document is None:
                raise InvalidOperationError(
                    "Cannot restore a version of a deleted document",
                    {"document_id": str(document_id)}
                )

            document.restore_from(target)
            number = await self.sequencer.next_version_number(document)
            created = await self.version_repository.create(VersionRecord.capture(
                document,
                version_number=number,
                change_summary=restored_summary(target.version_number),
                is_snapshot=True,
                created_by=user_id,
                annotation=annotation
            ))
            document.advance_version(number)
            await self.document_repository.update_fields(document)
            return RestoreResult(document=document, version=created)

        result = await self.sequencer.run(document_id, operation)

        logger.info(
            f"Restored document {document_id} from version {target.version_number} "
            f"as version {result.version.version_number}"
        )
        await self.activity.record(
            user_id, ActivityAction.VERSION_RESTORED, document_id, result.version.version_number,
            {"restored_version_number": target.version_number}
        )
        return result

    async def update_annotation(
        self,
        version_id: uuid.UUID,
        user_id: uuid.UUID,
        annotation: str
    ) -> VersionRecord:
        """Изменение аннотации версии; пустая строка очищает аннотацию"""
        if annotation is None:
            raise DomainValidationError("Annotation is required", {"field": "annotation"})
        validate_annotation(annotation)
        version = await self._get_accessible_version(version_id, user_id)

        try:
            # Версия могла быть удалена между чтением и изменением
            if not await self.version_repository.update_annotation(version_id, annotation):
                raise NotFoundError("Version not found", {"version_id": str(version_id)})
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        updated = version.with_annotation(annotation)
        await self.activity.record(
            user_id, ActivityAction.ANNOTATION_UPDATED, version.document_id, version.version_number
        )
        return updated

    async def delete_version(self, version_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Удаление версии: снимки и единственная версия документа защищены"""
        version = await self._get_accessible_version(version_id, user_id)

        async def operation() -> None:
            current = await self.version_repository.get_by_uuid(version_id)
            if current is None:
                raise NotFoundError("Version not found", {"version_id": str(version_id)})
            if current.is_snapshot:
                raise InvalidOperationError(
                    "Cannot delete snapshot versions",
                    {"version_id": str(version_id), "version_number": current.version_number}
                )
            if await self.version_repository.count_by_document(current.document_id) <= 1:
                raise InvalidOperationError(
                    "Cannot delete the only version",
                    {"version_id": str(version_id)}
                )
            await self.version_repository.delete(version_id)

        await self.sequencer.run(version.document_id, operation)

        logger.info(f"Deleted version {version.version_number} of document {version.document_id}")
        await self.activity.record(
            user_id, ActivityAction.VERSION_DELETED, version.document_id, version.version_number
        )

    async def list_versions(
        self,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        limit: int = 50,
        offset: int = 0
    ) -> VersionPage:
        """История версий документа, новые первыми, с общим количеством"""
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise DomainValidationError(
                f"Limit must be between 1 and {MAX_PAGE_SIZE}", {"field": "limit", "value": limit}
            )
        if offset < 0:
            raise DomainValidationError("Offset cannot be negative", {"field": "offset", "value": offset})

        await self._get_owned_document(document_id, user_id)
        versions = await self.version_repository.get_by_document(document_id, limit, offset)
        total = await self.version_repository.count_by_document(document_id)
        return VersionPage(versions=versions, total=total)

    async def get_version(self, version_id: uuid.UUID, user_id: uuid.UUID) -> VersionRecord:
        """Получение одной версии"""
        return await self._get_accessible_version(version_id, user_id)

    async def _get_owned_document(
        self,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        for_update: bool = False
    ) -> Document:
        document = await self.document_repository.get_for_owner(document_id, user_id, for_update=for_update)
        if document is None:
            raise NotFoundError("Document not found", {"document_id": str(document_id)})
        return document

    async def _get_accessible_version(self, version_id: uuid.UUID, user_id: uuid.UUID) -> VersionRecord:
        version = await self.version_repository.get_by_uuid(version_id)
        if version is None:
            raise NotFoundError("Version not found", {"version_id": str(version_id)})

        parent = await self.document_repository.get_by_uuid(version.document_id, include_deleted=True)
        if parent is None:
            raise NotFoundError("Version not found", {"version_id": str(version_id)})
        if not parent.is_owned_by(user_id):
            raise ForbiddenError(
                "You do not have access to this version",
                {"version_id": str(version_id)}
            )
        return version
