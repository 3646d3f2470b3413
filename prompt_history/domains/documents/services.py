from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from prompt_history.core.exceptions import DomainValidationError, NotFoundError
from prompt_history.db.repositories.document_repository import DocumentRepository
from prompt_history.db.repositories.version_repository import DocumentVersionRepository
from prompt_history.domains.documents.entities import Document, DocumentChangeSet
from prompt_history.domains.documents.schemas import DocumentCreate, DocumentUpdate
from prompt_history.domains.versioning.entities import VersionRecord
from prompt_history.domains.versioning.services import VersioningService


class DocumentService:
    """Сервис для работы с документами со стороны редактора"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.document_repository = DocumentRepository(session)
        self.version_repository = DocumentVersionRepository(session)
        self.versioning = VersioningService(session)

    async def create_document(self, document_data: DocumentCreate, owner_id: uuid.UUID) -> Document:
        """Создание документа вместе с начальной версией в одной транзакции"""
        if not document_data.content.strip():
            raise DomainValidationError("Content cannot be empty", {"field": "content"})

        document = Document.create_document(
            title=document_data.title,
            owner_id=owner_id,
            content=document_data.content,
            description=document_data.description,
            structured_fields=document_data.structured_fields
        )

        created_document = await self.document_repository.create(document)
        await self.versioning.create_initial(created_document, owner_id)

        return created_document

    async def get_document(self, document_uuid: uuid.UUID, owner_id: uuid.UUID) -> Document:
        """Получение документа владельца"""
        document = await self.document_repository.get_for_owner(document_uuid, owner_id)
        if document is None:
            raise NotFoundError("Document not found", {"document_id": str(document_uuid)})
        return document

    async def update_document(
        self,
        document_uuid: uuid.UUID,
        update_data: DocumentUpdate,
        owner_id: uuid.UUID
    ) -> Tuple[Document, Optional[VersionRecord]]:
        """Обновление документа; версия создается только при изменении содержимого"""
        changes = DocumentChangeSet.from_update(update_data)
        version = await self.versioning.record_edit(document_uuid, owner_id, changes)
        document = await self.get_document(document_uuid, owner_id)
        return document, version

    async def delete_document(self, document_uuid: uuid.UUID, owner_id: uuid.UUID) -> None:
        """Мягкое удаление документа; история версий сохраняется"""
        await self.get_document(document_uuid, owner_id)
        try:
            await self.document_repository.soft_delete(document_uuid)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    async def get_document_stats(self, document_uuid: uuid.UUID, owner_id: uuid.UUID) -> dict:
        """Получение статистики документа"""
        document = await self.get_document(document_uuid, owner_id)

        version_count = await self.version_repository.count_by_document(document_uuid)
        snapshot_count = await self.version_repository.count_snapshots(document_uuid)

        return {
            "document_id": document.uuid,
            "title": document.title,
            "word_count": document.get_word_count(),
            "character_count": len(document.content),
            "version_count": version_count,
            "snapshot_count": snapshot_count,
            "current_version_number": document.current_version_number,
            "last_modified": document.updated_at,
            "created_at": document.created_at
        }
