from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
import uuid

from prompt_history.db.models.document import Document as DocumentModel
from prompt_history.domains.documents.entities import Document
from prompt_history.domains.documents.fields import dump_structured_fields, parse_structured_fields


class DocumentRepository:
    """
    Репозиторий документов.

    Не фиксирует транзакцию: единицей работы управляет вызывающий сервис,
    чтобы изменение полей документа и вставка версии шли одной транзакцией.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, document: Document) -> Document:
        """Добавление нового документа в текущую транзакцию"""
        db_document = DocumentModel(
            uuid=document.uuid,
            owner_id=document.owner_id,
            title=document.title,
            description=document.description,
            content=document.content,
            structured_fields=dump_structured_fields(document.structured_fields),
            current_version_number=document.current_version_number,
            is_deleted=document.is_deleted,
            created_at=document.created_at,
            updated_at=document.updated_at
        )

        self.session.add(db_document)
        await self.session.flush()
        return self._to_domain(db_document)

    async def get_by_uuid(self, document_uuid: uuid.UUID, include_deleted: bool = False) -> Optional[Document]:
        """Получение документа по UUID"""
        query = select(DocumentModel).where(DocumentModel.uuid == document_uuid).execution_options(
            populate_existing=True
        )
        if not include_deleted:
            query = query.where(DocumentModel.is_deleted.is_(False))

        result = await self.session.execute(query)
        db_document = result.scalar_one_or_none()
        return self._to_domain(db_document) if db_document else None

    async def get_for_owner(
        self,
        document_uuid: uuid.UUID,
        owner_id: uuid.UUID,
        for_update: bool = False
    ) -> Optional[Document]:
        """
        Получение документа владельца.

        Чужой, удаленный и несуществующий документ неразличимы (None).
        С ``for_update`` строка блокируется до конца транзакции там,
        где бэкенд поддерживает SELECT ... FOR UPDATE.
        """
        query = select(DocumentModel).where(
            DocumentModel.uuid == document_uuid,
            DocumentModel.owner_id == owner_id,
            DocumentModel.is_deleted.is_(False)
        ).execution_options(populate_existing=True)
        if for_update:
            query = query.with_for_update()

        result = await self.session.execute(query)
        db_document = result.scalar_one_or_none()
        return self._to_domain(db_document) if db_document else None

    async def update_fields(self, document: Document) -> None:
        """Запись редактируемых полей и отметки номера версии"""
        stmt = (
            update(DocumentModel)
            .where(DocumentModel.uuid == document.uuid)
            .values(
                title=document.title,
                description=document.description,
                content=document.content,
                structured_fields=dump_structured_fields(document.structured_fields),
                current_version_number=document.current_version_number,
                updated_at=document.updated_at
            )
        )
        await self.session.execute(stmt)

    async def soft_delete(self, document_uuid: uuid.UUID) -> bool:
        """Пометка документа удаленным"""
        stmt = (
            update(DocumentModel)
            .where(DocumentModel.uuid == document_uuid, DocumentModel.is_deleted.is_(False))
            .values(is_deleted=True)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    def _to_domain(self, db_document: DocumentModel) -> Document:
        """Преобразование модели БД в доменную сущность"""
        return Document(
            uuid=db_document.uuid,
            owner_id=db_document.owner_id,
            title=db_document.title,
            description=db_document.description,
            content=db_document.content,
            structured_fields=parse_structured_fields(db_document.structured_fields),
            current_version_number=db_document.current_version_number,
            is_deleted=db_document.is_deleted,
            created_at=db_document.created_at,
            updated_at=db_document.updated_at
        )
