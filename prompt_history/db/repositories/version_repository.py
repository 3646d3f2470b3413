from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func
import uuid

from prompt_history.db.models.version import DocumentVersion as DocumentVersionModel
from prompt_history.domains.documents.fields import dump_structured_fields, parse_structured_fields
from prompt_history.domains.versioning.entities import VersionRecord


class DocumentVersionRepository:
    """Репозиторий для работы с версиями документов"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, version: VersionRecord) -> VersionRecord:
        """
        Вставка новой версии.

        Нарушение уникальности (document_id, version_number) поднимается
        как IntegrityError при flush и обрабатывается сервисом нумерации.
        """
        db_version = DocumentVersionModel(
            uuid=version.id,
            document_id=version.document_id,
            version_number=version.version_number,
            title=version.title,
            content=version.content,
            structured_fields=dump_structured_fields(version.structured_fields),
            change_summary=version.change_summary,
            annotation=version.annotation,
            is_snapshot=version.is_snapshot,
            created_by=version.created_by,
            created_at=version.created_at,
            updated_at=version.created_at
        )

        self.session.add(db_version)
        await self.session.flush()
        return self._to_domain(db_version)

    async def get_by_uuid(self, version_uuid: uuid.UUID) -> Optional[VersionRecord]:
        """Получение версии по UUID"""
        result = await self.session.execute(
            select(DocumentVersionModel)
            .where(DocumentVersionModel.uuid == version_uuid)
            .execution_options(populate_existing=True)
        )
        db_version = result.scalar_one_or_none()
        return self._to_domain(db_version) if db_version else None

    async def get_by_document(
        self,
        document_id: uuid.UUID,
        limit: int = 50,
        offset: int = 0
    ) -> List[VersionRecord]:
        """Получение версий документа, новые первыми"""
        result = await self.session.execute(
            select(DocumentVersionModel)
            .where(DocumentVersionModel.document_id == document_id)
            .order_by(DocumentVersionModel.version_number.desc())
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        db_versions = result.scalars().all()
        return [self._to_domain(version) for version in db_versions]

    async def get_latest_number(self, document_id: uuid.UUID) -> int:
        """Наибольший сохраненный номер версии (0, если версий нет)"""
        result = await self.session.execute(
            select(func.max(DocumentVersionModel.version_number))
            .where(DocumentVersionModel.document_id == document_id)
        )
        return result.scalar() or 0

    async def count_by_document(self, document_id: uuid.UUID) -> int:
        """Подсчет количества версий документа"""
        result = await self.session.execute(
            select(func.count(DocumentVersionModel.uuid))
            .where(DocumentVersionModel.document_id == document_id)
        )
        return result.scalar()

    async def count_snapshots(self, document_id: uuid.UUID) -> int:
        """Подсчет защищенных снимков документа"""
        result = await self.session.execute(
            select(func.count(DocumentVersionModel.uuid))
            .where(
                DocumentVersionModel.document_id == document_id,
                DocumentVersionModel.is_snapshot.is_(True)
            )
        )
        return result.scalar()

    async def update_annotation(self, version_uuid: uuid.UUID, annotation: Optional[str]) -> bool:
        """Изменение аннотации - единственного изменяемого поля версии"""
        stmt = (
            update(DocumentVersionModel)
            .where(DocumentVersionModel.uuid == version_uuid)
            .values(annotation=annotation)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def delete(self, version_uuid: uuid.UUID) -> bool:
        """Удаление версии"""
        stmt = delete(DocumentVersionModel).where(DocumentVersionModel.uuid == version_uuid)
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    def _to_domain(self, db_version: DocumentVersionModel) -> VersionRecord:
        """Преобразование модели БД в доменную сущность"""
        return VersionRecord(
            id=db_version.uuid,
            document_id=db_version.document_id,
            version_number=db_version.version_number,
            title=db_version.title,
            content=db_version.content,
            structured_fields=parse_structured_fields(db_version.structured_fields),
            change_summary=db_version.change_summary,
            annotation=db_version.annotation,
            is_snapshot=db_version.is_snapshot,
            created_by=db_version.created_by,
            created_at=db_version.created_at
        )
