import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from prompt_history.core.exceptions import InvalidOperationError, NotFoundError
from prompt_history.db.repositories.document_repository import DocumentRepository
from prompt_history.db.repositories.version_repository import DocumentVersionRepository
from prompt_history.domains.versioning.entities import VersionComparison


class ComparisonService:
    """
    Выдача двух версий документа для сравнения.

    Сам diff не строится: построение и отображение разницы - задача
    внешнего компонента, здесь только безопасная выборка и проверка,
    что обе версии принадлежат одному документу.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.document_repository = DocumentRepository(session)
        self.version_repository = DocumentVersionRepository(session)

    async def compare(
        self,
        document_id: uuid.UUID,
        user_id: uuid.UUID,
        version_id_1: uuid.UUID,
        version_id_2: uuid.UUID
    ) -> VersionComparison:
        """Сравнение двух версий документа"""
        document = await self.document_repository.get_for_owner(document_id, user_id)
        if document is None:
            raise NotFoundError("Document not found", {"document_id": str(document_id)})

        first = await self.version_repository.get_by_uuid(version_id_1)
        second = await self.version_repository.get_by_uuid(version_id_2)

        if first is None or second is None:
            raise NotFoundError(
                "One or both versions not found",
                {"version_id_1": str(version_id_1), "version_id_2": str(version_id_2)}
            )

        if first.document_id != document_id or second.document_id != document_id:
            raise InvalidOperationError(
                "Versions must belong to the same document",
                {"document_id": str(document_id)}
            )

        return VersionComparison(first=first, second=second)
