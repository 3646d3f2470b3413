import enum
import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from prompt_history.db.repositories.activity_repository import ActivityLogRepository

logger = logging.getLogger(__name__)


class ActivityAction(str, enum.Enum):
    CREATED = "created"
    VERSION_CREATED = "version_created"
    SNAPSHOT_CREATED = "snapshot_created"
    VERSION_RESTORED = "version_restored"
    VERSION_DELETED = "version_deleted"
    ANNOTATION_UPDATED = "annotation_updated"


class ActivityLogService:
    """
    Журнал действий с историей версий.

    Запись делается после фиксации операции с версией отдельной
    транзакцией; любая ошибка журнала логируется и не пробрасывается:
    версия к этому моменту уже зафиксирована.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.activity_repository = ActivityLogRepository(session)

    async def record(
        self,
        user_id: uuid.UUID,
        action: ActivityAction,
        document_id: uuid.UUID,
        version_number: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Запись действия. Возвращает False, если журнал недоступен"""
        payload = dict(details or {})
        if version_number is not None:
            payload["version_number"] = version_number

        try:
            await self.activity_repository.create(
                user_id=user_id,
                action=action.value,
                entity_id=document_id,
                details=payload
            )
            await self.session.commit()
            return True
        except Exception:
            await self.session.rollback()
            logger.exception(f"Failed to record activity {action.value} for document {document_id}")
            return False
