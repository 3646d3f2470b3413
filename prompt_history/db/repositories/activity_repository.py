from typing import Any, Dict, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import uuid

from prompt_history.db.models.activity import ActivityLog as ActivityLogModel


class ActivityLogRepository:
    """Репозиторий журнала действий"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        user_id: uuid.UUID,
        action: str,
        entity_id: uuid.UUID,
        details: Dict[str, Any],
        entity_type: str = "document"
    ) -> None:
        """Добавление записи журнала в текущую транзакцию"""
        self.session.add(ActivityLogModel(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details
        ))
        await self.session.flush()

    async def get_by_entity(self, entity_id: uuid.UUID, limit: int = 100) -> List[ActivityLogModel]:
        """Записи журнала по сущности, старые первыми"""
        result = await self.session.execute(
            select(ActivityLogModel)
            .where(ActivityLogModel.entity_id == entity_id)
            .order_by(ActivityLogModel.created_at.asc())
            .limit(limit)
        )
        return list(result.scalars().all())
