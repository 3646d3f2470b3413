from sqlalchemy import Column, JSON, String, UUID

from prompt_history.db.base import BaseModel


class ActivityLog(BaseModel):
    __tablename__ = "activity_logs"

    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    action = Column(String(50), nullable=False)
    entity_type = Column(String(50), nullable=False, default="document")
    entity_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    details = Column(JSON, nullable=False, default=dict)
