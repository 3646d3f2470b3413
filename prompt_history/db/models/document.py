from sqlalchemy import Boolean, Column, Integer, JSON, String, Text, UUID
from sqlalchemy.orm import relationship

from prompt_history.db.base import BaseModel


class Document(BaseModel):
    __tablename__ = "documents"

    # Владелец приходит из внешнего сервиса идентификации, поэтому без внешнего ключа
    owner_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    structured_fields = Column(JSON, nullable=False, default=list)
    current_version_number = Column(Integer, nullable=False, default=0)
    is_deleted = Column(Boolean, nullable=False, default=False)

    # Relationships
    versions = relationship("DocumentVersion", back_populates="document", cascade="all, delete-orphan")
