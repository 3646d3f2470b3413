from sqlalchemy import Boolean, Column, ForeignKey, Integer, JSON, String, Text, UniqueConstraint, UUID
from sqlalchemy.orm import relationship

from prompt_history.db.base import BaseModel

VERSION_NUMBER_CONSTRAINT = "uq_document_versions_number"


class DocumentVersion(BaseModel):
    __tablename__ = "document_versions"
    __table_args__ = (
        UniqueConstraint("document_id", "version_number", name=VERSION_NUMBER_CONSTRAINT),
    )

    document_id = Column(
        UUID(as_uuid=True), ForeignKey("documents.uuid", ondelete="CASCADE"), nullable=False, index=True
    )
    version_number = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    structured_fields = Column(JSON, nullable=False, default=list)
    change_summary = Column(String(255), nullable=False)
    annotation = Column(String(500), nullable=True)
    is_snapshot = Column(Boolean, nullable=False, default=False)
    created_by = Column(UUID(as_uuid=True), nullable=False)

    # Relationships
    document = relationship("Document", back_populates="versions")
