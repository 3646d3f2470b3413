import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import List, Optional, TYPE_CHECKING

from prompt_history.domains.documents.fields import StructuredField

if TYPE_CHECKING:
    from prompt_history.domains.documents.entities import Document

INITIAL_VERSION_SUMMARY = "Initial version"
CONTENT_UPDATED_SUMMARY = "Content updated"
MANUAL_SNAPSHOT_SUMMARY = "Manual snapshot"
RESTORED_SUMMARY_TEMPLATE = "Restored from version {number}"

ANNOTATION_MAX_LENGTH = 500


def restored_summary(version_number: int) -> str:
    return RESTORED_SUMMARY_TEMPLATE.format(number=version_number)


@dataclass(frozen=True)
class VersionRecord:
    """
    Неизменяемый полный снимок документа в момент создания версии.

    Изменяемым после создания остается только ``annotation``.
    """
    id: uuid.UUID
    document_id: uuid.UUID
    version_number: int
    title: str
    content: str
    structured_fields: List[StructuredField]
    change_summary: str
    is_snapshot: bool
    created_by: uuid.UUID
    annotation: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def with_annotation(self, annotation: Optional[str]) -> "VersionRecord":
        """Копия записи с новой аннотацией"""
        return replace(self, annotation=annotation)

    @classmethod
    def capture(
        cls,
        document: "Document",
        version_number: int,
        change_summary: str,
        is_snapshot: bool,
        created_by: uuid.UUID,
        annotation: Optional[str] = None
    ) -> "VersionRecord":
        """Снимок текущего состояния документа"""
        return cls(
            id=uuid.uuid4(),
            document_id=document.uuid,
            version_number=version_number,
            title=document.title,
            content=document.content,
            structured_fields=list(document.structured_fields),
            change_summary=change_summary,
            is_snapshot=is_snapshot,
            created_by=created_by,
            annotation=annotation
        )

    def __repr__(self) -> str:
        return f"VersionRecord(id={self.id}, document_id={self.document_id}, version={self.version_number})"


@dataclass
class VersionPage:
    """Страница истории версий и общее количество для пагинации"""
    versions: List[VersionRecord]
    total: int


@dataclass
class RestoreResult:
    """Результат восстановления: обновленный документ и новая версия"""
    document: "Document"
    version: VersionRecord


@dataclass
class VersionComparison:
    """Две полные версии одного документа для внешнего построителя diff"""
    first: VersionRecord
    second: VersionRecord
