import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional, TYPE_CHECKING

from prompt_history.core.exceptions import DomainValidationError
from prompt_history.domains.documents.fields import StructuredField, ensure_unique_names

if TYPE_CHECKING:
    from prompt_history.domains.documents.schemas import DocumentUpdate
    from prompt_history.domains.versioning.entities import VersionRecord


class _Unset:
    """Маркер "поле не передано" (в отличие от явного None)"""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class DocumentChangeSet:
    """
    Частичное обновление редактируемых полей документа.

    Для каждого поля различаются три состояния: UNSET (не менять),
    None (очистить, допустимо только для description) и значение.
    """
    title: Any = UNSET
    description: Any = UNSET
    content: Any = UNSET
    structured_fields: Any = UNSET

    def __post_init__(self):
        for name in ("title", "content"):
            value = getattr(self, name)
            if value is UNSET:
                continue
            if value is None or not value.strip():
                raise DomainValidationError(f"{name.capitalize()} cannot be empty", {"field": name})
        if self.structured_fields is None:
            raise DomainValidationError("Structured fields cannot be null", {"field": "structured_fields"})
        if self.structured_fields is not UNSET:
            try:
                ensure_unique_names(self.structured_fields)
            except ValueError as e:
                raise DomainValidationError(str(e), {"field": "structured_fields"})

    def is_set(self, name: str) -> bool:
        return getattr(self, name) is not UNSET

    def changed_fields(self) -> List[str]:
        """Имена переданных полей"""
        return [name for name in ("title", "description", "content", "structured_fields") if self.is_set(name)]

    @classmethod
    def from_update(cls, update_data: "DocumentUpdate") -> "DocumentChangeSet":
        """Построение набора изменений из входной схемы обновления"""
        values = {
            name: getattr(update_data, name)
            for name in update_data.model_fields_set
            if name in ("title", "description", "content", "structured_fields")
        }
        return cls(**values)


class Document:
    """Сущность версионируемого документа (промпта)"""

    def __init__(
        self,
        uuid: uuid.UUID,
        owner_id: uuid.UUID,
        title: str,
        content: str,
        description: Optional[str] = None,
        structured_fields: Optional[List[StructuredField]] = None,
        current_version_number: int = 0,
        is_deleted: bool = False,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.owner_id = owner_id
        self.title = title
        self.description = description
        self.content = content
        self.structured_fields = list(structured_fields or [])
        self.current_version_number = current_version_number
        self.is_deleted = is_deleted
        self.created_at = created_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or datetime.now(timezone.utc)

    def apply_changes(self, changes: DocumentChangeSet) -> bool:
        """Применение изменений. Возвращает True, если изменилось содержимое"""
        content_changed = changes.is_set("content") and changes.content != self.content

        if changes.is_set("title"):
            self.title = changes.title
        if changes.is_set("description"):
            self.description = changes.description
        if changes.is_set("content"):
            self.content = changes.content
        if changes.is_set("structured_fields"):
            self.structured_fields = list(changes.structured_fields)

        if changes.changed_fields():
            self.updated_at = datetime.now(timezone.utc)
        return content_changed

    def restore_from(self, version: "VersionRecord") -> None:
        """Перезапись полей документа снимком версии"""
        self.title = version.title
        self.content = version.content
        self.structured_fields = list(version.structured_fields)
        self.updated_at = datetime.now(timezone.utc)

    def advance_version(self, version_number: int) -> None:
        """Продвижение отметки последнего выданного номера версии"""
        self.current_version_number = max(self.current_version_number, version_number)

    def is_owned_by(self, user_id: uuid.UUID) -> bool:
        return self.owner_id == user_id

    def get_word_count(self) -> int:
        """Подсчет количества слов в документе"""
        if not self.content.strip():
            return 0
        return len(self.content.split())

    @classmethod
    def create_document(
        cls,
        title: str,
        owner_id: uuid.UUID,
        content: str,
        description: Optional[str] = None,
        structured_fields: Optional[List[StructuredField]] = None
    ) -> "Document":
        """Создание нового документа"""
        return cls(
            uuid=uuid.uuid4(),
            owner_id=owner_id,
            title=title,
            content=content,
            description=description,
            structured_fields=structured_fields
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Document):
            return False
        return self.uuid == other.uuid

    def __repr__(self) -> str:
        return f"Document(uuid={self.uuid}, title={self.title}, version={self.current_version_number})"
