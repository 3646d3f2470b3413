from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
import uuid
from datetime import datetime

from prompt_history.domains.documents.fields import StructuredField, ensure_unique_names


class DocumentBase(BaseModel):
    """Базовая схема документа"""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    content: str = Field(..., min_length=1, max_length=1000000)
    structured_fields: List[StructuredField] = Field(default_factory=list)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError('Title cannot be empty')
        return v.strip()

    @field_validator('structured_fields')
    @classmethod
    def validate_fields(cls, v):
        return ensure_unique_names(v)


class DocumentCreate(DocumentBase):
    """Схема для создания документа"""
    pass


class DocumentUpdate(BaseModel):
    """Схема для обновления документа (передаются только изменяемые поля)"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    content: Optional[str] = Field(None, min_length=1, max_length=1000000)
    structured_fields: Optional[List[StructuredField]] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Title cannot be empty')
        return v.strip() if v else v


class DocumentResponse(DocumentBase):
    """Схема для ответа с данными документа"""
    uuid: uuid.UUID
    owner_id: uuid.UUID
    current_version_number: int
    created_at: datetime
    updated_at: datetime
    word_count: int


class DocumentUpdateResponse(BaseModel):
    """Ответ на обновление: документ и номер созданной версии, если она появилась"""
    document: DocumentResponse
    created_version_number: Optional[int] = None


class DocumentStatsResponse(BaseModel):
    """Схема для статистики документа"""
    document_id: uuid.UUID
    title: str
    word_count: int
    character_count: int
    version_count: int
    snapshot_count: int
    current_version_number: int
    last_modified: datetime
    created_at: datetime
