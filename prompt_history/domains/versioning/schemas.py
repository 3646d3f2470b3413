from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
import uuid
from datetime import datetime

from prompt_history.domains.documents.fields import StructuredField
from prompt_history.domains.documents.schemas import DocumentResponse
from prompt_history.domains.versioning.entities import ANNOTATION_MAX_LENGTH


class VersionResponse(BaseModel):
    """Схема для ответа с данными версии документа"""
    id: uuid.UUID
    document_id: uuid.UUID
    version_number: int
    title: str
    content: str
    structured_fields: List[StructuredField]
    change_summary: str
    annotation: Optional[str] = None
    is_snapshot: bool
    created_by: uuid.UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VersionListResponse(BaseModel):
    """Схема для страницы истории версий"""
    versions: List[VersionResponse]
    total: int
    limit: int
    offset: int


class SnapshotCreate(BaseModel):
    """Схема для создания ручного снимка"""
    annotation: str = Field(..., min_length=1, max_length=ANNOTATION_MAX_LENGTH)


class RestoreRequest(BaseModel):
    """Схема для восстановления версии"""
    annotation: Optional[str] = Field(None, max_length=ANNOTATION_MAX_LENGTH)


class AnnotationUpdate(BaseModel):
    """Схема для изменения аннотации (пустая строка очищает)"""
    annotation: str = Field(..., max_length=ANNOTATION_MAX_LENGTH)


class RestoreResponse(BaseModel):
    """Схема для ответа на восстановление"""
    document: DocumentResponse
    version: VersionResponse


class VersionCompareResponse(BaseModel):
    """Две полные версии для построения diff на стороне клиента"""
    document_id: uuid.UUID
    version1: VersionResponse
    version2: VersionResponse
