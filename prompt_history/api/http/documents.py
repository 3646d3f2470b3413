from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from prompt_history.api.http.errors import to_http_exception
from prompt_history.api.http.responses import document_response
from prompt_history.core.auth import get_current_user_id
from prompt_history.core.db import get_db
from prompt_history.core.exceptions import PromptHistoryError
from prompt_history.domains.documents.schemas import (
    DocumentCreate, DocumentUpdate, DocumentResponse, DocumentUpdateResponse, DocumentStatsResponse
)
from prompt_history.domains.documents.services import DocumentService

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    document_data: DocumentCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Создание нового документа (с версией 1)"""
    document_service = DocumentService(db)

    try:
        document = await document_service.create_document(document_data, user_id)
    except PromptHistoryError as e:
        raise to_http_exception(e)

    return document_response(document)


@router.get("/{document_uuid}", response_model=DocumentResponse)
async def get_document(
    document_uuid: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Получение документа по UUID"""
    document_service = DocumentService(db)

    try:
        document = await document_service.get_document(document_uuid, user_id)
    except PromptHistoryError as e:
        raise to_http_exception(e)

    return document_response(document)


@router.put("/{document_uuid}", response_model=DocumentUpdateResponse)
async def update_document(
    document_uuid: uuid.UUID,
    update_data: DocumentUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Обновление документа"""
    document_service = DocumentService(db)

    try:
        document, version = await document_service.update_document(document_uuid, update_data, user_id)
    except PromptHistoryError as e:
        raise to_http_exception(e)

    return DocumentUpdateResponse(
        document=document_response(document),
        created_version_number=version.version_number if version else None
    )


@router.delete("/{document_uuid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_uuid: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Удаление документа"""
    document_service = DocumentService(db)

    try:
        await document_service.delete_document(document_uuid, user_id)
    except PromptHistoryError as e:
        raise to_http_exception(e)


@router.get("/{document_uuid}/stats", response_model=DocumentStatsResponse)
async def get_document_stats(
    document_uuid: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Получение статистики документа"""
    document_service = DocumentService(db)

    try:
        stats = await document_service.get_document_stats(document_uuid, user_id)
    except PromptHistoryError as e:
        raise to_http_exception(e)

    return DocumentStatsResponse(**stats)
