from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from prompt_history.api.http.errors import to_http_exception
from prompt_history.api.http.responses import document_response, version_response
from prompt_history.core.auth import get_current_user_id
from prompt_history.core.db import get_db
from prompt_history.core.exceptions import PromptHistoryError
from prompt_history.domains.versioning.comparison import ComparisonService
from prompt_history.domains.versioning.schemas import (
    AnnotationUpdate, RestoreRequest, RestoreResponse, SnapshotCreate,
    VersionCompareResponse, VersionListResponse, VersionResponse
)
from prompt_history.domains.versioning.services import VersioningService, MAX_PAGE_SIZE

router = APIRouter(tags=["versions"])


# История версий документа
@router.get("/documents/{document_uuid}/versions", response_model=VersionListResponse)
async def list_versions(
    document_uuid: uuid.UUID,
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Получение версий документа"""
    versioning_service = VersioningService(db)

    try:
        page = await versioning_service.list_versions(document_uuid, user_id, limit, offset)
    except PromptHistoryError as e:
        raise to_http_exception(e)

    return VersionListResponse(
        versions=[version_response(version) for version in page.versions],
        total=page.total,
        limit=limit,
        offset=offset
    )


@router.post(
    "/documents/{document_uuid}/versions/snapshots",
    response_model=VersionResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_snapshot(
    document_uuid: uuid.UUID,
    snapshot_data: SnapshotCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Создание ручного снимка"""
    versioning_service = VersioningService(db)

    try:
        version = await versioning_service.create_snapshot(document_uuid, user_id, snapshot_data.annotation)
    except PromptHistoryError as e:
        raise to_http_exception(e)

    return version_response(version)


@router.get("/documents/{document_uuid}/versions/compare", response_model=VersionCompareResponse)
async def compare_versions(
    document_uuid: uuid.UUID,
    version_id_1: uuid.UUID,
    version_id_2: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Две версии документа для сравнения на стороне клиента"""
    comparison_service = ComparisonService(db)

    try:
        comparison = await comparison_service.compare(document_uuid, user_id, version_id_1, version_id_2)
    except PromptHistoryError as e:
        raise to_http_exception(e)

    return VersionCompareResponse(
        document_id=document_uuid,
        version1=version_response(comparison.first),
        version2=version_response(comparison.second)
    )


@router.get("/versions/{version_uuid}", response_model=VersionResponse)
async def get_version(
    version_uuid: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Получение версии по UUID"""
    versioning_service = VersioningService(db)

    try:
        version = await versioning_service.get_version(version_uuid, user_id)
    except PromptHistoryError as e:
        raise to_http_exception(e)

    return version_response(version)


@router.post("/versions/{version_uuid}/restore", response_model=RestoreResponse)
async def restore_version(
    version_uuid: uuid.UUID,
    restore_data: RestoreRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Восстановление документа из версии"""
    versioning_service = VersioningService(db)

    try:
        result = await versioning_service.restore(version_uuid, user_id, restore_data.annotation)
    except PromptHistoryError as e:
        raise to_http_exception(e)

    return RestoreResponse(
        document=document_response(result.document),
        version=version_response(result.version)
    )


@router.patch("/versions/{version_uuid}/annotation", response_model=VersionResponse)
async def update_annotation(
    version_uuid: uuid.UUID,
    annotation_data: AnnotationUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Изменение аннотации версии"""
    versioning_service = VersioningService(db)

    try:
        version = await versioning_service.update_annotation(version_uuid, user_id, annotation_data.annotation)
    except PromptHistoryError as e:
        raise to_http_exception(e)

    return version_response(version)


@router.delete("/versions/{version_uuid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_version(
    version_uuid: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Удаление версии"""
    versioning_service = VersioningService(db)

    try:
        await versioning_service.delete_version(version_uuid, user_id)
    except PromptHistoryError as e:
        raise to_http_exception(e)
