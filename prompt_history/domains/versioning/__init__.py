from prompt_history.domains.versioning.entities import (
    VersionRecord, VersionPage, RestoreResult, VersionComparison
)
from prompt_history.domains.versioning.schemas import (
    VersionResponse, VersionListResponse, SnapshotCreate, RestoreRequest,
    AnnotationUpdate, RestoreResponse, VersionCompareResponse
)

# Сервисы импортируются из модулей напрямую: они зависят от репозиториев,
# а репозитории - от сущностей этого пакета

__all__ = [
    "VersionRecord", "VersionPage", "RestoreResult", "VersionComparison",
    "VersionResponse", "VersionListResponse", "SnapshotCreate", "RestoreRequest",
    "AnnotationUpdate", "RestoreResponse", "VersionCompareResponse"
]
