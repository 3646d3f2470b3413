from prompt_history.db.repositories.document_repository import DocumentRepository
from prompt_history.db.repositories.version_repository import DocumentVersionRepository
from prompt_history.db.repositories.activity_repository import ActivityLogRepository

__all__ = [
    "DocumentRepository",
    "DocumentVersionRepository",
    "ActivityLogRepository"
]
