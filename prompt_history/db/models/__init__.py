from prompt_history.db.models.document import Document
from prompt_history.db.models.version import DocumentVersion
from prompt_history.db.models.activity import ActivityLog

__all__ = [
    "Document",
    "DocumentVersion",
    "ActivityLog"
]
