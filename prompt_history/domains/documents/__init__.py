from prompt_history.domains.documents.fields import (
    StructuredField, TextField, NumberField, SelectField
)
from prompt_history.domains.documents.entities import Document, DocumentChangeSet, UNSET
from prompt_history.domains.documents.schemas import (
    DocumentCreate, DocumentUpdate, DocumentResponse, DocumentUpdateResponse, DocumentStatsResponse
)

__all__ = [
    "StructuredField", "TextField", "NumberField", "SelectField",
    "Document", "DocumentChangeSet", "UNSET",
    "DocumentCreate", "DocumentUpdate", "DocumentResponse", "DocumentUpdateResponse",
    "DocumentStatsResponse"
]
