from prompt_history.domains.documents.entities import Document
from prompt_history.domains.documents.schemas import DocumentResponse
from prompt_history.domains.versioning.entities import VersionRecord
from prompt_history.domains.versioning.schemas import VersionResponse


def document_response(document: Document) -> DocumentResponse:
    return DocumentResponse(
        uuid=document.uuid,
        owner_id=document.owner_id,
        title=document.title,
        description=document.description,
        content=document.content,
        structured_fields=document.structured_fields,
        current_version_number=document.current_version_number,
        created_at=document.created_at,
        updated_at=document.updated_at,
        word_count=document.get_word_count()
    )


def version_response(version: VersionRecord) -> VersionResponse:
    return VersionResponse.model_validate(version)
