from fastapi import HTTPException, status

from prompt_history.core.exceptions import (
    DomainValidationError, ForbiddenError, InvalidOperationError, NotFoundError,
    PromptHistoryError, TransientStorageError
)

STATUS_BY_ERROR = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    InvalidOperationError: status.HTTP_400_BAD_REQUEST,
    DomainValidationError: 422,
    TransientStorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(error: PromptHistoryError) -> HTTPException:
    """Преобразование доменной ошибки в HTTP-ответ"""
    status_code = STATUS_BY_ERROR.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = {"Retry-After": "1"} if isinstance(error, TransientStorageError) else None
    return HTTPException(status_code=status_code, detail=error.message, headers=headers)
