"""
Иерархия доменных исключений.

Сервисы выбрасывают их до любой записи в хранилище, HTTP-слой
преобразует их в ответы с соответствующим статусом.
"""
from typing import Any, Dict, Optional


class PromptHistoryError(Exception):
    """Базовое исключение движка версий"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": type(self).__name__, "message": self.message, "details": self.details}


class NotFoundError(PromptHistoryError):
    """Документ или версия не существует либо недоступна пользователю"""


class ForbiddenError(PromptHistoryError):
    """Пользователь аутентифицирован, но не является владельцем документа"""


class InvalidOperationError(PromptHistoryError):
    """Операция нарушает инварианты истории версий"""


class DomainValidationError(PromptHistoryError):
    """Некорректные входные данные (аннотация, поля шаблона, пагинация)"""


class TransientStorageError(PromptHistoryError):
    """Конфликт сериализации или таймаут хранилища после всех повторов"""

    def __init__(self, message: str, attempts: int, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.attempts = attempts
