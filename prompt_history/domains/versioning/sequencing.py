"""
Выделение номеров версий без коллизий при конкурентной записи.

Операция, создающая версию, выполняется целиком как одна единица работы:
чтение документа, вычисление следующего номера, вставка версии,
обновление полей документа и фиксация. Внутри процесса операции над
одним документом сериализуются блокировкой на документ (разные документы
друг друга не ждут). Между процессами защищают блокировка строки
документа и уникальное ограничение (document_id, version_number):
коллизия или временный сбой хранилища откатывают транзакцию, и вся
операция повторяется со свежим номером.
"""
import asyncio
import logging
import random
import uuid
import weakref
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from prompt_history.core.config import settings
from prompt_history.core.exceptions import TransientStorageError
from prompt_history.db.models.version import VERSION_NUMBER_CONSTRAINT
from prompt_history.db.repositories.version_repository import DocumentVersionRepository
from prompt_history.domains.documents.entities import Document

logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQLSTATE конфликта сериализации, взаимоблокировки и таймаута блокировки в PostgreSQL
TRANSIENT_SQLSTATES = {"40001", "40P01", "55P03"}

# SQLITE_BUSY и SQLITE_LOCKED (младший байт расширенного кода)
SQLITE_CONTENTION_CODES = {5, 6}


class DocumentLockRegistry:
    """Блокировки asyncio на документ; неиспользуемые освобождаются сборщиком мусора"""

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, document_id: uuid.UUID) -> asyncio.Lock:
        lock = self._locks.get(document_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[document_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, document_id: uuid.UUID):
        lock = self.get(document_id)
        async with lock:
            yield


document_locks = DocumentLockRegistry()


def is_version_collision(exc: DBAPIError) -> bool:
    """Нарушение уникальности номера версии внутри документа"""
    if not isinstance(exc, IntegrityError):
        return False
    message = str(exc.orig) if exc.orig is not None else str(exc)
    return (
        VERSION_NUMBER_CONSTRAINT in message
        or "document_versions.version_number" in message
    )


def is_transient(exc: DBAPIError) -> bool:
    """
    Конкуренция за блокировку, после которой операцию можно повторить.

    Прочие OperationalError (нет таблицы, ошибка ввода-вывода) временными
    не считаются и пробрасываются без повторов.
    """
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if sqlstate in TRANSIENT_SQLSTATES:
        return True
    if not isinstance(exc, OperationalError) or exc.connection_invalidated:
        return False

    error_code = getattr(exc.orig, "sqlite_errorcode", None)
    if error_code is not None:
        return (error_code & 0xFF) in SQLITE_CONTENTION_CODES
    return "is locked" in str(exc.orig).lower()


class SequencingService:
    """Сервис нумерации версий"""

    def __init__(
        self,
        session: AsyncSession,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        locks: DocumentLockRegistry = document_locks
    ):
        self.session = session
        self.version_repository = DocumentVersionRepository(session)
        self.max_attempts = max_attempts or settings.version_retry_attempts
        self.backoff_seconds = settings.version_retry_backoff_seconds if backoff_seconds is None else backoff_seconds
        self.locks = locks

    async def next_version_number(self, document: Document) -> int:
        """
        Следующий номер версии документа.

        Пока удалений не было, равен количеству версий + 1. Отметка
        ``current_version_number`` не уменьшается при удалении, поэтому
        номер удаленной последней версии повторно не выдается.
        """
        latest = await self.version_repository.get_latest_number(document.uuid)
        return max(latest, document.current_version_number) + 1

    async def run(self, document_id: uuid.UUID, operation: Callable[[], Awaitable[T]]) -> T:
        """Выполнение операции, создающей версию, с фиксацией и повторами"""
        last_error: Optional[DBAPIError] = None

        async with self.locks.hold(document_id):
            for attempt in range(1, self.max_attempts + 1):
                try:
                    result = await operation()
                    await self.session.commit()
                    return result
                except DBAPIError as e:
                    await self.session.rollback()
                    if not (is_version_collision(e) or is_transient(e)):
                        raise
                    last_error = e
                    logger.warning(
                        f"Version write for document {document_id} failed "
                        f"(attempt {attempt}/{self.max_attempts}): {e.orig}"
                    )
                    if attempt < self.max_attempts:
                        await asyncio.sleep(self._backoff_delay(attempt))
                except Exception:
                    await self.session.rollback()
                    raise

        raise TransientStorageError(
            f"Could not write version for document {document_id} after {self.max_attempts} attempts",
            attempts=self.max_attempts,
            details={"document_id": str(document_id), "cause": str(last_error.orig) if last_error else None}
        )

    def _backoff_delay(self, attempt: int) -> float:
        """Экспоненциальная задержка с джиттером"""
        if self.backoff_seconds <= 0:
            return 0
        return self.backoff_seconds * (2 ** (attempt - 1)) * random.uniform(0.5, 1.5)
