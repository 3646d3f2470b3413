"""
Общие фикстуры тестов: SQLite во временном файле на каждый тест,
фабрика сессий и документ с начальной версией.
"""
import os
import uuid

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Тестовое окружение задается до импорта настроек
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./prompt_history_test.db")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("VERSION_RETRY_BACKOFF_SECONDS", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from prompt_history.core.db import Base  # noqa: E402
import prompt_history.db.models  # noqa: E402,F401
from prompt_history.domains.documents.fields import TextField  # noqa: E402
from prompt_history.domains.documents.schemas import DocumentCreate  # noqa: E402
from prompt_history.domains.documents.services import DocumentService  # noqa: E402


@pytest.fixture
async def engine(tmp_path):
    """Движок SQLite с созданной схемой"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'history.db'}",
        connect_args={"timeout": 30},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def other_user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
async def document(session, owner_id):
    """Документ "Hello {{name}}" с версией 1"""
    service = DocumentService(session)
    return await service.create_document(
        DocumentCreate(
            title="Greeting",
            content="Hello {{name}}",
            structured_fields=[TextField(name="name", default="World")],
        ),
        owner_id,
    )
