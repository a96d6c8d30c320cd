"""Test fixtures for the application."""

import os

# Settings are read at import time, so test defaults must be in place first
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_USER", "ragdesk")
os.environ.setdefault("POSTGRES_PASSWORD", "ragdesk")
os.environ.setdefault("POSTGRES_DB", "ragdesk_test")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.setdefault("STORAGE_BUCKET", "ragdesk-test")
os.environ.setdefault("STORAGE_ACCESS_KEY", "test-access-key")
os.environ.setdefault("STORAGE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("EMBEDDING_DIMENSIONS", "8")

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ragdesk.core.config import settings
from ragdesk.db.base import Base
from ragdesk.db.models import File, FileStatus

DIMENSIONS = settings.EMBEDDING_DIMENSIONS


def make_vector(seed: float = 0.1) -> list[float]:
    return [seed] * DIMENSIONS


@pytest_asyncio.fixture(scope="function")
async def engine():
    """Create a fresh in-memory database with all tables."""
    engine = create_async_engine(settings.TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    """Create a clean database session for a test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def storage():
    """Object storage stand-in with async methods."""
    storage = MagicMock()
    storage.get_object = AsyncMock(return_value=b"hello world")
    storage.delete_object = AsyncMock()
    storage.generate_upload_url = AsyncMock(return_value="https://storage.test/upload")
    storage.generate_download_url = AsyncMock(return_value="https://storage.test/download")
    return storage


@pytest.fixture
def make_file(db_session):
    """Factory inserting a File row."""

    async def _make_file(
        user_id: str = "user-1",
        status: FileStatus = FileStatus.UPLOADED,
        original_name: str = "notes.txt",
        mime_type: str = "text/plain",
        is_public: bool = False,
        content_hash: str | None = None,
        created_at: datetime | None = None,
    ) -> File:
        file = File(
            storage_key=f"users/{user_id}/key-{original_name}",
            user_id=user_id,
            mime_type=mime_type,
            original_name=original_name,
            size_bytes=10,
            is_public=is_public,
            status=status,
            content_hash=content_hash,
            created_at=created_at or datetime.now(timezone.utc),
        )
        db_session.add(file)
        await db_session.commit()
        return file

    return _make_file
