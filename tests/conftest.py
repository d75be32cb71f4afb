"""Общие фикстуры: отдельная SQLite-база на тест, бакет в памяти с переключателями сбоев."""

from datetime import date
from typing import List, Optional

import pytest
import pytest_asyncio
from sqlalchemy import event

import memorylane.db.models  # noqa: F401  регистрация таблиц в метаданных
from memorylane.core.db import Base, build_engine, build_session_factory
from memorylane.db.repositories import MemoryRepository, TimelineRepository
from memorylane.storage.backends import InMemoryStorage, StorageBackendError
from memorylane.storage.gateway import BlobStoreGateway


class FlakyStorage(InMemoryStorage):
    """Бакет в памяти, запись и удаление в котором можно переключить в режим отказа."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_writes = False
        self.fail_removals = False
        self.fail_batches = False
        self.failing_keys: set = set()
        self.removal_calls: List[List[str]] = []

    async def put(self, key, data, content_type=None, upsert=False):
        if self.fail_writes:
            raise StorageBackendError("Payload too large", status_code=413)
        return await super().put(key, data, content_type=content_type, upsert=upsert)

    async def remove(self, keys):
        self.removal_calls.append(list(keys))
        if self.fail_removals:
            raise StorageBackendError("new row violates row-level security policy", status_code=403)
        if self.fail_batches and len(keys) > 1:
            raise StorageBackendError("Batch delete unavailable", status_code=503)
        if any(key in self.failing_keys for key in keys):
            raise StorageBackendError("Access denied", status_code=403)
        return await super().remove(keys)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/memorylane.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage():
    return FlakyStorage()


@pytest.fixture
def gateway(storage):
    return BlobStoreGateway(storage)


@pytest.fixture
def memories(session, gateway):
    return MemoryRepository(session, gateway)


@pytest.fixture
def timelines(session, memories):
    return TimelineRepository(session, memories)


@pytest.fixture
def statements(engine):
    """SQL-запросы, выполненные через движок, по порядку."""
    executed: List[str] = []

    def record(conn, cursor, statement, parameters, context, executemany):
        executed.append(statement)

    event.listen(engine.sync_engine, "before_cursor_execute", record)
    yield executed
    event.remove(engine.sync_engine, "before_cursor_execute", record)


@pytest.fixture
def upload_image(gateway):
    """Загрузка небольшого поддельного JPEG; возвращает UploadResult."""

    async def _upload(filename: str = "photo.jpg"):
        return await gateway.upload(b"\xff\xd8\xff" + filename.encode(), filename, "image/jpeg")

    return _upload


@pytest.fixture
def make_memory(memories, upload_image):
    """Создание воспоминания со свежезагруженным изображением."""

    async def _make(
        timeline_id,
        name: str = "Colosseum",
        date_of_event: date = date(2023, 5, 14),
        filename: Optional[str] = None
    ):
        image = await upload_image(filename or f"{name}.jpg")
        return await memories.create({
            "timeline_id": timeline_id,
            "name": name,
            "description": f"{name} at sunset",
            "image_url": image.public_url,
            "image_key": image.key,
            "date_of_event": date_of_event,
        })

    return _make
