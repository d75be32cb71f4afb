from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession

from memorylane.core.config import Settings, settings as default_settings
from memorylane.db.repositories import MemoryRepository, TimelineRepository
from memorylane.storage.backends import InMemoryStorage, ObjectStorage, SupabaseStorage
from memorylane.storage.gateway import BlobStoreGateway

StorageFactory = Callable[[Optional[str]], ObjectStorage]


def default_storage_factory(config: Settings) -> StorageFactory:
    """Фабрика клиентов хранилища, создающая отдельный клиент на каждый запрос"""
    if config.storage_backend == "memory":
        shared = InMemoryStorage(base_url=config.supabase_url, bucket=config.storage_bucket)
        return lambda credential: shared

    def build(credential: Optional[str]) -> ObjectStorage:
        return SupabaseStorage(
            base_url=config.supabase_url,
            api_key=config.supabase_anon_key,
            bucket=config.storage_bucket,
            access_token=credential,
            timeout=config.storage_timeout_seconds,
        )

    return build


@dataclass
class ScopedRepositories:
    timelines: TimelineRepository
    memories: MemoryRepository
    storage: BlobStoreGateway


class AccessScopedSession:
    """Единица работы одного запроса, привязанная к токену вызывающего.

    Токен не разбирается: он передается в хранилище как bearer и в PostgreSQL
    как транзакционная настройка, которую читают RLS-политики.
    """

    def __init__(
        self,
        credential: Optional[str],
        session_factory: Callable[[], AsyncSession],
        storage_factory: StorageFactory,
        config: Settings = default_settings
    ):
        self.credential = credential
        self._session_factory = session_factory
        self._storage_factory = storage_factory
        self._config = config

    def __repr__(self) -> str:
        scope = "authenticated" if self.credential else "anonymous"
        return f"AccessScopedSession({scope})"

    def _attach_credential(self, session, transaction, connection) -> None:
        if connection.dialect.name != "postgresql":
            return
        connection.execute(
            text("SELECT set_config(:setting, :token, true)"),
            {"setting": self._config.db_credential_setting, "token": self.credential},
        )

    @asynccontextmanager
    async def open(self) -> AsyncIterator[ScopedRepositories]:
        """Открытие сессии БД и клиента хранилища на время одной операции"""
        session = self._session_factory()
        if self.credential:
            event.listen(session.sync_session, "after_begin", self._attach_credential)

        storage = self._storage_factory(self.credential)
        gateway = BlobStoreGateway(storage)
        memories = MemoryRepository(session, gateway)
        timelines = TimelineRepository(
            session,
            memories,
            cascade_delete=self._config.timeline_cascade_delete,
            slug_max_attempts=self._config.slug_max_attempts,
            slug_insert_retries=self._config.slug_insert_retries,
        )

        try:
            yield ScopedRepositories(timelines=timelines, memories=memories, storage=gateway)
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
            await storage.aclose()
