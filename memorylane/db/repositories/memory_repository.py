import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from memorylane.core.errors import NotFoundError, ParentNotFoundError, StorageDeleteError
from memorylane.db.base import utcnow
from memorylane.db.models.memory import Memory as MemoryModel
from memorylane.db.repositories.integrity import is_foreign_key_violation
from memorylane.domains.memories.entities import Memory
from memorylane.domains.memories.schemas import MemoryCreate, MemoryUpdate
from memorylane.domains.results import BulkDeleteResult, CleanupFailure, DeleteResult
from memorylane.domains.validation import Page, coerce, parse_id
from memorylane.storage.gateway import BlobStoreGateway

logger = logging.getLogger(__name__)


class MemoryRepository:
    """Репозиторий воспоминаний; держит изображения в хранилище согласованными со строками БД.

    База данных является источником истины: ошибки очистки хранилища логируются
    и никогда не откатывают уже выполненную мутацию строки.
    """

    def __init__(self, session: AsyncSession, storage: BlobStoreGateway):
        self.session = session
        self.storage = storage

    async def create(self, data) -> Memory:
        """Создание воспоминания для уже загруженного изображения"""
        memory_data = coerce(MemoryCreate, data)
        image_key = self.storage.normalize_key(memory_data.image_key or memory_data.image_url)

        now = utcnow()
        db_memory = MemoryModel(
            id=uuid.uuid4(),
            timeline_id=memory_data.timeline_id,
            name=memory_data.name,
            description=memory_data.description,
            image_url=memory_data.image_url,
            image_key=image_key,
            date_of_event=memory_data.date_of_event,
            created_at=now,
            updated_at=now
        )

        self.session.add(db_memory)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if is_foreign_key_violation(e):
                raise ParentNotFoundError(
                    f"Failed to create memory: timeline {memory_data.timeline_id} does not exist"
                ) from e
            raise

        await self.session.refresh(db_memory)
        logger.info(f"Created memory {db_memory.id} in timeline {db_memory.timeline_id}")
        return self._to_domain(db_memory)

    async def get_by_id(self, memory_id) -> Memory:
        """Получение воспоминания по id"""
        memory_id = parse_id(memory_id)
        result = await self.session.execute(
            select(MemoryModel)
            .where(MemoryModel.id == memory_id)
            .execution_options(populate_existing=True)
        )
        db_memory = result.scalar_one_or_none()
        if not db_memory:
            raise NotFoundError(f"Memory {memory_id} not found")
        return self._to_domain(db_memory)

    async def get_by_parent(
        self,
        timeline_id,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[Memory]:
        """Воспоминания таймлайна, самые поздние события первыми"""
        timeline_id = parse_id(timeline_id, "timeline_id")
        query = select(MemoryModel).where(MemoryModel.timeline_id == timeline_id)
        return await self._fetch_page(query, limit, offset)

    async def get_all(self, limit: Optional[int] = None, offset: int = 0) -> List[Memory]:
        """Воспоминания всех таймлайнов"""
        return await self._fetch_page(select(MemoryModel), limit, offset)

    async def _fetch_page(self, query, limit: Optional[int], offset: int) -> List[Memory]:
        page = coerce(Page, {"limit": limit, "offset": offset})
        query = (
            query
            .order_by(MemoryModel.date_of_event.desc(), MemoryModel.created_at.desc())
            .offset(page.offset)
            .execution_options(populate_existing=True)
        )
        if page.limit:
            query = query.limit(page.limit)

        result = await self.session.execute(query)
        return [self._to_domain(memory) for memory in result.scalars().all()]

    async def update(self, memory_id, data) -> Memory:
        """Частичное обновление; старое изображение удаляется только после записи строки"""
        memory_id = parse_id(memory_id)
        changes = coerce(MemoryUpdate, data).model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return await self.get_by_id(memory_id)

        # URL и ключ изображения всегда меняются парой
        if "image_key" in changes:
            changes["image_key"] = self.storage.normalize_key(changes["image_key"])
            changes.setdefault("image_url", self.storage.resolve_public_url(changes["image_key"]))
        elif "image_url" in changes:
            changes["image_key"] = self.storage.normalize_key(changes["image_url"])

        previous_key = None
        if "image_key" in changes:
            previous_key = (await self.get_by_id(memory_id)).image_key

        changes["updated_at"] = utcnow()
        result = await self.session.execute(
            update(MemoryModel).where(MemoryModel.id == memory_id).values(**changes)
        )
        if result.rowcount == 0:
            await self.session.rollback()
            raise NotFoundError(f"Memory {memory_id} not found")
        await self.session.commit()

        memory = await self.get_by_id(memory_id)
        if previous_key and previous_key != memory.image_key:
            await self._discard_image(previous_key, memory.id, memory.timeline_id)

        return memory

    async def delete(self, memory_id) -> DeleteResult:
        """Удаление воспоминания вместе с изображением (best effort)"""
        memory = await self.get_by_id(memory_id)

        await self._discard_image(memory.image_key, memory.id, memory.timeline_id)

        await self.session.execute(delete(MemoryModel).where(MemoryModel.id == memory.id))
        await self.session.commit()

        logger.info(f"Deleted memory {memory.id} from timeline {memory.timeline_id}")
        return DeleteResult(success=True, id=memory.id)

    async def delete_by_parent(self, timeline_id) -> BulkDeleteResult:
        """Каскадное удаление всех воспоминаний таймлайна; сбои собираются, цикл не прерывается"""
        timeline_id = parse_id(timeline_id, "timeline_id")
        result = await self.session.execute(
            select(MemoryModel.id, MemoryModel.image_key)
            .where(MemoryModel.timeline_id == timeline_id)
        )
        rows = result.all()

        deleted = 0
        failures: List[CleanupFailure] = []
        for memory_id, image_key in rows:
            reason = await self._discard_image(image_key, memory_id, timeline_id)
            if reason:
                failures.append(CleanupFailure(memory_id=memory_id, image_key=image_key, reason=reason))

            try:
                result = await self.session.execute(
                    delete(MemoryModel).where(MemoryModel.id == memory_id)
                )
                await self.session.commit()
                deleted += result.rowcount
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error(f"Failed to delete memory row {memory_id} of timeline {timeline_id}: {e}")
                failures.append(CleanupFailure(
                    memory_id=memory_id, image_key=image_key, reason=f"row delete failed: {e}"
                ))

        # Добиваем строки, пропущенные из-за сбоев или добавленные параллельно
        result = await self.session.execute(
            delete(MemoryModel).where(MemoryModel.timeline_id == timeline_id)
        )
        await self.session.commit()
        deleted += result.rowcount

        if failures:
            logger.warning(
                f"Cascade for timeline {timeline_id} removed {deleted} memories "
                f"with {len(failures)} cleanup failures"
            )
        return BulkDeleteResult(success=True, id=timeline_id, deleted=deleted, failures=failures)

    async def count_by_parent(self, timeline_id) -> int:
        """Точное количество воспоминаний таймлайна"""
        timeline_id = parse_id(timeline_id, "timeline_id")
        result = await self.session.execute(
            select(func.count(MemoryModel.id)).where(MemoryModel.timeline_id == timeline_id)
        )
        return result.scalar() or 0

    async def exists_for_parent(self, timeline_id) -> bool:
        timeline_id = parse_id(timeline_id, "timeline_id")
        result = await self.session.execute(
            select(MemoryModel.id).where(MemoryModel.timeline_id == timeline_id).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def _discard_image(
        self,
        image_key: str,
        memory_id: uuid.UUID,
        timeline_id: uuid.UUID
    ) -> Optional[str]:
        """Best-effort удаление изображения; возвращает причину сбоя или None"""
        try:
            await self.storage.delete(image_key)
        except StorageDeleteError as e:
            logger.error(
                f"Orphaned image {image_key} in bucket {self.storage.bucket} "
                f"(memory {memory_id}, timeline {timeline_id}): {e.message}"
            )
            return e.message
        return None

    def _to_domain(self, db_memory: MemoryModel) -> Memory:
        """Преобразование модели БД в доменную сущность"""
        return Memory(
            id=db_memory.id,
            timeline_id=db_memory.timeline_id,
            name=db_memory.name,
            description=db_memory.description,
            image_url=db_memory.image_url,
            image_key=db_memory.image_key,
            date_of_event=db_memory.date_of_event,
            created_at=db_memory.created_at,
            updated_at=db_memory.updated_at
        )
