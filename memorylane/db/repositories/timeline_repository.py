import logging
import re
import uuid
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from memorylane.core.errors import (
    HasDependentsError, NotFoundError, SlugConflictError, ValidationError
)
from memorylane.db.base import utcnow
from memorylane.db.models.timeline import Timeline as TimelineModel
from memorylane.db.repositories.aggregation import MemoryCountPlanner
from memorylane.db.repositories.integrity import is_foreign_key_violation, is_slug_violation
from memorylane.db.repositories.memory_repository import MemoryRepository
from memorylane.domains.results import DeleteResult
from memorylane.domains.timelines.entities import Timeline, TimelineWithCount
from memorylane.domains.timelines.schemas import TimelineCreate, TimelineUpdate
from memorylane.domains.validation import SLUG_MAX_LENGTH, Page, coerce, parse_id

logger = logging.getLogger(__name__)

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")


def generate_slug(name: str) -> str:
    """Slug из имени: нижний регистр, серии прочих символов схлопываются в дефис"""
    slug = _NON_ALNUM_RUN.sub("-", (name or "").strip().lower()).strip("-")
    slug = slug[:SLUG_MAX_LENGTH].rstrip("-")
    if not slug:
        raise ValidationError(f"Cannot derive a slug from name: {name!r}")
    return slug


class TimelineRepository:
    """Репозиторий таймлайнов: жизненный цикл slug, агрегаты и каскадное удаление"""

    def __init__(
        self,
        session: AsyncSession,
        memories: MemoryRepository,
        cascade_delete: bool = True,
        slug_max_attempts: int = 100,
        slug_insert_retries: int = 3
    ):
        self.session = session
        self.memories = memories
        self.cascade_delete = cascade_delete
        self.slug_max_attempts = slug_max_attempts
        self.slug_insert_retries = slug_insert_retries
        self.counts = MemoryCountPlanner(session)

    generate_slug = staticmethod(generate_slug)

    async def slug_exists(self, slug: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
        """Проверка занятости slug другим таймлайном"""
        query = select(TimelineModel.id).where(TimelineModel.slug == slug)
        if exclude_id is not None:
            query = query.where(TimelineModel.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def generate_unique_slug(self, name: str) -> str:
        """Первый свободный из base, base-1, base-2, ... в пределах slug_max_attempts проб"""
        base = generate_slug(name)
        for attempt in range(self.slug_max_attempts):
            if attempt == 0:
                candidate = base
            else:
                # Суффикс не должен выталкивать slug за длину колонки
                suffix = f"-{attempt}"
                candidate = base[:SLUG_MAX_LENGTH - len(suffix)].rstrip("-") + suffix
            if not await self.slug_exists(candidate):
                return candidate

        raise SlugConflictError(
            f"Could not find a free slug for '{base}' after {self.slug_max_attempts} attempts"
        )

    async def create(self, data) -> Timeline:
        """Создание таймлайна; гонка за slug разрешается уникальным ограничением и повтором"""
        timeline_data = coerce(TimelineCreate, data)

        for attempt in range(self.slug_insert_retries + 1):
            if timeline_data.slug:
                if await self.slug_exists(timeline_data.slug):
                    raise SlugConflictError()
                slug = timeline_data.slug
            else:
                slug = await self.generate_unique_slug(timeline_data.name)

            now = utcnow()
            db_timeline = TimelineModel(
                id=uuid.uuid4(),
                name=timeline_data.name,
                description=timeline_data.description,
                slug=slug,
                created_at=now,
                updated_at=now
            )

            self.session.add(db_timeline)
            try:
                await self.session.commit()
            except IntegrityError as e:
                await self.session.rollback()
                if not is_slug_violation(e):
                    raise
                if timeline_data.slug:
                    raise SlugConflictError() from e
                logger.warning(
                    f"Slug {slug} was claimed concurrently, retrying "
                    f"({attempt + 1}/{self.slug_insert_retries})"
                )
                continue

            await self.session.refresh(db_timeline)
            logger.info(f"Created timeline {db_timeline.id} with slug {db_timeline.slug}")
            return self._to_domain(db_timeline)

        raise SlugConflictError(
            f"Failed to create timeline: slug for '{timeline_data.name}' kept colliding"
        )

    async def get_by_id(self, timeline_id) -> Timeline:
        """Получение таймлайна по id"""
        timeline_id = parse_id(timeline_id)
        db_timeline = await self._get_one(TimelineModel.id == timeline_id)
        if not db_timeline:
            raise NotFoundError(f"Timeline {timeline_id} not found")
        return self._to_domain(db_timeline)

    async def get_by_slug(self, slug: str) -> Timeline:
        """Получение таймлайна по slug"""
        db_timeline = await self._get_one(TimelineModel.slug == slug)
        if not db_timeline:
            raise NotFoundError(f"Timeline with slug '{slug}' not found")
        return self._to_domain(db_timeline)

    async def _get_one(self, condition) -> Optional[TimelineModel]:
        result = await self.session.execute(
            select(TimelineModel)
            .where(condition)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_all(self, limit: Optional[int] = None, offset: int = 0) -> List[Timeline]:
        """Страница таймлайнов, новые первыми"""
        page = coerce(Page, {"limit": limit, "offset": offset})
        query = (
            select(TimelineModel)
            .order_by(TimelineModel.created_at.desc(), TimelineModel.id)
            .offset(page.offset)
            .execution_options(populate_existing=True)
        )
        if page.limit:
            query = query.limit(page.limit)

        result = await self.session.execute(query)
        return [self._to_domain(timeline) for timeline in result.scalars().all()]

    async def update(self, timeline_id, data) -> Timeline:
        """Частичное обновление; явный slug не должен принадлежать другому таймлайну"""
        timeline_id = parse_id(timeline_id)
        changes = coerce(TimelineUpdate, data).model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return await self.get_by_id(timeline_id)

        if "slug" in changes and await self.slug_exists(changes["slug"], exclude_id=timeline_id):
            raise SlugConflictError()

        changes["updated_at"] = utcnow()
        try:
            result = await self.session.execute(
                update(TimelineModel).where(TimelineModel.id == timeline_id).values(**changes)
            )
        except IntegrityError as e:
            await self.session.rollback()
            if is_slug_violation(e):
                raise SlugConflictError() from e
            raise

        if result.rowcount == 0:
            await self.session.rollback()
            raise NotFoundError(f"Timeline {timeline_id} not found")
        await self.session.commit()

        return await self.get_by_id(timeline_id)

    async def delete(self, timeline_id) -> DeleteResult:
        """Удаление таймлайна: сначала воспоминания и их изображения, затем строка таймлайна"""
        timeline = await self.get_by_id(timeline_id)

        if await self.memories.exists_for_parent(timeline.id):
            if not self.cascade_delete:
                raise HasDependentsError()

            cleanup = await self.memories.delete_by_parent(timeline.id)
            logger.info(
                f"Cascade removed {cleanup.deleted} memories of timeline {timeline.id} "
                f"({len(cleanup.failures)} cleanup failures)"
            )

        try:
            await self.session.execute(delete(TimelineModel).where(TimelineModel.id == timeline.id))
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if is_foreign_key_violation(e):
                raise HasDependentsError(
                    f"Timeline {timeline.id} received new memories during delete, retry the request"
                ) from e
            raise

        logger.info(f"Deleted timeline {timeline.id} ({timeline.slug})")
        return DeleteResult(success=True, id=timeline.id)

    async def count(self) -> int:
        """Количество таймлайнов"""
        result = await self.session.execute(select(func.count(TimelineModel.id)))
        return result.scalar() or 0

    async def get_with_memory_count(self, timeline_id) -> TimelineWithCount:
        timeline = await self.get_by_id(timeline_id)
        memory_count = await self.memories.count_by_parent(timeline.id)
        return TimelineWithCount.from_timeline(timeline, memory_count)

    async def get_all_with_memory_counts(
        self,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[TimelineWithCount]:
        """Страница таймлайнов с количеством воспоминаний: два запроса независимо от размера"""
        timelines = await self.get_all(limit=limit, offset=offset)
        return await self.counts.attach_counts(timelines)

    def _to_domain(self, db_timeline: TimelineModel) -> Timeline:
        """Преобразование модели БД в доменную сущность"""
        return Timeline(
            id=db_timeline.id,
            name=db_timeline.name,
            slug=db_timeline.slug,
            description=db_timeline.description,
            created_at=db_timeline.created_at,
            updated_at=db_timeline.updated_at
        )
