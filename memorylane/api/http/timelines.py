import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from memorylane.api.deps import get_repositories
from memorylane.core.access import ScopedRepositories
from memorylane.domains.memories.schemas import MemoryResponse
from memorylane.domains.timelines.schemas import (
    CountResponse, DeleteResponse, TimelineCreate, TimelineResponse, TimelineUpdate,
    TimelineWithCountResponse, TimelineWithMemoriesResponse
)

router = APIRouter(prefix="/timelines", tags=["timelines"])


@router.get("/", response_model=List[TimelineResponse])
async def list_timelines(
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    repos: ScopedRepositories = Depends(get_repositories)
):
    """Список таймлайнов"""
    return await repos.timelines.get_all(limit=limit, offset=offset)


@router.get("/with-counts", response_model=List[TimelineWithCountResponse])
async def list_timelines_with_counts(
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    repos: ScopedRepositories = Depends(get_repositories)
):
    """Список таймлайнов с количеством воспоминаний"""
    return await repos.timelines.get_all_with_memory_counts(limit=limit, offset=offset)


@router.get("/count", response_model=CountResponse)
async def count_timelines(repos: ScopedRepositories = Depends(get_repositories)):
    return CountResponse(count=await repos.timelines.count())


@router.get("/slug/{slug}", response_model=TimelineResponse)
async def get_timeline_by_slug(slug: str, repos: ScopedRepositories = Depends(get_repositories)):
    """Получение таймлайна по slug"""
    return await repos.timelines.get_by_slug(slug)


@router.post("/", response_model=TimelineResponse, status_code=status.HTTP_201_CREATED)
async def create_timeline(
    timeline_data: TimelineCreate,
    repos: ScopedRepositories = Depends(get_repositories)
):
    """Создание нового таймлайна"""
    return await repos.timelines.create(timeline_data)


@router.get("/{timeline_id}", response_model=TimelineResponse)
async def get_timeline(timeline_id: uuid.UUID, repos: ScopedRepositories = Depends(get_repositories)):
    """Получение таймлайна по id"""
    return await repos.timelines.get_by_id(timeline_id)


@router.get("/{timeline_id}/with-count", response_model=TimelineWithCountResponse)
async def get_timeline_with_count(
    timeline_id: uuid.UUID,
    repos: ScopedRepositories = Depends(get_repositories)
):
    return await repos.timelines.get_with_memory_count(timeline_id)


@router.get("/{timeline_id}/memories", response_model=TimelineWithMemoriesResponse)
async def get_timeline_with_memories(
    timeline_id: uuid.UUID,
    repos: ScopedRepositories = Depends(get_repositories)
):
    """Таймлайн вместе с его воспоминаниями"""
    timeline = await repos.timelines.get_by_id(timeline_id)
    memories = await repos.memories.get_by_parent(timeline.id)

    return TimelineWithMemoriesResponse(
        **TimelineResponse.model_validate(timeline).model_dump(),
        memories=[MemoryResponse.model_validate(memory) for memory in memories]
    )


@router.patch("/{timeline_id}", response_model=TimelineResponse)
async def update_timeline(
    timeline_id: uuid.UUID,
    update_data: TimelineUpdate,
    repos: ScopedRepositories = Depends(get_repositories)
):
    """Обновление таймлайна"""
    return await repos.timelines.update(timeline_id, update_data)


@router.delete("/{timeline_id}", response_model=DeleteResponse)
async def delete_timeline(timeline_id: uuid.UUID, repos: ScopedRepositories = Depends(get_repositories)):
    """Удаление таймлайна вместе с воспоминаниями"""
    return await repos.timelines.delete(timeline_id)
