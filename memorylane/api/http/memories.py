import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from memorylane.api.deps import get_repositories
from memorylane.core.access import ScopedRepositories
from memorylane.domains.memories.schemas import MemoryCreate, MemoryResponse, MemoryUpdate
from memorylane.domains.timelines.schemas import CountResponse, DeleteResponse

router = APIRouter(prefix="/memories", tags=["memories"])


@router.get("/", response_model=List[MemoryResponse])
async def list_memories(
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    repos: ScopedRepositories = Depends(get_repositories)
):
    """Список воспоминаний всех таймлайнов"""
    return await repos.memories.get_all(limit=limit, offset=offset)


@router.get("/timeline/{timeline_id}", response_model=List[MemoryResponse])
async def list_timeline_memories(
    timeline_id: uuid.UUID,
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    repos: ScopedRepositories = Depends(get_repositories)
):
    """Воспоминания таймлайна"""
    return await repos.memories.get_by_parent(timeline_id, limit=limit, offset=offset)


@router.get("/timeline/{timeline_id}/count", response_model=CountResponse)
async def count_timeline_memories(
    timeline_id: uuid.UUID,
    repos: ScopedRepositories = Depends(get_repositories)
):
    return CountResponse(count=await repos.memories.count_by_parent(timeline_id))


@router.post("/", response_model=MemoryResponse, status_code=status.HTTP_201_CREATED)
async def create_memory(memory_data: MemoryCreate, repos: ScopedRepositories = Depends(get_repositories)):
    """Создание воспоминания"""
    return await repos.memories.create(memory_data)


@router.get("/{memory_id}", response_model=MemoryResponse)
async def get_memory(memory_id: uuid.UUID, repos: ScopedRepositories = Depends(get_repositories)):
    return await repos.memories.get_by_id(memory_id)


@router.patch("/{memory_id}", response_model=MemoryResponse)
async def update_memory(
    memory_id: uuid.UUID,
    update_data: MemoryUpdate,
    repos: ScopedRepositories = Depends(get_repositories)
):
    """Обновление воспоминания; замена изображения удаляет старый файл"""
    return await repos.memories.update(memory_id, update_data)


@router.delete("/{memory_id}", response_model=DeleteResponse)
async def delete_memory(memory_id: uuid.UUID, repos: ScopedRepositories = Depends(get_repositories)):
    """Удаление воспоминания"""
    return await repos.memories.delete(memory_id)
