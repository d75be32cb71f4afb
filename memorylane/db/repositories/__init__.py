from memorylane.db.repositories.aggregation import MemoryCountPlanner
from memorylane.db.repositories.memory_repository import MemoryRepository
from memorylane.db.repositories.timeline_repository import TimelineRepository, generate_slug

__all__ = [
    "MemoryCountPlanner",
    "MemoryRepository",
    "TimelineRepository",
    "generate_slug"
]
