import uuid
from dataclasses import dataclass
from datetime import datetime


@dataclass
class Timeline:
    id: uuid.UUID
    name: str
    slug: str
    description: str
    created_at: datetime
    updated_at: datetime


@dataclass
class TimelineWithCount(Timeline):
    memory_count: int = 0

    @classmethod
    def from_timeline(cls, timeline: Timeline, memory_count: int) -> "TimelineWithCount":
        return cls(
            id=timeline.id,
            name=timeline.name,
            slug=timeline.slug,
            description=timeline.description,
            created_at=timeline.created_at,
            updated_at=timeline.updated_at,
            memory_count=memory_count,
        )
