import uuid
from collections import Counter
from typing import Dict, Iterable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from memorylane.db.models.memory import Memory as MemoryModel
from memorylane.domains.timelines.entities import Timeline, TimelineWithCount


class MemoryCountPlanner:
    """Подсчет воспоминаний для страницы таймлайнов одним запросом вместо N+1"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def counts_for(self, timeline_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, int]:
        """Частоты timeline_id по набору идентификаторов; отсутствующие получают 0"""
        ids = list(dict.fromkeys(timeline_ids))
        if not ids:
            return {}

        result = await self.session.execute(
            select(MemoryModel.timeline_id).where(MemoryModel.timeline_id.in_(ids))
        )
        counts = Counter(result.scalars().all())
        return {timeline_id: counts.get(timeline_id, 0) for timeline_id in ids}

    async def attach_counts(self, timelines: List[Timeline]) -> List[TimelineWithCount]:
        counts = await self.counts_for(timeline.id for timeline in timelines)
        return [
            TimelineWithCount.from_timeline(timeline, counts.get(timeline.id, 0))
            for timeline in timelines
        ]
