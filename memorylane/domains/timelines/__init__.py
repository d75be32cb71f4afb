from memorylane.domains.timelines.entities import Timeline, TimelineWithCount
from memorylane.domains.timelines.schemas import (
    TimelineCreate, TimelineUpdate, TimelineResponse, TimelineWithCountResponse,
    TimelineWithMemoriesResponse, CountResponse, DeleteResponse
)

__all__ = [
    "Timeline", "TimelineWithCount",
    "TimelineCreate", "TimelineUpdate", "TimelineResponse", "TimelineWithCountResponse",
    "TimelineWithMemoriesResponse", "CountResponse", "DeleteResponse"
]
