import uuid
from dataclasses import dataclass
from datetime import date, datetime


@dataclass
class Memory:
    id: uuid.UUID
    timeline_id: uuid.UUID
    name: str
    description: str
    image_url: str
    image_key: str
    date_of_event: date
    created_at: datetime
    updated_at: datetime
