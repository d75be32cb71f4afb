import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from memorylane.domains.memories.schemas import MemoryResponse
from memorylane.domains.validation import SLUG_MAX_LENGTH, SLUG_PATTERN, non_empty


class TimelineCreate(BaseModel):
    """Схема для создания таймлайна; slug по умолчанию выводится из name"""

    name: str
    description: str
    slug: Optional[str] = Field(None, pattern=SLUG_PATTERN, max_length=SLUG_MAX_LENGTH)

    model_config = ConfigDict(extra="forbid")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return non_empty(v, "Name")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return non_empty(v, "Description")


class TimelineUpdate(BaseModel):
    """Схема для частичного обновления таймлайна"""

    name: Optional[str] = None
    description: Optional[str] = None
    slug: Optional[str] = Field(None, pattern=SLUG_PATTERN, max_length=SLUG_MAX_LENGTH)

    model_config = ConfigDict(extra="forbid")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return non_empty(v, "Name") if v is not None else v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return non_empty(v, "Description") if v is not None else v


class TimelineResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    description: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TimelineWithCountResponse(TimelineResponse):
    memory_count: int


class TimelineWithMemoriesResponse(TimelineResponse):
    memories: List[MemoryResponse]


class CountResponse(BaseModel):
    count: int


class DeleteResponse(BaseModel):
    success: bool
    id: uuid.UUID

    model_config = ConfigDict(from_attributes=True)
