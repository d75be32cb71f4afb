import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from memorylane.domains.validation import http_url, non_empty


class MemoryCreate(BaseModel):
    """Схема для создания воспоминания; изображение уже загружено в хранилище"""

    name: str
    description: str
    image_url: str
    image_key: Optional[str] = None
    date_of_event: date
    timeline_id: uuid.UUID

    model_config = ConfigDict(extra="forbid")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return non_empty(v, "Name")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return non_empty(v, "Description")

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v):
        return http_url(v)

    @field_validator("image_key")
    @classmethod
    def validate_image_key(cls, v):
        return non_empty(v, "Image key") if v is not None else v


class MemoryUpdate(BaseModel):
    """Схема для частичного обновления; timeline_id менять нельзя"""

    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    image_key: Optional[str] = None
    date_of_event: Optional[date] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return non_empty(v, "Name") if v is not None else v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return non_empty(v, "Description") if v is not None else v

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v):
        return http_url(v) if v is not None else v

    @field_validator("image_key")
    @classmethod
    def validate_image_key(cls, v):
        return non_empty(v, "Image key") if v is not None else v


class MemoryResponse(BaseModel):
    id: uuid.UUID
    timeline_id: uuid.UUID
    name: str
    description: str
    image_url: str
    image_key: str
    date_of_event: date
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UploadResponse(BaseModel):
    key: str
    full_path: str
    public_url: str

    model_config = ConfigDict(from_attributes=True)
