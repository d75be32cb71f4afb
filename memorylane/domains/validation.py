import re
import uuid
from typing import Optional, Type, TypeVar
from urllib.parse import urlparse

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from memorylane.core.errors import ValidationError

SLUG_PATTERN = r"^[a-z0-9]+(-[a-z0-9]+)*$"
SLUG_MAX_LENGTH = 255
SLUG_RE = re.compile(SLUG_PATTERN)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field_name} is required")
    return value.strip()


def http_url(value: str) -> str:
    parsed = urlparse(value.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Must be a valid URL")
    return value.strip()


def coerce(schema: Type[SchemaT], data) -> SchemaT:
    """Приведение dict к схеме с переводом ошибок pydantic в ValidationError приложения"""
    if isinstance(data, schema):
        return data
    try:
        if isinstance(data, BaseModel):
            return schema.model_validate(data.model_dump(exclude_unset=True))
        return schema.model_validate(data)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Invalid {schema.__name__}: {details}") from e


class Page(BaseModel):
    """Параметры offset-пагинации"""

    limit: Optional[int] = Field(None, gt=0)
    offset: int = Field(0, ge=0)


def parse_id(value, field_name: str = "id") -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as e:
        raise ValidationError(f"Invalid {field_name}: {value}") from e
