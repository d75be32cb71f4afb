import uuid
from dataclasses import dataclass, field
from typing import List


@dataclass
class DeleteResult:
    success: bool
    id: uuid.UUID


@dataclass
class CleanupFailure:
    """Неудавшийся шаг best-effort очистки, достаточный для ручного разбора"""

    memory_id: uuid.UUID
    image_key: str
    reason: str


@dataclass
class BulkDeleteResult:
    success: bool
    id: uuid.UUID
    deleted: int = 0
    failures: List[CleanupFailure] = field(default_factory=list)
