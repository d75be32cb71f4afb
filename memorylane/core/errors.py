from typing import Optional


class MemoryLaneError(Exception):
    """Базовая ошибка приложения"""

    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MemoryLaneError):
    """Некорректные входные данные, обнаруженные до обращения к хранилищам"""

    status_code = 422
    default_message = "Invalid input"


class NotFoundError(MemoryLaneError):
    status_code = 404
    default_message = "Entity not found"


class SlugConflictError(MemoryLaneError):
    status_code = 409
    default_message = "A timeline with this slug already exists"


class ParentNotFoundError(MemoryLaneError):
    """Нарушение внешнего ключа memory.timeline_id"""

    status_code = 400
    default_message = "Referenced timeline does not exist"


class HasDependentsError(MemoryLaneError):
    status_code = 409
    default_message = (
        "Cannot delete timeline with existing memories. Please delete all memories first."
    )


class StorageError(MemoryLaneError):
    status_code = 502
    default_message = "Storage request failed"


class StorageWriteError(StorageError):
    default_message = "Failed to upload file"


class StorageDeleteError(StorageError):
    default_message = "Failed to delete file"
