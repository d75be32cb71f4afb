from memorylane.domains.memories.entities import Memory
from memorylane.domains.memories.schemas import (
    MemoryCreate, MemoryUpdate, MemoryResponse, UploadResponse
)

__all__ = [
    "Memory",
    "MemoryCreate", "MemoryUpdate", "MemoryResponse", "UploadResponse"
]
