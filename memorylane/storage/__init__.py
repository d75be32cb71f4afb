from memorylane.storage.backends import (
    InMemoryStorage, ObjectInfo, ObjectStorage, StorageBackendError, SupabaseStorage
)
from memorylane.storage.gateway import (
    BatchDeleteResult, BlobStoreGateway, ObjectMetadata, StorageDeleteResult,
    UploadResult, generate_object_key
)

__all__ = [
    "InMemoryStorage", "ObjectInfo", "ObjectStorage", "StorageBackendError", "SupabaseStorage",
    "BatchDeleteResult", "BlobStoreGateway", "ObjectMetadata", "StorageDeleteResult",
    "UploadResult", "generate_object_key"
]
