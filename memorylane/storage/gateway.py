import logging
import re
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from urllib.parse import unquote, urlparse

from memorylane.core.errors import (
    NotFoundError, StorageDeleteError, StorageError, StorageWriteError, ValidationError
)
from memorylane.storage.backends import ObjectInfo, ObjectStorage, StorageBackendError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-z0-9]")


@dataclass
class UploadResult:
    key: str
    full_path: str
    public_url: str


@dataclass
class StorageDeleteResult:
    success: bool
    key: str


@dataclass
class BatchDeleteResult:
    success: bool
    keys: List[str]
    failed: List[str] = field(default_factory=list)


@dataclass
class ObjectMetadata:
    key: str
    size: Optional[int]
    content_type: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


def generate_object_key(original_filename: str, now_ms: Optional[int] = None) -> str:
    """Ключ вида {ms}-{token}-{имя}.{расширение}; в имени остаются только [a-z0-9]"""
    filename = (original_filename or "").replace("\\", "/").rsplit("/", 1)[-1]
    stem, dot, extension = filename.rpartition(".")
    if not dot:
        stem, extension = extension, ""

    base_name = _UNSAFE_CHARS.sub("", stem.casefold()) or "file"
    extension = _UNSAFE_CHARS.sub("", extension.casefold()) or "bin"
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)

    return f"{timestamp}-{secrets.token_hex(6)}-{base_name}.{extension}"


class BlobStoreGateway:
    """Загрузка, удаление и публичные URL изображений воспоминаний"""

    def __init__(self, storage: ObjectStorage):
        self.storage = storage

    @property
    def bucket(self) -> str:
        return self.storage.bucket

    def normalize_key(self, key_or_url: str) -> str:
        """Приведение ключа, полного пути bucket/key или публичного URL к ключу"""
        value = (key_or_url or "").strip()
        if not value:
            raise ValidationError("Object key is required")

        if "://" in value:
            path = unquote(urlparse(value).path)
            marker = f"/{self.bucket}/"
            if marker not in path:
                raise ValidationError(f"URL does not reference bucket '{self.bucket}': {value}")
            value = path.split(marker, 1)[1]

        value = value.lstrip("/")
        if value.startswith(f"{self.bucket}/"):
            value = value[len(self.bucket) + 1:]

        if not value or ".." in value.split("/"):
            raise ValidationError(f"Invalid object key: {key_or_url}")

        return value

    def resolve_public_url(self, key_or_url: str) -> str:
        return self.storage.public_url(self.normalize_key(key_or_url))

    async def upload(
        self,
        data: bytes,
        original_filename: str,
        content_type: Optional[str] = None
    ) -> UploadResult:
        """Загрузка нового объекта под сгенерированным ключом"""
        key = generate_object_key(original_filename)
        return await self._put(key, data, content_type, upsert=False)

    async def replace(
        self,
        data: bytes,
        key_or_url: str,
        content_type: Optional[str] = None
    ) -> UploadResult:
        """Перезапись существующего объекта по тому же ключу"""
        key = self.normalize_key(key_or_url)
        return await self._put(key, data, content_type, upsert=True)

    async def _put(self, key: str, data: bytes, content_type: Optional[str], upsert: bool) -> UploadResult:
        try:
            full_path = await self.storage.put(key, data, content_type=content_type, upsert=upsert)
        except StorageBackendError as e:
            logger.error(f"Upload of {key} to bucket {self.bucket} failed: {e.message}")
            raise StorageWriteError(f"Failed to upload file: {e.message}") from e

        logger.info(f"Stored object {key} ({len(data)} bytes) in bucket {self.bucket}")
        return UploadResult(key=key, full_path=full_path, public_url=self.storage.public_url(key))

    async def delete(self, key_or_url: str) -> StorageDeleteResult:
        """Удаление объекта; отсутствующий ключ не является ошибкой"""
        key = self.normalize_key(key_or_url)
        try:
            await self.storage.remove([key])
        except StorageBackendError as e:
            raise StorageDeleteError(f"Failed to delete file {key}: {e.message}") from e

        logger.info(f"Deleted object {key} from bucket {self.bucket}")
        return StorageDeleteResult(success=True, key=key)

    async def delete_many(self, keys_or_urls: List[str]) -> BatchDeleteResult:
        """Пакетное удаление; при сбое пакета ключи удаляются по одному"""
        keys = [self.normalize_key(value) for value in keys_or_urls]
        if not keys:
            return BatchDeleteResult(success=True, keys=[])

        try:
            await self.storage.remove(keys)
            return BatchDeleteResult(success=True, keys=keys)
        except StorageBackendError as e:
            logger.warning(f"Batch delete of {len(keys)} objects failed, retrying one by one: {e.message}")

        deleted, failed = [], []
        for key in keys:
            try:
                await self.storage.remove([key])
                deleted.append(key)
            except StorageBackendError as e:
                logger.error(f"Failed to delete object {key} from bucket {self.bucket}: {e.message}")
                failed.append(key)

        return BatchDeleteResult(success=not failed, keys=deleted, failed=failed)

    async def list(
        self,
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None
    ) -> List[ObjectInfo]:
        try:
            return await self.storage.list("", limit=limit, offset=offset, search=search)
        except StorageBackendError as e:
            raise StorageError(f"Failed to list files: {e.message}") from e

    async def _find(self, key: str) -> Optional[ObjectInfo]:
        folder, _, name = key.rpartition("/")
        objects = await self.storage.list(folder, search=name)
        return next((obj for obj in objects if obj.name == name), None)

    async def exists(self, key_or_url: str) -> bool:
        """Диагностическая проверка; не используется в каскадах удаления"""
        key = self.normalize_key(key_or_url)
        try:
            return await self._find(key) is not None
        except StorageBackendError as e:
            logger.warning(f"Existence probe for {key} failed: {e.message}")
            return False

    async def metadata(self, key_or_url: str) -> ObjectMetadata:
        key = self.normalize_key(key_or_url)
        try:
            info = await self._find(key)
        except StorageBackendError as e:
            raise StorageError(f"Failed to get file metadata: {e.message}") from e

        if info is None:
            raise NotFoundError(f"File not found: {key}")

        return ObjectMetadata(
            key=key,
            size=info.size,
            content_type=info.content_type,
            created_at=info.created_at,
            updated_at=info.updated_at,
        )
