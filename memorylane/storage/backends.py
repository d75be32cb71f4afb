import abc
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx


class StorageBackendError(Exception):
    """Ошибка транспорта или отказ объектного хранилища"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class ObjectInfo:
    name: str
    size: Optional[int] = None
    content_type: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ObjectStorage(abc.ABC):
    """Хранилище объектов с адресацией по ключу внутри одного бакета"""

    def __init__(self, base_url: str, bucket: str):
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket

    @abc.abstractmethod
    async def put(
        self,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
        upsert: bool = False
    ) -> str:
        """Запись объекта; возвращает полный путь вида bucket/key"""

    @abc.abstractmethod
    async def remove(self, keys: List[str]) -> List[str]:
        """Удаление объектов; отсутствующие ключи пропускаются"""

    @abc.abstractmethod
    async def list(
        self,
        prefix: str = "",
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None
    ) -> List[ObjectInfo]:
        """Объекты непосредственно внутри папки prefix, имена относительно неё"""

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(key)}"

    async def aclose(self) -> None:
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class SupabaseStorage(ObjectStorage):
    """Клиент Supabase Storage REST API поверх httpx"""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        bucket: str,
        access_token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(base_url, bucket)
        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
        }
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/storage/v1",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise StorageBackendError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
                message = body.get("message") or body.get("error") or response.text
            except ValueError:
                message = response.text
            raise StorageBackendError(message, status_code=response.status_code)

        return response

    @staticmethod
    def _json(response: httpx.Response, expected: type):
        """Тело успешного ответа; неожиданная форма считается отказом хранилища"""
        try:
            body = response.json()
        except ValueError as e:
            raise StorageBackendError(
                f"Malformed storage response: {response.text[:200]!r}", status_code=response.status_code
            ) from e

        if not isinstance(body, expected):
            raise StorageBackendError(
                f"Unexpected storage response: {response.text[:200]!r}", status_code=response.status_code
            )
        return body

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
        upsert: bool = False
    ) -> str:
        response = await self._request(
            "POST",
            f"/object/{self.bucket}/{quote(key)}",
            content=data,
            headers={
                "content-type": content_type or "application/octet-stream",
                "x-upsert": "true" if upsert else "false",
            },
        )
        return self._json(response, dict).get("Key") or f"{self.bucket}/{key}"

    async def remove(self, keys: List[str]) -> List[str]:
        if not keys:
            return []
        response = await self._request("DELETE", f"/object/{self.bucket}", json={"prefixes": keys})
        return [item.get("name") for item in self._json(response, list) if isinstance(item, dict)]

    async def list(
        self,
        prefix: str = "",
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None
    ) -> List[ObjectInfo]:
        payload = {
            "prefix": prefix,
            "limit": limit,
            "offset": offset,
            "sortBy": {"column": "name", "order": "asc"},
        }
        if search:
            payload["search"] = search

        response = await self._request("POST", f"/object/list/{self.bucket}", json=payload)

        objects = []
        for item in self._json(response, list):
            if not isinstance(item, dict) or "name" not in item:
                continue
            metadata = item.get("metadata") or {}
            objects.append(ObjectInfo(
                name=item["name"],
                size=metadata.get("size"),
                content_type=metadata.get("mimetype"),
                created_at=_parse_timestamp(item.get("created_at")),
                updated_at=_parse_timestamp(item.get("updated_at")),
            ))
        return objects


class InMemoryStorage(ObjectStorage):
    """Хранилище в памяти процесса для разработки и тестов"""

    def __init__(self, base_url: str = "http://localhost:54321", bucket: str = "memory-images"):
        super().__init__(base_url, bucket)
        self.objects: Dict[str, Tuple[bytes, ObjectInfo]] = {}

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
        upsert: bool = False
    ) -> str:
        now = datetime.now(timezone.utc)
        existing = self.objects.get(key)
        if existing and not upsert:
            raise StorageBackendError("The resource already exists", status_code=409)

        created_at = existing[1].created_at if existing else now
        self.objects[key] = (data, ObjectInfo(
            name=key,
            size=len(data),
            content_type=content_type,
            created_at=created_at,
            updated_at=now,
        ))
        return f"{self.bucket}/{key}"

    async def remove(self, keys: List[str]) -> List[str]:
        removed = []
        for key in keys:
            if self.objects.pop(key, None) is not None:
                removed.append(key)
        return removed

    async def list(
        self,
        prefix: str = "",
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None
    ) -> List[ObjectInfo]:
        folder = f"{prefix.strip('/')}/" if prefix.strip("/") else ""

        found = []
        for key, (_, info) in self.objects.items():
            if not key.startswith(folder):
                continue
            name = key[len(folder):]
            if "/" in name or (search and search not in name):
                continue
            found.append(ObjectInfo(
                name=name,
                size=info.size,
                content_type=info.content_type,
                created_at=info.created_at,
                updated_at=info.updated_at,
            ))

        found.sort(key=lambda o: o.name)
        return found[offset:offset + limit]
