import re

import pytest

from memorylane.core.errors import (
    NotFoundError, StorageDeleteError, StorageWriteError, ValidationError
)
from memorylane.storage.gateway import generate_object_key

KEY_RE = re.compile(r"^\d+-[0-9a-f]{12}-[a-z0-9]+\.[a-z0-9]+$")


class TestGenerateObjectKey:
    """Ключи объектов для загрузок."""

    def test_key_format(self):
        key = generate_object_key("Holiday Photo (1).JPG", now_ms=1700000000000)
        assert key.startswith("1700000000000-")
        assert key.endswith("-holidayphoto1.jpg")
        assert KEY_RE.match(key)

    def test_keys_are_unique_within_same_millisecond(self):
        keys = {generate_object_key("photo.jpg", now_ms=1) for _ in range(50)}
        assert len(keys) == 50

    def test_directory_components_are_dropped(self):
        key = generate_object_key("../../etc/passwd.png", now_ms=1)
        assert key.endswith("-passwd.png")
        assert "/" not in key

    def test_missing_extension_and_name(self):
        assert generate_object_key("README", now_ms=1).endswith("-readme.bin")
        assert generate_object_key("", now_ms=1).endswith("-file.bin")
        assert generate_object_key("фото.jpeg", now_ms=1).endswith("-file.jpeg")

    def test_uses_current_time_by_default(self):
        assert KEY_RE.match(generate_object_key("cat.gif"))


class TestNormalizeKey:
    """Приведение ключей, путей и URL."""

    def test_plain_key(self, gateway):
        assert gateway.normalize_key("123-abc-photo.jpg") == "123-abc-photo.jpg"

    def test_full_path_with_bucket(self, gateway):
        assert gateway.normalize_key("memory-images/123-abc-photo.jpg") == "123-abc-photo.jpg"
        assert gateway.normalize_key("/memory-images/123-abc-photo.jpg") == "123-abc-photo.jpg"

    def test_public_url(self, gateway):
        url = "http://localhost:54321/storage/v1/object/public/memory-images/123-abc-photo.jpg"
        assert gateway.normalize_key(url) == "123-abc-photo.jpg"

    def test_public_url_with_encoded_characters(self, gateway):
        url = "https://example.supabase.co/storage/v1/object/public/memory-images/rome/day%201.jpg"
        assert gateway.normalize_key(url) == "rome/day 1.jpg"

    def test_url_of_another_bucket_rejected(self, gateway):
        with pytest.raises(ValidationError):
            gateway.normalize_key("https://cdn.example.com/avatars/123.jpg")

    @pytest.mark.parametrize("value", ["", "   ", "memory-images/", "../secret.jpg", "a/../b.jpg"])
    def test_invalid_keys_rejected(self, gateway, value):
        with pytest.raises(ValidationError):
            gateway.normalize_key(value)

    def test_resolve_public_url(self, gateway):
        assert gateway.resolve_public_url("memory-images/a.jpg") == (
            "http://localhost:54321/storage/v1/object/public/memory-images/a.jpg"
        )


class TestUpload:
    """Загрузка и перезапись объектов."""

    async def test_upload_stores_object(self, gateway, storage):
        result = await gateway.upload(b"jpeg-bytes", "Rome.jpg", "image/jpeg")

        assert KEY_RE.match(result.key)
        assert result.full_path == f"memory-images/{result.key}"
        assert result.public_url == storage.public_url(result.key)
        data, info = storage.objects[result.key]
        assert data == b"jpeg-bytes"
        assert info.content_type == "image/jpeg"

    async def test_upload_failure_raises_write_error(self, gateway, storage):
        storage.fail_writes = True

        with pytest.raises(StorageWriteError) as exc_info:
            await gateway.upload(b"data", "photo.jpg", "image/jpeg")

        assert "Payload too large" in exc_info.value.message
        assert storage.objects == {}

    async def test_replace_overwrites_same_key(self, gateway, storage):
        first = await gateway.upload(b"old", "photo.jpg", "image/jpeg")

        replaced = await gateway.replace(b"new", first.public_url, "image/png")

        assert replaced.key == first.key
        assert storage.objects[first.key][0] == b"new"
        assert len(storage.objects) == 1


class TestDelete:
    """Удаление объектов."""

    async def test_delete_removes_object(self, gateway, storage, upload_image):
        image = await upload_image()

        result = await gateway.delete(image.public_url)

        assert result.success is True
        assert result.key == image.key
        assert image.key not in storage.objects

    async def test_delete_missing_key_is_success(self, gateway):
        result = await gateway.delete("never-uploaded.jpg")
        assert result.success is True

    async def test_delete_is_idempotent(self, gateway, upload_image):
        image = await upload_image()
        await gateway.delete(image.key)
        result = await gateway.delete(image.key)
        assert result.success is True

    async def test_delete_failure_raises(self, gateway, storage, upload_image):
        image = await upload_image()
        storage.fail_removals = True

        with pytest.raises(StorageDeleteError):
            await gateway.delete(image.key)

        assert image.key in storage.objects

    async def test_delete_many_in_one_batch(self, gateway, storage, upload_image):
        keys = [(await upload_image(f"p{i}.jpg")).key for i in range(3)]

        result = await gateway.delete_many(keys)

        assert result.success is True
        assert result.keys == keys
        assert storage.removal_calls == [keys]
        assert storage.objects == {}

    async def test_delete_many_falls_back_to_single_deletes(self, gateway, storage, upload_image):
        keys = [(await upload_image(f"p{i}.jpg")).key for i in range(3)]
        storage.fail_batches = True
        storage.failing_keys = {keys[1]}

        result = await gateway.delete_many(keys)

        assert result.success is False
        assert result.keys == [keys[0], keys[2]]
        assert result.failed == [keys[1]]
        assert list(storage.objects) == [keys[1]]

    async def test_delete_many_empty(self, gateway, storage):
        result = await gateway.delete_many([])
        assert result.success is True
        assert storage.removal_calls == []


class TestInspection:
    """Список, проверка существования и метаданные."""

    async def test_list(self, gateway, upload_image):
        await upload_image("a.jpg")
        await upload_image("b.jpg")

        objects = await gateway.list()

        assert len(objects) == 2
        assert [obj.name for obj in objects] == sorted(obj.name for obj in objects)

    async def test_list_search(self, gateway, upload_image):
        await upload_image("rome.jpg")
        await upload_image("paris.jpg")

        objects = await gateway.list(search="rome")

        assert len(objects) == 1
        assert objects[0].name.endswith("-rome.jpg")

    async def test_exists(self, gateway, upload_image):
        image = await upload_image()
        assert await gateway.exists(image.public_url) is True
        assert await gateway.exists("missing.jpg") is False

    async def test_metadata(self, gateway, upload_image):
        image = await upload_image("photo.jpg")

        metadata = await gateway.metadata(image.key)

        assert metadata.key == image.key
        assert metadata.size == len(b"\xff\xd8\xffphoto.jpg")
        assert metadata.content_type == "image/jpeg"
        assert metadata.created_at is not None

    async def test_metadata_missing(self, gateway):
        with pytest.raises(NotFoundError):
            await gateway.metadata("missing.jpg")
