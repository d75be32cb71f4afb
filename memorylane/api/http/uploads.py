import logging

from fastapi import APIRouter, Depends, File, UploadFile

from memorylane.api.deps import get_repositories
from memorylane.core.access import ScopedRepositories
from memorylane.core.config import settings
from memorylane.core.errors import ValidationError
from memorylane.domains.memories.schemas import UploadResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/", response_model=UploadResponse)
async def upload_image(
    file: UploadFile = File(...),
    repos: ScopedRepositories = Depends(get_repositories)
):
    """Загрузка изображения в хранилище"""
    if file.content_type not in settings.allowed_image_types:
        raise ValidationError(
            f"Unsupported content type {file.content_type}. "
            f"Allowed: {', '.join(settings.allowed_image_types)}"
        )

    # Читаем на байт больше лимита, чтобы отличить файл ровно на границе
    data = await file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise ValidationError(
            f"File size must be less than {settings.max_upload_bytes // (1024 * 1024)}MB"
        )
    if not data:
        raise ValidationError("No file provided. Please include a file in the request.")

    result = await repos.storage.upload(data, file.filename or "unknown", content_type=file.content_type)
    logger.info(f"Uploaded {file.filename} as {result.key}")
    return result
