from typing import List, Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./memorylane.db"
    sql_echo: bool = False

    # Supabase Storage
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = ""
    storage_backend: Literal["supabase", "memory"] = "supabase"
    storage_bucket: str = "memory-images"
    storage_timeout_seconds: float = 30.0

    # Ограничения загрузки
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_image_types: List[str] = ["image/jpeg", "image/png", "image/gif", "image/webp"]

    # Политика удаления таймлайна: каскад или запрет при наличии воспоминаний
    timeline_cascade_delete: bool = True
    slug_max_attempts: int = 100
    slug_insert_retries: int = 3

    # GUC, через который RLS-политики видят токен вызывающего
    db_credential_setting: str = "request.jwt.token"

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
