import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from memorylane.api.http import health_router, memories_router, timelines_router, uploads_router
from memorylane.core.config import settings
from memorylane.core.errors import MemoryLaneError

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="MemoryLane",
    description="Таймлайны воспоминаний: фотографии и короткие истории в хронологическом порядке",
    version="1.0.0"
)

# Настройка CORS для работы с frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MemoryLaneError)
async def memorylane_error_handler(request: Request, exc: MemoryLaneError):
    """Ошибки приложения превращаются в HTTP-ответы по их status_code"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Подключаем роутеры
app.include_router(health_router)
app.include_router(timelines_router)
app.include_router(memories_router)
app.include_router(uploads_router)


@app.get("/")
async def root():
    return {
        "message": "MemoryLane API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }
