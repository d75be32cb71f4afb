from memorylane.api.http.health import router as health_router
from memorylane.api.http.timelines import router as timelines_router
from memorylane.api.http.memories import router as memories_router
from memorylane.api.http.uploads import router as uploads_router

__all__ = [
    "health_router",
    "timelines_router",
    "memories_router",
    "uploads_router"
]
