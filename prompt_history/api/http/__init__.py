from prompt_history.api.http.health import router as health_router
from prompt_history.api.http.documents import router as documents_router
from prompt_history.api.http.versions import router as versions_router

__all__ = [
    "health_router",
    "documents_router",
    "versions_router"
]
