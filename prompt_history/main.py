from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from prompt_history import __version__
from prompt_history.api.http import health_router, documents_router, versions_router
from prompt_history.core.logging import setup_logging

setup_logging()

app = FastAPI(
    title="Prompt History",
    description="История версий и снимки версионируемых документов",
    version=__version__
)

# Настройка CORS для веб-клиента и расширения браузера
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # В продакшене указать конкретные домены
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Подключаем роутеры
app.include_router(health_router)
app.include_router(documents_router)
app.include_router(versions_router)


@app.get("/")
async def root():
    """Корневой эндпоинт"""
    return {
        "message": "Prompt History API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }
