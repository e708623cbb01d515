"""FastAPI application entry point."""

import logging

from fastapi import FastAPI

from app.config import get_settings
from app.routers import (
    conversations_router,
    messages_router,
    providers_router,
    ratings_router,
    users_router,
)


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title=settings.app_name)
    app.include_router(users_router.router)
    app.include_router(providers_router.router)
    app.include_router(ratings_router.router)
    app.include_router(messages_router.router)
    app.include_router(conversations_router.router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
