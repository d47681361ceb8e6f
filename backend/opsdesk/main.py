"""
Application factory for the Marketing Ops Desk API.

Usage:
    uvicorn opsdesk.main:create_app --factory
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from opsdesk.api.routes import cmo_intelligence_sync, health, intelligence_desk, notifications
from opsdesk.config.settings import DeskSettings
from opsdesk.database.session import init_engine
from opsdesk.intelligence.llm_client import ChatCompletionClient
from opsdesk.platform.errors import ErrorHandlerMiddleware

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[DeskSettings] = None,
    chat_client: Optional[ChatCompletionClient] = None,
) -> FastAPI:
    """Build the API. Settings are read from the environment when not given."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if settings is None:
        settings = DeskSettings.from_env()

    init_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            app.state.chat_client.close()

    app = FastAPI(title="Marketing Ops Desk", lifespan=lifespan)
    app.state.settings = settings
    app.state.chat_client = chat_client or ChatCompletionClient.from_settings(settings)

    app.add_middleware(ErrorHandlerMiddleware)

    app.include_router(health.router)
    app.include_router(intelligence_desk.router)
    app.include_router(cmo_intelligence_sync.router)
    app.include_router(notifications.router)

    logger.info("app.created", extra={"model": settings.openai_model})
    return app
