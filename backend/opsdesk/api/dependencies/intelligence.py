"""Dependencies wiring configuration, the chat client and Intelligence Desk services."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from opsdesk.config.settings import DeskSettings
from opsdesk.database.session import get_db_session
from opsdesk.intelligence.llm_client import ChatCompletionClient
from opsdesk.intelligence.summary import SummaryGenerator
from opsdesk.services.intelligence_desk_service import IntelligenceDeskService
from opsdesk.services.intelligence_sync_service import IntelligenceSyncService


def get_settings(request: Request) -> DeskSettings:
    """Settings the app was created with."""
    return request.app.state.settings


def get_chat_client(request: Request) -> ChatCompletionClient:
    return request.app.state.chat_client


def get_summary_generator(
    settings: DeskSettings = Depends(get_settings),
    client: ChatCompletionClient = Depends(get_chat_client),
) -> SummaryGenerator:
    return SummaryGenerator(
        client,
        max_tokens=settings.summary_max_tokens,
        max_prompt_chars=settings.max_prompt_chars,
    )


def get_intelligence_desk_service(
    db_session: Session = Depends(get_db_session),
    generator: SummaryGenerator = Depends(get_summary_generator),
    settings: DeskSettings = Depends(get_settings),
) -> IntelligenceDeskService:
    return IntelligenceDeskService(db_session, generator, settings)


def get_intelligence_sync_service(
    db_session: Session = Depends(get_db_session),
    settings: DeskSettings = Depends(get_settings),
) -> IntelligenceSyncService:
    return IntelligenceSyncService(db_session, settings.default_timezone)
