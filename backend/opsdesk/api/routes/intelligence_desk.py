"""
Intelligence Desk API routes.

Provides endpoints for:
- Reading the latest CMO summary, or forcing a fresh one
- Scheduled generation triggered by the cron relay
- Asking follow-up questions over the current task data

SECURITY:
- Summary and chat routes require a session whose profile role is `cmo`
- The cron route requires the shared cron secret
- Both checks run before any database or model call
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from opsdesk.api.dependencies.auth import require_cmo, require_cron_secret
from opsdesk.api.dependencies.body import read_json_object
from opsdesk.api.dependencies.intelligence import get_intelligence_desk_service
from opsdesk.api.schemas.intelligence import ChatResponse, CronResponse, SummaryResponse
from opsdesk.models.profile import Profile
from opsdesk.platform.errors import ValidationError
from opsdesk.services.intelligence_desk_service import IntelligenceDeskService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/intelligence-desk", tags=["intelligence-desk"])

FORCE_VALUES = ("1", "true")


def parse_force(value: Optional[str]) -> bool:
    """Only "1" and "true" force a regeneration."""
    return (value or "").strip() in FORCE_VALUES


@router.get("/summary", response_model=SummaryResponse)
def get_summary(
    profile: Profile = Depends(require_cmo),
    service: IntelligenceDeskService = Depends(get_intelligence_desk_service),
    force: Optional[str] = Query(None, description="1 or true to regenerate"),
):
    """
    Latest stored summary, or a freshly generated manual report.

    Without `force` this never calls the model: no stored report is a 404.
    """
    forced = parse_force(force)
    logger.info(
        "intelligence_summary.requested",
        extra={"user_id": profile.id, "force": forced},
    )
    return service.get_summary(force=forced).to_dict()


@router.get(
    "/cron",
    response_model=CronResponse,
    dependencies=[Depends(require_cron_secret)],
)
def run_scheduled_summary(
    service: IntelligenceDeskService = Depends(get_intelligence_desk_service),
):
    """Generate and store a scheduled report. Called by the cron relay."""
    return service.run_scheduled()


@router.post("/chat", response_model=ChatResponse)
def chat(
    profile: Profile = Depends(require_cmo),
    service: IntelligenceDeskService = Depends(get_intelligence_desk_service),
    body: dict = Depends(read_json_object),
):
    """Answer a question about current tasks. Nothing is stored."""
    question = body.get("question")
    question = question.strip() if isinstance(question, str) else ""
    if not question:
        raise ValidationError("Question is required")

    logger.info("intelligence_chat.requested", extra={"user_id": profile.id})
    return service.answer_question(question, body.get("history"))
