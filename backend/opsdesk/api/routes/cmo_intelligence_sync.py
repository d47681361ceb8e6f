"""
Schedule settings for Intelligence Desk reports.

SECURITY:
- CMO only; the role is read from the caller's profile
"""

import logging

from fastapi import APIRouter, Depends

from opsdesk.api.dependencies.auth import require_cmo
from opsdesk.api.dependencies.body import read_json_object
from opsdesk.api.dependencies.intelligence import get_intelligence_sync_service
from opsdesk.api.schemas.intelligence import SyncSettingsResponse, SyncSettingsUpdateResponse
from opsdesk.models.profile import Profile
from opsdesk.services.intelligence_sync_service import IntelligenceSyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cmo/intelligence-sync", tags=["intelligence-sync"])


@router.get("", response_model=SyncSettingsResponse)
def get_sync_settings(
    profile: Profile = Depends(require_cmo),
    service: IntelligenceSyncService = Depends(get_intelligence_sync_service),
):
    return service.get_settings().to_dict()


@router.post("", response_model=SyncSettingsUpdateResponse)
def update_sync_settings(
    profile: Profile = Depends(require_cmo),
    service: IntelligenceSyncService = Depends(get_intelligence_sync_service),
    body: dict = Depends(read_json_object),
):
    """
    Change the daily generation time.

    Body: {"sync_time": "HH:MM", "timezone": "Area/City"}
    """
    updated = service.set_sync_time(body.get("sync_time"), body.get("timezone"))
    logger.info(
        "intelligence_sync.changed_by",
        extra={"user_id": profile.id, "sync_time": updated.sync_time},
    )
    return {"ok": True, **updated.to_dict()}
