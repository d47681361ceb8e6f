"""
Authentication dependencies.

SECURITY:
- Session identity comes only from a verified token
- Role checks always read the profiles table
- Cron callers are rejected before any database or model call
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from opsdesk.api.dependencies.intelligence import get_settings
from opsdesk.config.settings import DeskSettings
from opsdesk.database.session import get_db_session
from opsdesk.models.profile import Profile, UserRole
from opsdesk.platform.auth import (
    SessionUser,
    decode_session_token,
    extract_cron_secret,
    extract_session_token,
    require_role,
    verify_cron_secret,
)
from opsdesk.platform.errors import AuthenticationError


def get_current_user(
    request: Request,
    settings: DeskSettings = Depends(get_settings),
) -> SessionUser:
    """Resolve the session user or reject with 401."""
    token = extract_session_token(request, settings.session_cookie_name)
    if not token:
        raise AuthenticationError()
    return decode_session_token(token, settings.auth_jwt_secret, settings.auth_jwt_audience)


def require_cmo(
    user: SessionUser = Depends(get_current_user),
    db_session: Session = Depends(get_db_session),
) -> Profile:
    """Authenticated caller whose profile role is `cmo`; 403 otherwise."""
    return require_role(db_session, user, UserRole.CMO)


def require_cron_secret(
    request: Request,
    settings: DeskSettings = Depends(get_settings),
) -> None:
    """Shared-secret check for scheduled callers."""
    verify_cron_secret(extract_cron_secret(request), settings.cron_secret)
