"""
Session and shared-secret authentication.

Two caller kinds reach this backend:

- Dashboard users, carrying an HS256 session JWT issued by the auth provider
  (Authorization: Bearer header, or the session cookie). The token's `sub`
  is the profile id; the role is always re-read from the profiles table.
- The scheduler, presenting a shared cron secret.

SECURITY:
- Roles are never taken from token claims or client input
- Cron secrets are compared in constant time
- Tokens and secrets are never logged
"""

import hmac
import logging
import re
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from opsdesk.models.profile import Profile, UserRole
from opsdesk.platform.errors import (
    AuthenticationError,
    ConfigurationError,
    PermissionDeniedError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

_BEARER_PREFIX = re.compile(r"^Bearer\s+", re.IGNORECASE)


@dataclass(frozen=True)
class SessionUser:
    """Identity resolved from a valid session token."""

    user_id: str
    email: Optional[str] = None


def _bearer_value(request: Request) -> str:
    header = request.headers.get("authorization") or ""
    return _BEARER_PREFIX.sub("", header).strip()


def extract_session_token(request: Request, cookie_name: str) -> Optional[str]:
    """Return the session token from the Authorization header or the session cookie."""
    token = _bearer_value(request)
    if token:
        return token
    cookie = (request.cookies.get(cookie_name) or "").strip()
    return cookie or None


def decode_session_token(token: str, jwt_secret: Optional[str], audience: str) -> SessionUser:
    """
    Validate a session JWT and return the caller identity.

    Raises:
        AuthenticationError: token missing, expired, badly signed, or without `sub`
    """
    if not jwt_secret:
        # Without a verification key no session can be trusted
        logger.error("auth.jwt_secret_missing")
        raise AuthenticationError()

    try:
        payload = jwt.decode(
            token,
            jwt_secret,
            algorithms=["HS256"],
            audience=audience,
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Session expired")
    except jwt.InvalidTokenError as e:
        logger.info("auth.invalid_session", extra={"reason": type(e).__name__})
        raise AuthenticationError()

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError()

    return SessionUser(user_id=str(user_id), email=payload.get("email"))


def load_profile(db: Session, user_id: str) -> Optional[Profile]:
    """Read the caller's profile row; database failures surface as 500."""
    try:
        return db.query(Profile).filter(Profile.id == user_id).first()
    except SQLAlchemyError as e:
        logger.error(
            "auth.profile_lookup_failed",
            extra={"user_id": user_id, "error": str(e)},
        )
        raise UpstreamError("Failed to verify role")


def require_role(db: Session, user: SessionUser, role: UserRole) -> Profile:
    """
    Ensure the session user's profile holds `role`.

    A missing profile is rejected exactly like a wrong role.
    """
    profile = load_profile(db, user.user_id)
    if profile is None or profile.role != role:
        logger.warning(
            "auth.role_denied",
            extra={
                "user_id": user.user_id,
                "required_role": role.value,
                "has_profile": profile is not None,
            },
        )
        raise PermissionDeniedError(f"{role.value.upper()} only")
    return profile


def extract_cron_secret(request: Request) -> str:
    """
    Secret presented by a cron caller.

    Checked in order: ?secret= query param, x-cron-secret header, bearer
    token. The first non-empty value wins.
    """
    from_query = request.query_params.get("secret") or ""
    from_header = request.headers.get("x-cron-secret") or ""
    bearer = _bearer_value(request)
    return from_query or from_header or bearer


def verify_cron_secret(provided: str, expected: Optional[str]) -> None:
    """
    Raises:
        ConfigurationError: the server has no cron secret configured
        AuthenticationError: the provided secret is empty or does not match
    """
    if not expected:
        raise ConfigurationError("CRON_SECRET")
    if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning("intelligence_cron.rejected", extra={"secret_present": bool(provided)})
        raise AuthenticationError("Unauthorized.")
