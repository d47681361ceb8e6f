"""
Runtime configuration for the Intelligence Desk backend.

Settings are read from the environment once, at startup, and passed into
the app factory, the summary generator, services and workers. Nothing reads
os.environ at request time.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./opsdesk.db"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEZONE = "Asia/Karachi"

DEFAULT_SUMMARY_MAX_TOKENS = 900
DEFAULT_CHAT_MAX_TOKENS = 700
DEFAULT_RECENT_DAYS = 14
DEFAULT_TASK_LIMIT = 200
DEFAULT_MAX_PROMPT_CHARS = 45000


def _positive_int(name: str, default: int) -> int:
    """Read a positive integer env var, falling back to default when unusable."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(float(raw))
    except ValueError:
        logger.warning("config.invalid_number", extra={"setting": name, "default": default})
        return default
    return value if value > 0 else default


def _optional(name: str) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or None


@dataclass(frozen=True)
class DeskSettings:
    """Configuration for the Intelligence Desk service."""

    database_url: str = DEFAULT_DATABASE_URL

    # Session tokens issued by the auth provider (HS256 JWTs)
    auth_jwt_secret: Optional[str] = None
    auth_jwt_audience: str = "authenticated"
    session_cookie_name: str = "sb-access-token"

    # Chat completion provider
    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    openai_base_url: str = DEFAULT_OPENAI_BASE_URL
    openai_timeout_seconds: int = 60
    summary_max_tokens: int = DEFAULT_SUMMARY_MAX_TOKENS
    chat_max_tokens: int = DEFAULT_CHAT_MAX_TOKENS

    # Scheduled generation
    cron_secret: Optional[str] = None
    cron_target_url: Optional[str] = None

    # Insights window
    default_timezone: str = DEFAULT_TIMEZONE
    recent_days: int = DEFAULT_RECENT_DAYS
    task_limit: int = DEFAULT_TASK_LIMIT
    max_prompt_chars: int = DEFAULT_MAX_PROMPT_CHARS

    @classmethod
    def from_env(cls) -> "DeskSettings":
        """Load settings from environment variables."""
        settings = cls(
            database_url=os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL,
            auth_jwt_secret=_optional("SUPABASE_JWT_SECRET"),
            auth_jwt_audience=os.getenv("SUPABASE_JWT_AUDIENCE") or "authenticated",
            session_cookie_name=os.getenv("SESSION_COOKIE_NAME") or "sb-access-token",
            openai_api_key=_optional("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
            openai_base_url=os.getenv("OPENAI_BASE_URL") or DEFAULT_OPENAI_BASE_URL,
            openai_timeout_seconds=_positive_int("OPENAI_TIMEOUT_SECONDS", 60),
            summary_max_tokens=_positive_int(
                "OPENAI_MAX_TOKENS_SUMMARY", DEFAULT_SUMMARY_MAX_TOKENS
            ),
            chat_max_tokens=_positive_int("OPENAI_MAX_TOKENS_CHAT", DEFAULT_CHAT_MAX_TOKENS),
            cron_secret=_optional("CRON_SECRET"),
            cron_target_url=_optional("INTELLIGENCE_CRON_URL"),
            default_timezone=os.getenv("INTELLIGENCE_TIMEZONE") or DEFAULT_TIMEZONE,
            recent_days=_positive_int("INTELLIGENCE_RECENT_DAYS", DEFAULT_RECENT_DAYS),
            task_limit=_positive_int("INTELLIGENCE_TASK_LIMIT", DEFAULT_TASK_LIMIT),
            max_prompt_chars=_positive_int(
                "INTELLIGENCE_MAX_PROMPT_CHARS", DEFAULT_MAX_PROMPT_CHARS
            ),
        )

        logger.info(
            "config.loaded",
            extra={
                "has_openai_key": bool(settings.openai_api_key),
                "has_cron_secret": bool(settings.cron_secret),
                "has_jwt_secret": bool(settings.auth_jwt_secret),
                "openai_model": settings.openai_model,
            },
        )
        return settings
