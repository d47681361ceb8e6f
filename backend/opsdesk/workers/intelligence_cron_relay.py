"""
Cron relay for scheduled Intelligence Desk reports.

The database scheduler cannot hold the cron secret in its job definition,
so it invokes this relay, which checks the caller and forwards a GET to the
summary cron endpoint with the secret in the `x-cron-secret` header.

FLOW:
1. Reject when the target URL or the secret is not configured
2. Reject a caller whose secret does not match
3. GET the target; a non-2xx answer is reported with its status and the
   start of its body

Usage:
    python -m opsdesk.workers.intelligence_cron_relay --secret <caller secret>

Without --secret the caller secret is read from RELAY_CALLER_SECRET. It must
match CRON_SECRET, which is also the value forwarded to the endpoint.
"""

import argparse
import hmac
import logging
import os
import sys
from dataclasses import dataclass
from typing import Optional

import httpx

from opsdesk.config.settings import DeskSettings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Characters of the target's body kept when it fails
MAX_ERROR_BODY_CHARS = 400
DEFAULT_TIMEOUT_SECONDS = 300.0
# Where the scheduler puts the secret it presents to the relay
CALLER_SECRET_ENV = "RELAY_CALLER_SECRET"


@dataclass
class RelayResult:
    """Outcome of one relay run."""

    ok: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
    body: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "status_code": self.status_code,
            "error": self.error,
            "body": self.body,
        }


class IntelligenceCronRelay:
    """Forwards an authorized cron trigger to the summary cron endpoint."""

    def __init__(
        self,
        target_url: Optional[str],
        secret: Optional[str],
        http_client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.target_url = target_url
        self.secret = secret
        self._client = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: DeskSettings) -> "IntelligenceCronRelay":
        return cls(target_url=settings.cron_target_url, secret=settings.cron_secret)

    def close(self) -> None:
        self._client.close()

    def run(self, provided_secret: Optional[str]) -> RelayResult:
        if not self.target_url or not self.secret:
            logger.error(
                "cron_relay.not_configured",
                extra={"has_target": bool(self.target_url), "has_secret": bool(self.secret)},
            )
            return RelayResult(ok=False, error="Missing INTELLIGENCE_CRON_URL or CRON_SECRET.")

        if not provided_secret or not hmac.compare_digest(
            provided_secret.encode(), self.secret.encode()
        ):
            logger.warning("cron_relay.unauthorized")
            return RelayResult(ok=False, status_code=401, error="Unauthorized.")

        try:
            response = self._client.get(
                self.target_url,
                headers={"x-cron-secret": self.secret},
            )
        except httpx.HTTPError as e:
            logger.error("cron_relay.request_failed", extra={"error": str(e)})
            return RelayResult(ok=False, error=f"Request failed: {e}")

        if not response.is_success:
            body = response.text[:MAX_ERROR_BODY_CHARS]
            logger.error(
                "cron_relay.target_failed",
                extra={"status_code": response.status_code},
            )
            return RelayResult(
                ok=False,
                status_code=response.status_code,
                error="Cron endpoint failed",
                body=body,
            )

        logger.info("cron_relay.completed", extra={"status_code": response.status_code})
        return RelayResult(ok=True, status_code=response.status_code)


def main(argv: Optional[list[str]] = None):
    """Entry point for running the relay from a scheduler."""
    parser = argparse.ArgumentParser(
        description="Forward a scheduled trigger to the Intelligence Desk cron endpoint"
    )
    parser.add_argument(
        "--secret",
        type=str,
        default=os.getenv(CALLER_SECRET_ENV),
        help=f"Secret presented by the caller (default: ${CALLER_SECRET_ENV})",
    )
    args = parser.parse_args(argv)

    settings = DeskSettings.from_env()
    relay = IntelligenceCronRelay.from_settings(settings)
    try:
        result = relay.run(args.secret)
    finally:
        relay.close()
    logger.info("Cron relay finished", extra=result.to_dict())
    sys.exit(0 if result.ok else 1)


if __name__ == "__main__":
    main()
