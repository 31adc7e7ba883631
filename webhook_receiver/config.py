"""Webhook receiver configuration."""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Only used outside production when WEBHOOK_SECRET_KEY is unset
_DEVELOPMENT_SECRET = "secret_key"


class Settings(BaseSettings):
    """Environment-driven settings for the webhook receiver."""

    webhook_secret_key: str = ""
    # Maximum age (seconds) of X-Webhook-Timestamp before a request is stale
    webhook_timestamp_tolerance: int = 300

    host: str = "0.0.0.0"
    port: int = 8080
    app_env: str = "development"  # development | production | test
    log_level: str = "INFO"

    cors_allowed_origins: list[str] = ["*"]

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")

    def resolved_secret(self) -> str:
        """Return the shared secret, falling back to a dev key outside production.

        In production an empty secret stays empty so verification fails closed.
        """
        if self.webhook_secret_key:
            return self.webhook_secret_key
        if self.is_production:
            logger.error("WEBHOOK_SECRET_KEY not set in production; all webhooks will be rejected")
            return ""
        logger.warning("WEBHOOK_SECRET_KEY not set, using development secret")
        return _DEVELOPMENT_SECRET
